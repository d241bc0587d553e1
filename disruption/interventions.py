"""
Policy interventions that can be applied at decision checkpoints.

Each intervention nudges the drift and volatility of a handful of variables.
Effects are deltas on the yearly parameters and decay with a five-year
half-life once applied (see engine.step_parameters).
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import FrozenSet, List, Mapping

from .config import UnknownInterventionError


@dataclass(frozen=True)
class Effect:
    drift: float
    vol: float


@dataclass(frozen=True)
class Intervention:
    id: str
    label: str
    description: str
    effects: Mapping[str, Effect]  # variable key -> delta
    applicable_phases: FrozenSet[int]  # indices into config.PHASES

    def effect_for(self, variable_key: str):
        return self.effects.get(variable_key)


def _intervention(id, label, description, effects, phases) -> Intervention:
    return Intervention(
        id=id,
        label=label,
        description=description,
        effects=MappingProxyType(
            {key: Effect(drift, vol) for key, (drift, vol) in effects.items()}
        ),
        applicable_phases=frozenset(phases),
    )


_CATALOG = [
    _intervention(
        "aggressive_ubi",
        "Aggressive UBI Implementation",
        "Universal basic income for displaced workers",
        {
            "ubiProbability": (8, -2),
            "socialStability": (3, -2),
            "gdpGrowth": (-1, 1),
            "inequality": (-3, 0),
        },
        [2, 3, 4],  # AI Workers onward
    ),
    _intervention(
        "regulation_slowdown",
        "Heavy AI Regulation",
        "Slow AI deployment to preserve employment",
        {
            "whiteCollarEmployment": (3, -1),
            "productivity": (-3, -1),
            "socialStability": (2, -1),
            "equities_ai": (-4, 2),
        },
        [0, 1, 2, 3],
    ),
    _intervention(
        "retraining_initiative",
        "Massive Retraining Programs",
        "Invest in workforce transition and upskilling",
        {
            "ai_orchestration": (4, -1),
            "whiteCollarEmployment": (1, 0),
            "socialStability": (1, 0),
            "gdpGrowth": (0.5, 0),
        },
        [0, 1, 2],
    ),
    _intervention(
        "accelerate_adoption",
        "AI Acceleration Incentives",
        "Tax breaks and subsidies for AI adoption",
        {
            "productivity": (3, 2),
            "gdpGrowth": (2, 2),
            "whiteCollarEmployment": (-2, 1),
            "socialStability": (-2, 1),
            "equities_ai": (3, 1),
        },
        [0, 1, 2, 3],
    ),
    _intervention(
        "wealth_tax",
        "Progressive Wealth Taxation",
        "Tax AI winners to fund social programs",
        {
            "inequality": (-4, -1),
            "socialStability": (2, -1),
            "equities_ai": (-1, 1),
            "crypto": (2, 0),
        },
        [1, 2, 3, 4],
    ),
    _intervention(
        "do_nothing",
        "Status Quo",
        "No government intervention",
        {},
        [0, 1, 2, 3, 4],
    ),
]

INTERVENTIONS: Mapping[str, Intervention] = MappingProxyType(
    {action.id: action for action in _CATALOG}
)


def get_intervention(intervention_id: str) -> Intervention:
    try:
        return INTERVENTIONS[intervention_id]
    except KeyError:
        raise UnknownInterventionError(intervention_id) from None


def applicable_interventions(phase_index: int) -> List[Intervention]:
    """Interventions selectable in a phase, in catalog order."""
    return [a for a in INTERVENTIONS.values() if phase_index in a.applicable_phases]
