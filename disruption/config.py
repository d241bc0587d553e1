"""
Configuration for the AI Disruption Monte Carlo simulator.

Defines the simulated variables (macro indicators, asset classes, skills),
the five disruption phases, scenario multipliers, and the run parameters
shared by the engine and the dashboard.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional


class InvalidConfigError(ValueError):
    """A VariableConfig violates its own invariants."""


class InvalidRequestError(ValueError):
    """A simulation request is malformed; nothing was simulated."""


class UnknownInterventionError(KeyError):
    """An intervention id is not in the catalog."""


class SimulationCancelled(RuntimeError):
    """A batch run was aborted through its cancel event."""


class DecisionStateError(RuntimeError):
    """Illegal transition of a decision session."""


@dataclass(frozen=True)
class VariableConfig:
    """A simulated quantity: starting level plus annual drift and volatility."""

    key: str
    label: str
    base: float  # level at the start year
    drift: float  # mean increment per year
    vol: float  # std dev of the yearly shock
    floor: Optional[float] = None
    cap: Optional[float] = None

    def __post_init__(self):
        if self.vol < 0:
            raise InvalidConfigError(f"{self.key}: vol must be >= 0.")
        if self.floor is not None and self.cap is not None and self.floor > self.cap:
            raise InvalidConfigError(f"{self.key}: floor must be <= cap.")
        if self.floor is not None and self.base < self.floor:
            raise InvalidConfigError(f"{self.key}: base must be >= floor.")
        if self.cap is not None and self.base > self.cap:
            raise InvalidConfigError(f"{self.key}: base must be <= cap.")


@dataclass(frozen=True)
class Phase:
    """A disruption window [start, end) with its drift/vol amplification."""

    name: str
    start: int
    end: int
    drift_mult: float = 1.0
    vol_mult: float = 1.0


@dataclass(frozen=True)
class Scenario:
    name: str
    label: str
    drift_mult: float
    vol_mult: float


START_YEAR = 2024
NUM_YEARS = 16  # 2024 -> 2040

# Member i of an ensemble runs on seed + i * SEED_STRIDE
SEED_STRIDE = 7919

# Intervention effects halve every five years
EFFECT_HALF_LIFE_YEARS = 5.0

# Volatility never drops below this once an intervention touches it
MIN_INTERVENTION_VOL = 1.0

SAMPLE_PATHS = 6

PHASES: List[Phase] = [
    Phase("AI Copilots", 2024, 2026),
    Phase("AI Agents", 2026, 2028),
    Phase("AI Workers", 2028, 2031, 1.3, 1.2),
    Phase("Physical Robots", 2031, 2035, 1.6, 1.5),
    Phase("AGI/Post-Labor", 2035, 2040, 2.0, 1.8),
]

# Years at which a policy intervention may be chosen (starts of phases 1-4)
DECISION_YEARS = (2026, 2028, 2031, 2035)

SCENARIOS: Mapping[str, Scenario] = MappingProxyType({
    "base": Scenario("base", "Base Case", 1.0, 1.0),
    "accelerated": Scenario("accelerated", "Accelerated AI", 1.5, 1.3),
    "regulated": Scenario("regulated", "Heavy Regulation", 0.5, 0.7),
    "collapse": Scenario("collapse", "Social Collapse", 1.8, 2.0),
})


def _registry(*configs: VariableConfig) -> Mapping[str, VariableConfig]:
    return MappingProxyType({c.key: c for c in configs})


MACRO_VARS = _registry(
    VariableConfig("whiteCollarEmployment", "White Collar Employment %", 100, -2.8, 4, floor=15),
    VariableConfig("blueCollarEmployment", "Blue Collar Employment %", 100, -0.8, 3, floor=20),
    VariableConfig("gdpGrowth", "GDP Growth (indexed)", 100, 1.5, 8, floor=60),
    VariableConfig("inequality", "Inequality Index", 100, 3.5, 6, floor=80, cap=300),
    VariableConfig("socialStability", "Social Stability Index", 100, -1.5, 7, floor=20),
    VariableConfig("ubiProbability", "UBI Probability %", 5, 5, 8, floor=0, cap=99),
    VariableConfig("productivity", "Productivity (indexed)", 100, 6, 10, floor=80),
    VariableConfig("deflationPressure", "Deflation Pressure", 10, 3, 5, floor=0, cap=100),
)

ASSET_CLASSES = _registry(
    VariableConfig("equities_ai", "AI/Tech Equities", 100, 12, 25, floor=10),
    VariableConfig("equities_trad", "Traditional Equities", 100, -2, 18, floor=10),
    VariableConfig("realEstate_comm", "Commercial RE", 100, -4, 12, floor=15),
    VariableConfig("realEstate_res", "Residential RE", 100, 0.5, 8, floor=40),
    VariableConfig("crypto", "Crypto/BTC", 100, 15, 45, floor=5),
    VariableConfig("gold", "Gold/Precious Metals", 100, 6, 15, floor=50),
    VariableConfig("bonds_govt", "Govt Bonds", 100, -1, 6, floor=40),
    VariableConfig("energy_infra", "Energy/Compute Infra", 100, 10, 20, floor=20),
    VariableConfig("robotics_etf", "Robotics/Automation", 100, 14, 28, floor=10),
    VariableConfig("defense_tech", "Defense Tech/Autonomy", 100, 11, 24, floor=15),
    VariableConfig("farmland", "Farmland/Hard Assets", 100, 4, 8, floor=60),
)

SKILL_CLASSES = _registry(
    VariableConfig("coding", "Traditional Coding", 100, -8, 12, floor=5),
    VariableConfig("ai_orchestration", "AI Orchestration", 100, 12, 15, floor=20),
    VariableConfig("human_judgment", "Human Judgment/Ethics", 100, 4, 8, floor=40),
    VariableConfig("physical_trades", "Physical Trades", 100, -1, 6, floor=15),
    VariableConfig("creative", "Creative/Artistic", 100, -3, 15, floor=10),
    VariableConfig("capital_mgmt", "Capital Allocation", 100, 6, 10, floor=30),
    VariableConfig("political_power", "Political/Regulatory", 100, 8, 12, floor=40),
    VariableConfig("systems_thinking", "Systems Thinking", 100, 5, 8, floor=35),
)

REGISTRIES: Mapping[str, Mapping[str, VariableConfig]] = MappingProxyType({
    "macro": MACRO_VARS,
    "assets": ASSET_CLASSES,
    "skills": SKILL_CLASSES,
})


@dataclass
class SimulationParams:
    """Run parameters for one simulation request."""

    num_paths: int = 200
    num_years: int = NUM_YEARS
    seed: int = 42
    scenario: str = "base"
    start_year: int = START_YEAR

    sample_paths: int = SAMPLE_PATHS  # raw paths handed to the chart overlay
    comparison_paths: int = 100  # per-variable paths in the asset/skill ranking

    # None or 1 runs serially; >1 fans members out over a thread pool
    max_workers: Optional[int] = None

    # "aggregate": checkpoint snapshots come from simulated medians
    # "placeholder": every driver reads 100
    decision_state_mode: str = "aggregate"

    def validate(self) -> "SimulationParams":
        if self.num_paths <= 0:
            raise InvalidRequestError("num_paths must be > 0.")
        if self.num_years < 0:
            raise InvalidRequestError("num_years must be >= 0.")
        if self.scenario not in SCENARIOS:
            allowed = ", ".join(SCENARIOS)
            raise InvalidRequestError(f"scenario must be one of: {allowed}")
        if self.sample_paths < 0:
            raise InvalidRequestError("sample_paths must be >= 0.")
        if self.comparison_paths <= 0:
            raise InvalidRequestError("comparison_paths must be > 0.")
        if self.max_workers is not None and self.max_workers <= 0:
            raise InvalidRequestError("max_workers must be > 0 when set.")
        if self.decision_state_mode not in ("aggregate", "placeholder"):
            raise InvalidRequestError(
                "decision_state_mode must be 'aggregate' or 'placeholder'."
            )
        return self


def find_variable(key: str) -> VariableConfig:
    """Look up a variable in any registry."""
    for registry in REGISTRIES.values():
        if key in registry:
            return registry[key]
    raise InvalidRequestError(f"Unknown variable '{key}'.")


def phase_index_for_year(year: int) -> int:
    """Index into PHASES of the window containing `year`.

    Years past the last window stay in the last phase; years before the
    first stay in the first.
    """
    for i in range(len(PHASES) - 1, -1, -1):
        if year >= PHASES[i].start:
            return i
    return 0


def year_labels(num_years: int, start_year: int = START_YEAR) -> List[int]:
    """Calendar years covered by a run, e.g. [2024, 2025, ..., 2040]."""
    return [start_year + y for y in range(num_years + 1)]


def scenario_labels() -> Dict[str, str]:
    return {name: s.label for name, s in SCENARIOS.items()}
