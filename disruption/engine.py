"""
Monte Carlo path engine.

Every variable follows a discrete Brownian walk with one step per year:

    value[y] = value[y-1] + drift * dt + vol * sqrt(dt) * Z,   dt = 1

before the walk is clamped to the variable's floor/cap. Drift and volatility
are shaped each year by three things, applied in this order:

1. Disruption phase
   Later phases (AI Workers, Physical Robots, AGI) amplify both drift and
   volatility.

2. Scenario
   A global multiplier regime (accelerated / regulated / collapse).

3. Policy interventions
   Every decision already in force adds its effect, weighted by a five-year
   half-life decay. Volatility touched by an intervention never drops below 1.

Randomness comes from one Mulberry32 stream per ensemble member, seeded with
seed + i * 7919, so a (seed, member) pair always replays the same path.
"""

import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from .config import (
    EFFECT_HALF_LIFE_YEARS,
    MIN_INTERVENTION_VOL,
    PHASES,
    SCENARIOS,
    SEED_STRIDE,
    START_YEAR,
    InvalidRequestError,
    SimulationCancelled,
    VariableConfig,
    phase_index_for_year,
)
from .interventions import INTERVENTIONS, Effect

if TYPE_CHECKING:
    from .decisions import DecisionRecord

logger = logging.getLogger(__name__)

_MASK32 = 0xFFFFFFFF

# Substituted for a zero first draw so log() stays finite
_LOG_EPSILON = 1e-4


class PathPoint(NamedTuple):
    year: int
    value: float


Trajectory = List[PathPoint]


def _imul(a: int, b: int) -> int:
    # Low 32 bits of the product, as a 32-bit integer multiply would give
    return (a * b) & _MASK32


def mulberry32(seed: int) -> Callable[[], float]:
    """Seeded uniform generator on [0, 1).

    Returns a zero-argument function; each call advances a 32-bit state and
    mixes it with two multiply-xor-shift rounds.
    """
    state = seed & _MASK32

    def next_uniform() -> float:
        nonlocal state
        state = (state + 0x6D2B79F5) & _MASK32
        t = _imul(state ^ (state >> 15), 1 | state)
        t = ((t + _imul(t ^ (t >> 7), 61 | t)) & _MASK32) ^ t
        return (t ^ (t >> 14)) / 4294967296

    return next_uniform


def box_muller(rng: Callable[[], float]) -> float:
    """One standard-normal draw from two uniforms (cosine branch only)."""
    u1, u2 = rng(), rng()
    return math.sqrt(-2 * math.log(u1 or _LOG_EPSILON)) * math.cos(2 * math.pi * u2)


def round2(value: float) -> float:
    """Round half-up to 2 decimals."""
    return math.floor(value * 100 + 0.5) / 100


def derive_seed(seed: int, index: int) -> int:
    return seed + index * SEED_STRIDE


def _check_request(num_years: int, scenario: str):
    if num_years < 0:
        raise InvalidRequestError("num_years must be >= 0.")
    if scenario not in SCENARIOS:
        allowed = ", ".join(SCENARIOS)
        raise InvalidRequestError(f"scenario must be one of: {allowed}")


def resolve_effects(
    config: VariableConfig,
    decision_history: Sequence["DecisionRecord"],
) -> List[Tuple[int, Effect]]:
    """(decision year, effect) pairs of a history that touch this variable.

    A record without a resolved intervention is looked up in the catalog by
    id; ids missing from the catalog are skipped with a warning and never
    fail the run.
    """
    effects = []
    for record in decision_history:
        intervention = record.intervention or INTERVENTIONS.get(record.intervention_id)
        if intervention is None:
            logger.warning(
                "Decision at %d references unknown intervention '%s'; ignoring it.",
                record.year, record.intervention_id,
            )
            continue
        effect = intervention.effect_for(config.key)
        if effect is not None:
            effects.append((record.year, effect))
    return effects


def step_parameters(
    config: VariableConfig,
    year: int,
    scenario: str = "base",
    effects: Sequence[Tuple[int, Effect]] = (),
) -> Tuple[float, float]:
    """Drift and volatility in force for one simulated year."""
    drift_mod = config.drift
    vol_mod = config.vol

    phase = PHASES[phase_index_for_year(year)]
    drift_mod *= phase.drift_mult
    vol_mod *= phase.vol_mult

    regime = SCENARIOS[scenario]
    drift_mod *= regime.drift_mult
    vol_mod *= regime.vol_mult

    for decision_year, effect in effects:
        if decision_year > year:
            continue
        weight = 0.5 ** ((year - decision_year) / EFFECT_HALF_LIFE_YEARS)
        drift_mod += effect.drift * weight
        vol_mod = max(MIN_INTERVENTION_VOL, vol_mod + effect.vol * weight)

    return drift_mod, vol_mod


def _simulate(config, num_years, seed, scenario, effects, start_year) -> Trajectory:
    rng = mulberry32(seed)
    dt = 1
    val = float(config.base)
    path = [PathPoint(start_year, val)]

    for y in range(1, num_years + 1):
        year = start_year + y
        drift_mod, vol_mod = step_parameters(config, year, scenario, effects)

        shock = box_muller(rng)
        val = val + drift_mod * dt + vol_mod * math.sqrt(dt) * shock
        if config.floor is not None:
            val = max(val, config.floor)
        if config.cap is not None:
            val = min(val, config.cap)
        path.append(PathPoint(year, round2(val)))

    return path


def generate_path(
    config: VariableConfig,
    num_years: int,
    seed: int,
    scenario: str = "base",
    decision_history: Sequence["DecisionRecord"] = (),
    start_year: int = START_YEAR,
) -> Trajectory:
    """Simulate one trajectory of `num_years` yearly steps after `start_year`."""
    _check_request(num_years, scenario)
    effects = resolve_effects(config, decision_history)
    return _simulate(config, num_years, seed, scenario, effects, start_year)


@dataclass
class Ensemble:
    """Trajectories of one request, in generation order."""

    config: VariableConfig
    scenario: str
    paths: List[Trajectory]

    def __len__(self) -> int:
        return len(self.paths)

    @property
    def years(self) -> List[int]:
        return [point.year for point in self.paths[0]]

    @property
    def values(self) -> np.ndarray:
        """Shape (num_paths, num_years + 1)."""
        return np.array(
            [[point.value for point in path] for path in self.paths], dtype=np.float64
        )


def run_paths(
    config: VariableConfig,
    num_paths: int,
    num_years: int,
    seed: int,
    scenario: str = "base",
    decision_history: Sequence["DecisionRecord"] = (),
    start_year: int = START_YEAR,
    max_workers: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> Ensemble:
    """Simulate `num_paths` independent members; member i uses derive_seed(seed, i).

    With max_workers > 1 members run on a thread pool; the ensemble keeps
    index order either way. `cancel_event` (threading.Event) is polled before
    each member and aborts the whole batch with SimulationCancelled.
    """
    if num_paths <= 0:
        raise InvalidRequestError("num_paths must be > 0.")
    _check_request(num_years, scenario)

    effects = resolve_effects(config, decision_history)
    logger.debug(
        "Simulating %s: %d paths x %d years, seed=%d, scenario=%s, %d decisions",
        config.key, num_paths, num_years, seed, scenario, len(decision_history),
    )

    def member(i: int) -> Trajectory:
        if cancel_event is not None and cancel_event.is_set():
            raise SimulationCancelled(f"cancelled at member {i}/{num_paths}")
        return _simulate(config, num_years, derive_seed(seed, i), scenario, effects, start_year)

    try:
        if max_workers is None or max_workers <= 1:
            paths = [member(i) for i in range(num_paths)]
        else:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                paths = list(pool.map(member, range(num_paths)))
    except SimulationCancelled:
        logger.info("Cancellation requested; discarding %s ensemble", config.key)
        raise

    return Ensemble(config=config, scenario=scenario, paths=paths)
