"""
Policy decisions: the rule-based recommender and the checkpoint session.

A DecisionSession walks through the checkpoint years in order:

    IDLE --advance(year)--> OPEN(checkpoint) --resolve/accept--> RESOLVED
      ^                        |                                    |
      +--------- skip ---------+---------- advance(next year) ------+

Every resolved checkpoint appends one DecisionRecord to the session history,
which the engine threads into later path generation.
"""

import enum
import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .config import (
    DECISION_YEARS,
    MACRO_VARS,
    DecisionStateError,
    SimulationParams,
    phase_index_for_year,
)
from .interventions import (
    INTERVENTIONS,
    Intervention,
    applicable_interventions,
    get_intervention,
)
from .simulator import MonteCarloSimulator

logger = logging.getLogger(__name__)

# Macro variables the recommender reads
DECISION_DRIVERS = (
    "socialStability",
    "whiteCollarEmployment",
    "blueCollarEmployment",
    "inequality",
)

_DEFAULT_MEDIAN = 100.0


def _median(state: Mapping[str, float], key: str) -> float:
    value = state.get(key)
    return _DEFAULT_MEDIAN if value is None else value


def recommend(state: Mapping[str, float], phase_index: int, scenario: str) -> str:
    """Recommended intervention id for a checkpoint, optimizing for stability.

    `state` maps variable keys to their latest median; missing drivers read
    as 100. Rules are checked in priority order and the first match wins.
    """
    stability = _median(state, "socialStability")
    employment = (
        _median(state, "whiteCollarEmployment") + _median(state, "blueCollarEmployment")
    ) / 2
    inequality = _median(state, "inequality")

    # Stability crisis
    if stability < 40:
        if inequality > 150:
            return "wealth_tax"
        if employment < 50:
            return "aggressive_ubi"
        return "regulation_slowdown"

    # Pre-crisis
    if stability < 60:
        if employment < 60 and phase_index >= 2:
            return "aggressive_ubi"
        if inequality > 140:
            return "wealth_tax"
        return "regulation_slowdown"

    # Retrain while it still helps
    if employment < 50 and phase_index <= 2:
        return "retraining_initiative"

    if inequality > 160:
        return "wealth_tax"

    if scenario == "collapse":
        return "aggressive_ubi" if phase_index >= 2 else "regulation_slowdown"

    if scenario == "accelerated" and stability > 70:
        return "do_nothing"

    return "do_nothing"


@dataclass(frozen=True)
class DecisionRecord:
    year: int
    intervention_id: str
    intervention: Optional[Intervention] = None  # None when the id is not in the catalog

    def __post_init__(self):
        if self.intervention is None:
            object.__setattr__(self, "intervention", INTERVENTIONS.get(self.intervention_id))

    @classmethod
    def create(cls, year: int, intervention_id: str) -> "DecisionRecord":
        return cls(year, intervention_id, INTERVENTIONS.get(intervention_id))


def build_decision_state(
    year: int,
    params: SimulationParams = None,
    decision_history: Sequence[DecisionRecord] = (),
) -> Dict[str, float]:
    """Snapshot of the recommender's drivers at a checkpoint year.

    In "aggregate" mode each driver is simulated under `params` and the
    history so far, and its median at `year` is reported. "placeholder" mode
    reports 100 for every driver, which makes the recommender fall through
    to its scenario rules.
    """
    p = (params or SimulationParams()).validate()
    if p.decision_state_mode == "placeholder":
        return {key: _DEFAULT_MEDIAN for key in DECISION_DRIVERS}
    return {
        key: MonteCarloSimulator(MACRO_VARS[key], p).run(decision_history).median_at(year)
        for key in DECISION_DRIVERS
    }


class CheckpointState(enum.Enum):
    IDLE = "idle"
    OPEN = "open"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class Checkpoint:
    year: int
    phase_index: int
    applicable: Tuple[str, ...]
    recommended: str


class DecisionSession:
    """Decision checkpoints and their history for one interactive session."""

    def __init__(self, checkpoint_years: Sequence[int] = DECISION_YEARS):
        self.checkpoint_years = tuple(sorted(checkpoint_years))
        self.reset()

    def reset(self):
        self._history: List[DecisionRecord] = []
        self._closed = set()  # checkpoint years decided or skipped
        self._pending: Optional[Checkpoint] = None
        self._last: Optional[DecisionRecord] = None
        self.state = CheckpointState.IDLE

    @property
    def history(self) -> Tuple[DecisionRecord, ...]:
        return tuple(self._history)

    @property
    def pending(self) -> Optional[Checkpoint]:
        return self._pending

    @property
    def last_decision(self) -> Optional[DecisionRecord]:
        return self._last

    def next_checkpoint_year(self) -> Optional[int]:
        for year in self.checkpoint_years:
            if year not in self._closed:
                return year
        return None

    def advance(self, year: int, state: Mapping[str, float], scenario: str = "base") -> Optional[Checkpoint]:
        """Move simulation time to `year`.

        Opens the earliest checkpoint at or before `year` that has not been
        decided or skipped. While a checkpoint is open it stays open, but its
        recommendation is recomputed from the latest state and scenario.
        """
        if self.state is CheckpointState.OPEN:
            pending = self._pending
            recommended = recommend(state, pending.phase_index, scenario)
            if recommended != pending.recommended:
                self._pending = replace(pending, recommended=recommended)
                logger.info(
                    "Checkpoint %d recommendation changed: %s -> %s",
                    pending.year, pending.recommended, recommended,
                )
            return self._pending

        due = self.next_checkpoint_year()
        if due is None or due > year:
            self.state = CheckpointState.IDLE
            return None

        phase_index = phase_index_for_year(due)
        self._pending = Checkpoint(
            year=due,
            phase_index=phase_index,
            applicable=tuple(a.id for a in applicable_interventions(phase_index)),
            recommended=recommend(state, phase_index, scenario),
        )
        self.state = CheckpointState.OPEN
        logger.info(
            "Checkpoint %d open (phase %d), recommending %s",
            due, phase_index, self._pending.recommended,
        )
        return self._pending

    def _require_open(self) -> Checkpoint:
        if self.state is not CheckpointState.OPEN:
            raise DecisionStateError("No decision checkpoint is open.")
        return self._pending

    def _record(self, checkpoint: Checkpoint, intervention: Intervention) -> DecisionRecord:
        record = DecisionRecord(checkpoint.year, intervention.id, intervention)
        self._history.append(record)
        self._closed.add(checkpoint.year)
        self._pending = None
        self._last = record
        self.state = CheckpointState.RESOLVED
        logger.info("Checkpoint %d resolved: %s", record.year, record.intervention_id)
        return record

    def resolve(self, intervention_id: str) -> DecisionRecord:
        """Apply an explicit choice; it must be selectable in the checkpoint's phase."""
        checkpoint = self._require_open()
        intervention = get_intervention(intervention_id)
        if intervention.id not in checkpoint.applicable:
            raise DecisionStateError(
                f"'{intervention.id}' is not available in phase {checkpoint.phase_index}."
            )
        return self._record(checkpoint, intervention)

    def accept_recommendation(self) -> DecisionRecord:
        # Not limited to checkpoint.applicable: crisis rules can name an
        # out-of-phase intervention.
        checkpoint = self._require_open()
        return self._record(checkpoint, get_intervention(checkpoint.recommended))

    def skip(self):
        checkpoint = self._require_open()
        self._closed.add(checkpoint.year)
        self._pending = None
        self.state = CheckpointState.IDLE
        logger.info("Checkpoint %d skipped", checkpoint.year)
