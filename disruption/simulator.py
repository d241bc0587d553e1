"""
Simulation entry points used by the dashboard.

MonteCarloSimulator runs one variable's ensemble and reduces it to the
percentile bands plus the handful of raw sample paths that get overlaid on
the chart. compare_variables ranks a whole registry by final-year median.
"""

from dataclasses import dataclass
from typing import List, Mapping, Sequence, Tuple

from .aggregate import PercentileRow, compute_percentiles
from .config import SimulationParams, VariableConfig, find_variable, year_labels
from .engine import Ensemble, Trajectory, run_paths


@dataclass
class SimulationResults:
    """Output of one simulation request."""

    years: List[int]
    config: VariableConfig
    scenario: str
    ensemble: Ensemble
    percentiles: List[PercentileRow]
    sample_paths: List[Trajectory]  # first few ensemble members, for overlays

    @property
    def final(self) -> PercentileRow:
        return self.percentiles[-1]

    def row_at(self, year: int) -> PercentileRow:
        """Percentile row for `year`, clamped to the simulated horizon."""
        i = min(max(year - self.years[0], 0), len(self.years) - 1)
        return self.percentiles[i]

    def median_at(self, year: int) -> float:
        return self.row_at(year).median


class MonteCarloSimulator:
    """Seeded Monte Carlo simulator for a single variable."""

    def __init__(self, config: VariableConfig, params: SimulationParams = None):
        self.config = config
        self.params = params or SimulationParams()

    def run(self, decision_history: Sequence = (), cancel_event=None) -> SimulationResults:
        p = self.params.validate()
        ensemble = run_paths(
            self.config,
            p.num_paths,
            p.num_years,
            p.seed,
            scenario=p.scenario,
            decision_history=decision_history,
            start_year=p.start_year,
            max_workers=p.max_workers,
            cancel_event=cancel_event,
        )
        return SimulationResults(
            years=year_labels(p.num_years, p.start_year),
            config=self.config,
            scenario=p.scenario,
            ensemble=ensemble,
            percentiles=compute_percentiles(ensemble),
            sample_paths=ensemble.paths[: p.sample_paths],
        )


def run_simulation(
    variable_key: str,
    params: SimulationParams = None,
    decision_history: Sequence = (),
    cancel_event=None,
) -> SimulationResults:
    """Simulate a variable from any registry by key."""
    config = find_variable(variable_key)
    return MonteCarloSimulator(config, params).run(decision_history, cancel_event)


@dataclass(frozen=True)
class VariableSummary:
    label: str
    final_median: float
    final_p10: float
    final_p90: float


def compare_variables(
    registry: Mapping[str, VariableConfig],
    params: SimulationParams = None,
) -> List[Tuple[str, VariableSummary]]:
    """Final-year bands of every variable in a registry, best median first.

    Runs `comparison_paths` members per variable and ignores decisions, so
    the ranking reflects the scenario alone.
    """
    p = (params or SimulationParams()).validate()
    results = {}
    for key, config in registry.items():
        ensemble = run_paths(
            config, p.comparison_paths, p.num_years, p.seed,
            scenario=p.scenario, start_year=p.start_year,
        )
        last = compute_percentiles(ensemble)[-1]
        results[key] = VariableSummary(config.label, last.median, last.p10, last.p90)
    return sorted(results.items(), key=lambda item: item[1].final_median, reverse=True)
