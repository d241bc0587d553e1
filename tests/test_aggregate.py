import pytest

from disruption.aggregate import PercentileRow, compute_percentiles, percentiles_frame
from disruption.config import MACRO_VARS, InvalidRequestError
from disruption.engine import PathPoint, run_paths


def _path(*values, start_year=2024):
    return [PathPoint(start_year + i, v) for i, v in enumerate(values)]


def test_percentiles_use_floor_indexed_order_statistics():
    # Ten members with final values 10..1, shuffled order
    finals = [7, 3, 10, 1, 5, 9, 2, 8, 4, 6]
    paths = [_path(100, v) for v in finals]
    last = compute_percentiles(paths)[-1]
    assert last == PercentileRow(year=2025, p10=2, p25=3, median=6, p75=8, p90=10, mean=5.5)


def test_percentiles_single_member_collapses_to_value():
    rows = compute_percentiles([_path(100, 42.5, 40.25)])
    for row, value in zip(rows, (100, 42.5, 40.25)):
        assert row.p10 == row.p25 == row.median == row.p75 == row.p90 == row.mean == value


def test_percentiles_mean_is_rounded_to_cents():
    rows = compute_percentiles([_path(1), _path(2), _path(2)])
    assert rows[0].mean == 1.67


def test_percentiles_match_reference_ensemble():
    ensemble = run_paths(MACRO_VARS["whiteCollarEmployment"], 200, 16, 42, "base")
    rows = compute_percentiles(ensemble)
    assert len(rows) == 17
    assert rows[0] == PercentileRow(2024, 100, 100, 100, 100, 100, 100)
    assert rows[-1] == PercentileRow(
        year=2040, p10=15, p25=15.59, median=29.41, p75=45.73, p90=61.98, mean=33.29
    )


@pytest.mark.parametrize("scenario", ["base", "accelerated", "regulated", "collapse"])
def test_percentile_rows_are_ordered(scenario):
    ensemble = run_paths(MACRO_VARS["gdpGrowth"], 150, 16, 7, scenario)
    for row in compute_percentiles(ensemble):
        assert row.p10 <= row.p25 <= row.median <= row.p75 <= row.p90


def test_percentiles_ignore_member_order():
    ensemble = run_paths(MACRO_VARS["inequality"], 50, 16, 3, "base")
    assert compute_percentiles(ensemble) == compute_percentiles(list(reversed(ensemble.paths)))


def test_percentiles_reject_empty_ensemble():
    with pytest.raises(InvalidRequestError, match="empty"):
        compute_percentiles([])


def test_percentiles_reject_ragged_ensemble():
    with pytest.raises(InvalidRequestError, match="same length"):
        compute_percentiles([_path(1, 2), _path(1)])


def test_percentiles_frame_has_one_row_per_year():
    ensemble = run_paths(MACRO_VARS["productivity"], 20, 16, 5, "base")
    frame = percentiles_frame(compute_percentiles(ensemble))
    assert list(frame.columns) == ["year", "p10", "p25", "median", "p75", "p90", "mean"]
    assert frame["year"].tolist() == list(range(2024, 2041))
