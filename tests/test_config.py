import pytest

from disruption.config import (
    ASSET_CLASSES,
    MACRO_VARS,
    PHASES,
    REGISTRIES,
    SKILL_CLASSES,
    InvalidConfigError,
    InvalidRequestError,
    SimulationParams,
    UnknownInterventionError,
    VariableConfig,
    find_variable,
    phase_index_for_year,
    year_labels,
)
from disruption.interventions import (
    INTERVENTIONS,
    Effect,
    applicable_interventions,
    get_intervention,
)


@pytest.mark.parametrize(
    "kwargs,match",
    [
        ({"vol": -0.1}, "vol must be >= 0"),
        ({"floor": 50, "cap": 40, "base": 45}, "floor must be <= cap"),
        ({"floor": 120}, "base must be >= floor"),
        ({"cap": 90}, "base must be <= cap"),
    ],
)
def test_variable_config_rejects_invalid_values(kwargs, match):
    args = {"key": "x", "label": "X", "base": 100, "drift": 1, "vol": 2}
    args.update(kwargs)
    with pytest.raises(InvalidConfigError, match=match):
        VariableConfig(**args)


def test_variable_config_accepts_zero_vol_and_touching_bounds():
    config = VariableConfig("x", "X", 10, 0, 0, floor=10, cap=10)
    assert config.floor == config.base == config.cap


def test_registries_are_read_only():
    with pytest.raises(TypeError):
        MACRO_VARS["new"] = MACRO_VARS["gdpGrowth"]
    with pytest.raises(TypeError):
        REGISTRIES["strategy"] = {}


def test_registry_sizes_and_keys_match_entries():
    assert (len(MACRO_VARS), len(ASSET_CLASSES), len(SKILL_CLASSES)) == (8, 11, 8)
    for registry in REGISTRIES.values():
        for key, config in registry.items():
            assert config.key == key


def test_find_variable_searches_every_registry():
    assert find_variable("crypto") is ASSET_CLASSES["crypto"]
    assert find_variable("coding") is SKILL_CLASSES["coding"]
    with pytest.raises(InvalidRequestError, match="Unknown variable"):
        find_variable("tulips")


def test_phases_are_contiguous_and_increasing():
    assert len(PHASES) == 5
    for prev, nxt in zip(PHASES, PHASES[1:]):
        assert prev.end == nxt.start
        assert prev.start < nxt.start


@pytest.mark.parametrize(
    "year,expected",
    [(2020, 0), (2024, 0), (2026, 1), (2027, 1), (2028, 2), (2031, 3), (2035, 4), (2040, 4), (2050, 4)],
)
def test_phase_index_for_year(year, expected):
    assert phase_index_for_year(year) == expected


def test_year_labels_cover_horizon():
    assert year_labels(16) == list(range(2024, 2041))
    assert year_labels(0, 2030) == [2030]


@pytest.mark.parametrize(
    "override,match",
    [
        ({"num_paths": 0}, "num_paths"),
        ({"num_years": -1}, "num_years"),
        ({"scenario": "boom"}, "scenario"),
        ({"sample_paths": -1}, "sample_paths"),
        ({"comparison_paths": 0}, "comparison_paths"),
        ({"max_workers": 0}, "max_workers"),
        ({"decision_state_mode": "live"}, "decision_state_mode"),
    ],
)
def test_simulation_params_validate(override, match):
    with pytest.raises(InvalidRequestError, match=match):
        SimulationParams(**override).validate()


def test_simulation_params_defaults_are_valid():
    params = SimulationParams()
    assert params.validate() is params
    assert (params.num_paths, params.num_years, params.seed) == (200, 16, 42)


def test_catalog_has_six_immutable_entries():
    assert list(INTERVENTIONS) == [
        "aggressive_ubi",
        "regulation_slowdown",
        "retraining_initiative",
        "accelerate_adoption",
        "wealth_tax",
        "do_nothing",
    ]
    with pytest.raises(TypeError):
        INTERVENTIONS["aggressive_ubi"].effects["crypto"] = Effect(1, 1)


def test_catalog_effects_reference_known_variables():
    for action in INTERVENTIONS.values():
        for key in action.effects:
            find_variable(key)


def test_get_intervention():
    ubi = get_intervention("aggressive_ubi")
    assert ubi.effect_for("ubiProbability") == Effect(8, -2)
    assert ubi.effect_for("crypto") is None
    with pytest.raises(UnknownInterventionError):
        get_intervention("space_program")


@pytest.mark.parametrize(
    "phase_index,expected",
    [
        (0, {"regulation_slowdown", "retraining_initiative", "accelerate_adoption", "do_nothing"}),
        (2, set(INTERVENTIONS)),
        (4, {"aggressive_ubi", "wealth_tax", "do_nothing"}),
    ],
)
def test_applicable_interventions(phase_index, expected):
    assert {a.id for a in applicable_interventions(phase_index)} == expected
