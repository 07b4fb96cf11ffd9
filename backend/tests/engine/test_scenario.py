"""Tests for engine.simulation.scenario and engine.simulation.presets."""

from __future__ import annotations

import copy
import json
from datetime import datetime, timezone

import pytest

from engine.simulation.errors import ScenarioValidationError
from engine.simulation.presets import default_scenario, get_preset, preset_names
from engine.simulation.scenario import (
    Scenario,
    format_clock,
    format_iso,
    load_scenario,
    parse_timestamp,
    validate_scenario,
)


class TestValidateScenario:
    def test_complete_scenario(self, flat_scenario_data):
        assert validate_scenario(flat_scenario_data) == []

    def test_empty_mapping(self):
        missing = validate_scenario({})
        assert missing == [
            "meta", "clock", "zones[3]", "transmission[2]",
            "thermalUnits", "renewables", "battery", "weather",
        ]

    def test_not_a_mapping(self):
        assert "meta" in validate_scenario(None)

    def test_wrong_zone_count(self, flat_scenario_data):
        flat_scenario_data["zones"].pop()
        assert validate_scenario(flat_scenario_data) == ["zones[3]"]

    def test_wrong_link_count(self, flat_scenario_data):
        flat_scenario_data["transmission"].append(dict(flat_scenario_data["transmission"][0]))
        assert validate_scenario(flat_scenario_data) == ["transmission[2]"]

    def test_missing_meta_fields(self, flat_scenario_data):
        del flat_scenario_data["meta"]["seed"]
        del flat_scenario_data["meta"]["priceCap"]
        assert validate_scenario(flat_scenario_data) == ["meta.seed", "meta.priceCap"]

    def test_zero_seed_is_present(self, flat_scenario_data):
        flat_scenario_data["meta"]["seed"] = 0
        assert validate_scenario(flat_scenario_data) == []

    def test_zero_tick_minutes_is_missing(self, flat_scenario_data):
        flat_scenario_data["clock"]["tickMinutes"] = 0
        assert validate_scenario(flat_scenario_data) == ["clock.tickMinutes"]

    def test_no_thermal_units(self, flat_scenario_data):
        flat_scenario_data["thermalUnits"] = []
        assert validate_scenario(flat_scenario_data) == ["thermalUnits"]


class TestScenarioFromDict:
    def test_builds_records(self, flat_scenario_data):
        scenario = Scenario.from_dict(flat_scenario_data)
        assert scenario.meta.seed == 42
        assert scenario.clock.total_ticks == 24
        assert scenario.clock.tick_hours == 1.0
        assert [z.id for z in scenario.zones] == ["A", "B", "C"]
        assert scenario.transmission[0].from_zone == "A"
        assert scenario.battery.energy_capacity == 100.0
        assert scenario.clock.start == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_defaults(self, flat_scenario_data):
        del flat_scenario_data["battery"]["roundTripEff"]
        scenario = Scenario.from_dict(flat_scenario_data)
        assert scenario.battery.round_trip_eff == 0.9
        assert scenario.meta.score_weights.reliability == 0.5
        assert scenario.meta.score_weights.cost == 0.3
        assert scenario.meta.score_weights.emissions == 0.2
        assert all(u.initial_on for u in scenario.thermal_units)

    def test_missing_fields_raise(self, flat_scenario_data):
        del flat_scenario_data["weather"]
        with pytest.raises(ScenarioValidationError) as excinfo:
            Scenario.from_dict(flat_scenario_data)
        assert excinfo.value.missing == ["weather"]

    def test_unknown_zone_reference(self, flat_scenario_data):
        flat_scenario_data["thermalUnits"][0]["zone"] = "Z"
        with pytest.raises(ValueError, match="unknown zone"):
            Scenario.from_dict(flat_scenario_data)

    def test_malformed_field(self, flat_scenario_data):
        del flat_scenario_data["thermalUnits"][0]["pmax"]
        with pytest.raises(ValueError, match="Malformed"):
            Scenario.from_dict(flat_scenario_data)

    def test_does_not_alias_input(self, flat_scenario_data):
        original = copy.deepcopy(flat_scenario_data)
        scenario = Scenario.from_dict(flat_scenario_data)
        flat_scenario_data["zones"][0]["baseLoad"] = 9999
        flat_scenario_data["thermalUnits"][0]["repairHours"][0] = 99
        assert scenario.zones[0].base_load == 500.0
        assert scenario.thermal_units[0].repair_hours == (2.0, 4.0)
        assert original != flat_scenario_data

    def test_frozen(self, flat_scenario):
        with pytest.raises(AttributeError):
            flat_scenario.meta.seed = 1

    def test_non_mapping_section(self, flat_scenario_data):
        flat_scenario_data["meta"] = "oops"
        with pytest.raises(ValueError, match="Malformed"):
            Scenario.from_dict(flat_scenario_data)

    def test_load_scenario(self, tmp_path, flat_scenario_data):
        path = tmp_path / "scenario.json"
        path.write_text(json.dumps(flat_scenario_data), encoding="utf-8")
        scenario = load_scenario(path)
        assert scenario.meta.region == "Flat Test Grid"


class TestTimeHelpers:
    def test_parse_naive_as_utc(self):
        assert parse_timestamp("2024-03-01T06:30:00").tzinfo == timezone.utc

    def test_parse_offset(self):
        dt = parse_timestamp("2024-03-01T08:30:00+02:00")
        assert dt.hour == 6

    def test_format_clock(self):
        assert format_clock(datetime(2024, 3, 1, 6, 5, tzinfo=timezone.utc)) == "06:05"

    def test_format_iso_milliseconds(self):
        dt = datetime(2024, 3, 1, 6, 5, 0, 250_000, tzinfo=timezone.utc)
        assert format_iso(dt) == "2024-03-01T06:05:00.250Z"


class TestPresets:
    def test_default_preset_is_valid(self):
        assert validate_scenario(get_preset()) == []
        scenario = default_scenario()
        assert len(scenario.zones) == 3
        assert len(scenario.transmission) == 2

    def test_get_preset_returns_copy(self):
        first = get_preset("default")
        first["meta"]["seed"] = -1
        assert get_preset("default")["meta"]["seed"] != -1

    def test_names(self):
        assert "default" in preset_names()

    def test_unknown_preset(self):
        with pytest.raises(KeyError):
            get_preset("nope")
