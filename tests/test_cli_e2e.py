"""End-to-end CLI tests using typer.testing.CliRunner.

Runs the charter commands against the YAML fixtures with the flight-time
service disabled (--offline) and a fixed --now.
"""

import json
from pathlib import Path
from unittest.mock import patch

import yaml
from keyring.errors import KeyringError
from typer.testing import CliRunner

from charter.cli import app

runner = CliRunner()

FIXTURES_DIR = Path(__file__).parent / "fixtures"
ONE_WAY = str(FIXTURES_DIR / "trip_one_way.yaml")
ROUND_TRIP = str(FIXTURES_DIR / "trip_round_trip.yaml")
LONG_ROUND_TRIP = str(FIXTURES_DIR / "trip_long_round_trip.yaml")
INTERNATIONAL = str(FIXTURES_DIR / "trip_international.yaml")
BAD_AIRPORT = str(FIXTURES_DIR / "trip_bad_airport.yaml")
FIXED_BASE = str(FIXTURES_DIR / "knobs_fixed_base.yaml")
ZONE = str(FIXTURES_DIR / "knobs_zone.yaml")
LEGACY = str(FIXTURES_DIR / "knobs_legacy.yaml")
INVALID = str(FIXTURES_DIR / "knobs_invalid.yaml")
NOT_A_MAPPING = str(FIXTURES_DIR / "not_a_mapping.yaml")

OFFLINE = ["--offline", "--now", "2026-10-01T08:00:00"]


def _quote(*args):
    return runner.invoke(app, ["quote", *args, *OFFLINE])


# ---------------------------------------------------------------------------
# Help
# ---------------------------------------------------------------------------


class TestHelp:
    def test_root_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "quote" in result.output
        assert "compare" in result.output
        assert "migrate" in result.output

    def test_quote_help(self):
        result = runner.invoke(app, ["quote", "--help"])
        assert result.exit_code == 0
        assert "--offline" in result.output


# ---------------------------------------------------------------------------
# quote
# ---------------------------------------------------------------------------


class TestQuote:
    def test_plain(self):
        result = _quote(ONE_WAY, FIXED_BASE, "--plain")
        assert result.exit_code == 0
        assert "Status: OK" in result.output
        assert "KHPN-KTEB" in result.output
        assert "TOTAL" in result.output

    def test_json(self):
        result = _quote(ONE_WAY, FIXED_BASE, "--json")
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["status"] == "OK"
        items_total = sum(i["amount"] for i in data["lineItems"])
        assert data["totals"]["total"] == round(items_total, 2)
        assert [leg["kind"] for leg in data["legs"]] == ["REPO", "OCCUPIED", "REPO"]

    def test_round_trip_overnight_fee(self):
        result = _quote(ROUND_TRIP, FIXED_BASE, "--json")
        assert result.exit_code == 0
        codes = [i["code"] for i in json.loads(result.stdout)["lineItems"]]
        assert "FEE_OVERNIGHT" in codes
        assert "INFO_SPLIT" not in codes

    def test_long_round_trip_split(self):
        result = _quote(LONG_ROUND_TRIP, FIXED_BASE, "--json")
        assert result.exit_code == 0
        items = json.loads(result.stdout)["lineItems"]
        assert items[-1]["code"] == "INFO_SPLIT"
        assert {i["meta"].get("leg") for i in items[:-1]} == {"OUTBOUND", "RETURN"}

    def test_zone_network(self):
        result = _quote(ONE_WAY, ZONE, "--json")
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["zoneCalculation"]["outboundZone"]["zoneId"] == "ne"
        assert data["zoneCalculation"]["inboundZone"]["zoneId"] == "se"

    def test_legacy_knobs_migrated(self):
        result = _quote(LONG_ROUND_TRIP, LEGACY, "--json")
        assert result.exit_code == 0
        split = json.loads(result.stdout)["lineItems"][-1]
        assert split["code"] == "INFO_SPLIT"
        assert split["meta"]["threshold"] == 3

    def test_rejection_exits_1(self):
        result = _quote(INTERNATIONAL, FIXED_BASE, "--plain")
        assert result.exit_code == 1
        assert "DOMESTIC_ONLY" in result.output

    def test_too_far_ahead(self):
        result = runner.invoke(
            app, ["quote", ONE_WAY, FIXED_BASE, "--offline", "--now", "2026-06-01T08:00:00", "--json"]
        )
        assert result.exit_code == 1
        assert json.loads(result.stdout)["rejectReasons"][0]["code"] == "ADVANCE_TOO_FAR"

    def test_missing_file(self):
        result = _quote("nonexistent.yaml", FIXED_BASE)
        assert result.exit_code != 0
        assert "not found" in result.output.lower()

    def test_not_a_mapping(self):
        result = _quote(NOT_A_MAPPING, FIXED_BASE)
        assert result.exit_code != 0

    def test_invalid_knobs(self):
        result = _quote(ONE_WAY, INVALID)
        assert result.exit_code == 2

    def test_unknown_airport(self):
        result = _quote(BAD_AIRPORT, FIXED_BASE)
        assert result.exit_code == 2
        assert "QQQQ" in result.output

    def test_bad_now(self):
        result = runner.invoke(app, ["quote", ONE_WAY, FIXED_BASE, "--offline", "--now", "tomorrow"])
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# compare
# ---------------------------------------------------------------------------


class TestCompare:
    def test_selected_categories(self):
        result = runner.invoke(
            app, ["compare", ONE_WAY, FIXED_BASE, "-c", "CAT1", "-c", "CAT8", *OFFLINE, "--json"]
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["type"] == "comparison"
        assert {q["label"] for q in data["quotes"]} == {"CAT1", "CAT8"}
        totals = [q["totals"]["total"] for q in data["quotes"]]
        assert totals == sorted(totals)

    def test_all_categories_plain(self):
        result = runner.invoke(app, ["compare", ONE_WAY, FIXED_BASE, *OFFLINE, "--plain"])
        assert result.exit_code == 0
        assert "Comparison" in result.output
        assert "CAT8" in result.output

    def test_nothing_eligible(self):
        result = runner.invoke(app, ["compare", INTERNATIONAL, FIXED_BASE, *OFFLINE, "--plain"])
        assert result.exit_code == 1
        assert "No eligible quotes." in result.output


# ---------------------------------------------------------------------------
# migrate / airport
# ---------------------------------------------------------------------------


class TestMigrate:
    def test_moves_split_threshold(self):
        result = runner.invoke(app, ["migrate", LEGACY])
        assert result.exit_code == 0
        migrated = yaml.safe_load(result.stdout)
        assert migrated["trip"]["maxNightsBeforeSplit"] == 3
        assert "maxNightsBeforeSplit" not in migrated["fees"]["overnight"]

    def test_current_file_unchanged(self):
        result = runner.invoke(app, ["migrate", FIXED_BASE])
        assert result.exit_code == 0
        with open(FIXED_BASE) as f:
            assert yaml.safe_load(result.stdout) == yaml.safe_load(f)


class TestAirport:
    def test_plain(self):
        result = runner.invoke(app, ["airport", "KTEB", "--plain"])
        assert result.exit_code == 0
        assert "Airport KTEB" in result.output
        assert "NJ" in result.output

    def test_iata_code(self):
        result = runner.invoke(app, ["airport", "LAX", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["icao"] == "KLAX"

    def test_unknown(self):
        result = runner.invoke(app, ["airport", "QQQQ"])
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# config / cache
# ---------------------------------------------------------------------------


class TestConfig:
    def test_set_flight_time_key(self):
        with patch("keyring.set_password") as set_password:
            result = runner.invoke(app, ["config", "set-flight-time", "--api-key", "secret"])
        assert result.exit_code == 0
        set_password.assert_called_once_with("charter-flight-time", "api_key", "secret")
        assert "saved" in result.output

    def test_keyring_failure(self):
        with patch("keyring.set_password", side_effect=KeyringError("locked")):
            result = runner.invoke(app, ["config", "set-flight-time", "--api-key", "secret"])
        assert result.exit_code == 1


class TestCache:
    def test_clear(self, tmp_cache_dir, monkeypatch):
        monkeypatch.setattr("charter.cache._DEFAULT_CACHE_DIR", tmp_cache_dir)
        (tmp_cache_dir / "ft_x.json").write_text("{}")
        result = runner.invoke(app, ["cache", "clear"])
        assert result.exit_code == 0
        assert "1 entries" in result.output
        assert list(tmp_cache_dir.glob("*.json")) == []
