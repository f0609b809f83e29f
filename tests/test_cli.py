"""
Smoke tests for the command line interface.
"""

import json

import pytest
from typer.testing import CliRunner

from groupslots.cli.app import app

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "timezone: Asia/Seoul\n"
        "members:\n"
        "  - name: minji\n"
        "    user_id: u-minji\n"
        "  - name: junho\n"
        "    user_id: u-junho\n",
        encoding="utf-8",
    )
    return path


def test_find_from_request_file(tmp_path, config_file):
    request = {
        "participants": [
            {"id": "p1", "busySchedules": [{"start": "2024-11-25T10:00:00", "end": "2024-11-25T11:00:00"}]},
            {"id": "p2", "busySchedules": [{"start": "2024-11-25T13:00:00", "end": "2024-11-25T14:00:00"}]},
        ],
        "startDate": "2024-11-25",
        "endDate": "2024-11-25",
        "minDurationMinutes": 30,
    }
    request_path = tmp_path / "request.json"
    request_path.write_text(json.dumps(request), encoding="utf-8")

    result = runner.invoke(app, ["find", "--config", str(config_file), "--request", str(request_path), "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["totalFreeSlotsFound"] == 3
    assert payload["freeSlots"][2]["startTime"] == "2024-11-25T14:00:00+09:00"


def test_find_group_with_mock_data(config_file):
    result = runner.invoke(app, [
        "find", "--config", str(config_file),
        "--group", "1", "--mock",
        "--start", "2025-12-01", "--end", "2025-12-01",
        "--json",
    ])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["groupName"] == "Capstone Design Team"
    assert payload["participantCount"] == 3
    assert payload["totalFreeSlotsFound"] == 3


def test_find_selected_members_by_alias(config_file):
    """Configured aliases resolve to user ids."""
    result = runner.invoke(app, [
        "find", "minji", "junho", "--config", str(config_file),
        "--group", "1", "--mock",
        "--start", "2025-12-02", "--end", "2025-12-02",
        "--duration", "120", "--json",
    ])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["participantCount"] == 2
    # Minji works 18:00-22:00 on Tuesdays
    assert [slot["durationMinutes"] for slot in payload["freeSlots"]] == [540]


def test_find_table_output(config_file):
    result = runner.invoke(app, [
        "find", "--config", str(config_file),
        "--group", "1", "--mock",
        "--start", "2025-12-01", "--end", "2025-12-01",
    ])

    assert result.exit_code == 0, result.output
    assert "Capstone Design Team" in result.stdout
    assert "11:30 - 13:00" in result.stdout


def test_find_reports_empty_result(config_file):
    result = runner.invoke(app, [
        "find", "--config", str(config_file),
        "--group", "1", "--mock",
        "--start", "2025-12-02", "--end", "2025-12-02",
        "--hours", "09:00-18:00",
    ])

    assert result.exit_code == 0, result.output
    assert "No common free time found." in result.stdout


def test_find_rejects_reversed_hours(config_file):
    result = runner.invoke(app, [
        "find", "--config", str(config_file),
        "--group", "1", "--mock",
        "--start", "2025-12-01", "--end", "2025-12-01",
        "--hours", "22:00-09:00",
    ])

    assert result.exit_code == 1
    assert "Invalid request" in result.stdout


def test_find_requires_group_or_request(config_file):
    result = runner.invoke(app, ["find", "--config", str(config_file), "--start", "2025-12-01"])

    assert result.exit_code == 1


def test_list_members(config_file):
    result = runner.invoke(app, ["list-members", "--group", "1", "--mock", "--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "Minji" in result.stdout
    assert "u-seoyeon" in result.stdout


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "0.1.0" in result.stdout
