from __future__ import annotations

import json

import pytest

from drive_log.cli import main


@pytest.fixture
def base(tmp_path) -> list[str]:
    return ["--store", str(tmp_path / "log.json"), "--tz", "America/Chicago"]


def _json_out(capsys) -> object:
    return json.loads(capsys.readouterr().out)


def test_start_finish_and_stats(base, capsys):
    assert main(["start", *base, "--driver", "Sam", "--at", "2024-12-15 17:00"]) == 0
    assert main(["finish", *base, "--at", "2024-12-15 18:30"]) == 0
    capsys.readouterr()

    assert main(["stats", *base, "--json"]) == 0
    stats = _json_out(capsys)
    assert stats["total_hours"] == 1.5
    assert stats["night_hours"] == 1.5
    assert stats["hours_needed"] == 48.5
    assert stats["in_progress"] is None


def test_second_start_is_refused(base, capsys):
    assert main(["start", *base, "--driver", "Sam", "--at", "2024-12-15 10:00"]) == 0
    assert main(["start", *base, "--driver", "Sam", "--at", "2024-12-15 11:00"]) == 1
    assert "already in progress" in capsys.readouterr().err


def test_finish_before_start_reports_field_error(base, capsys):
    assert main(["start", *base, "--driver", "Sam", "--at", "2024-12-15 10:00"]) == 0
    assert main(["finish", *base, "--at", "2024-12-15 09:00"]) == 1
    assert "ended_at must be after start time" in capsys.readouterr().err


def test_finish_without_running_drive(base, capsys):
    assert main(["finish", *base]) == 1
    assert "No drive in progress" in capsys.readouterr().err


def test_edit_and_delete(base, capsys):
    main(["start", *base, "--driver", "Sam", "--at", "2024-12-15 13:00"])
    main(["finish", *base, "--at", "2024-12-15 14:00"])
    capsys.readouterr()
    main(["list", *base, "--json"])
    (session,) = _json_out(capsys)
    assert session["is_night_drive"] is False

    assert main(["edit", *base, "--id", session["id"], "--end", "2024-12-15 17:30"]) == 0
    capsys.readouterr()
    main(["list", *base, "--json"])
    (edited,) = _json_out(capsys)
    assert edited["duration_minutes"] == 270
    assert edited["is_night_drive"] is True

    assert main(["delete", *base, "--id", session["id"]]) == 0
    assert main(["delete", *base, "--id", session["id"]]) == 1


def test_other_users_drive_is_refused(base, capsys):
    main(["start", *base, "--driver", "Sam", "--at", "2024-12-15 13:00"])
    capsys.readouterr()
    main(["list", *base, "--json"])
    (session,) = _json_out(capsys)
    other = [*base, "--user", "someone-else"]

    assert main(["finish", *other, "--id", session["id"], "--at", "2024-12-15 14:00"]) == 1
    assert main(["edit", *other, "--id", session["id"], "--notes", "mine now"]) == 1
    assert main(["delete", *other, "--id", session["id"]]) == 1
    assert "belongs to another user" in capsys.readouterr().err

    main(["list", *base, "--json"])
    (unchanged,) = _json_out(capsys)
    assert unchanged == session


def test_calendar_json(base, capsys):
    assert main(["calendar", *base, "--days", "7", "--json"]) == 0
    cal = _json_out(capsys)
    assert cal["label"] == "Last week"
    assert len(cal["days"]) == 7


def test_is_night(base, capsys):
    assert main(["is-night", *base, "--at", "2024-12-15 17:00"]) == 0
    assert capsys.readouterr().out.strip().endswith("night")

    assert main(["is-night", *base, "--at", "2024-12-15 14:00"]) == 0
    assert capsys.readouterr().out.strip().endswith("day")


def test_bad_inputs(base, capsys):
    assert main(["is-night", *base, "--lat", "95", "--lon", "0"]) == 1
    assert main(["start", *base, "--driver", "Sam", "--at", "yesterday-ish"]) == 1
    assert "Cannot parse time" in capsys.readouterr().err


def test_remind(base, capsys):
    assert main(["start", *base, "--driver", "Sam", "--at", "2024-12-15 10:00"]) == 0
    capsys.readouterr()

    assert main(["remind", *base]) == 0
    (line,) = capsys.readouterr().out.strip().splitlines()
    assert json.loads(line)["title"] == "Drive in Progress"
