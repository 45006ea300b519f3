"""Tests for the command-line report script."""
import runpy
import sys
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "default_rate_report.py"


def _run(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", [str(SCRIPT), *args])
    runpy.run_path(str(SCRIPT), run_name="__main__")


def test_missing_column_exits_cleanly(tmp_path, monkeypatch, caplog):
    csv = tmp_path / "loans.csv"
    csv.write_text("rating,borrower_rate\nB,0.1\n")
    with pytest.raises(SystemExit) as exc:
        _run(monkeypatch, str(csv))
    assert exc.value.code == 1
    assert "Cannot find column" in caplog.text


def test_empty_file_exits_cleanly(tmp_path, monkeypatch, caplog):
    csv = tmp_path / "empty.csv"
    csv.write_bytes(b"")
    with pytest.raises(SystemExit) as exc:
        _run(monkeypatch, str(csv))
    assert exc.value.code == 1
    assert "empty" in caplog.text


def test_bad_recovery_bounds_exit_code(tmp_path, monkeypatch):
    csv = tmp_path / "loans.csv"
    csv.write_text("rating,status,borrower_rate\nB,Completed,0.15\nB,Chargedoff,0.15\n")
    with pytest.raises(SystemExit) as exc:
        _run(monkeypatch, str(csv), "--recovery", "0.3", "0.2", "0.1")
    assert exc.value.code == 2


def test_report_printed(tmp_path, monkeypatch, capsys):
    csv = tmp_path / "loans.csv"
    csv.write_text("rating,status,borrower_rate\nB,Completed,0.15\nB,Chargedoff,0.15\n")
    _run(monkeypatch, str(csv))
    assert "ADJUSTED RATES" in capsys.readouterr().out
