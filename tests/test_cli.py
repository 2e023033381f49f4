"""Tests for the subs command-line interface."""

import json
from pathlib import Path

import yaml
from click.testing import CliRunner

from subtracker.bin.subs import main
from subtracker.lib.store import SubscriptionStore


def _write_feed(root: Path) -> Path:
    records = [
        {"name": "NETFLIX.COM", "amount": 15.99, "date": d}
        for d in ["2024-01-05", "2024-02-05", "2024-03-06", "2024-04-04"]
    ] + [
        {"name": "PAYROLL DEPOSIT", "amount": 2000, "date": d}
        for d in ["2024-01-15", "2024-02-15", "2024-03-15"]
    ]
    path = root / "transactions.jsonl"
    path.write_text("\n".join(json.dumps(r) for r in records) + "\n")
    return path


def _stored(root: Path):
    with SubscriptionStore(root / ".subtracker" / "subscriptions.sqlite") as store:
        return store.list()


def test_detect_saves_candidates(tmp_path):
    feed = _write_feed(tmp_path)
    result = CliRunner().invoke(main, ["detect", str(feed), "--root", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "Loaded 7 transactions" in result.output
    assert "Merged 1 candidate(s)" in result.output

    [sub] = _stored(tmp_path)
    assert sub.name == "Netflix"
    assert sub.status == "suggested"


def test_detect_no_save(tmp_path):
    feed = _write_feed(tmp_path)
    result = CliRunner().invoke(main, ["detect", str(feed), "--no-save", "--root", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert not (tmp_path / ".subtracker" / "subscriptions.sqlite").exists()


def test_detect_csv_requires_profile(tmp_path):
    csv_file = tmp_path / "export.csv"
    csv_file.write_text("Date,Description,Amount\n")
    result = CliRunner().invoke(main, ["detect", str(csv_file), "--root", str(tmp_path)])
    assert result.exit_code == 1


def test_detect_csv_with_profile(tmp_path):
    profiles = tmp_path / ".subtracker" / "csv_profiles"
    profiles.mkdir(parents=True)
    with open(profiles / "bank.yaml", "w") as f:
        yaml.dump(
            {
                "institution": "bank",
                "columns": {"date": "Date", "name": "Description", "amount": "Amount"},
                "date_format": "%Y-%m-%d",
                "amount_invert": True,
            },
            f,
        )
    csv_file = tmp_path / "export.csv"
    csv_file.write_text(
        "Date,Description,Amount\n"
        "2024-01-10,SPOTIFY P0123,-9.99\n"
        "2024-02-10,SPOTIFY P0123,-9.99\n"
        "2024-03-10,SPOTIFY P0123,-9.99\n"
    )
    result = CliRunner().invoke(
        main, ["detect", str(csv_file), "--profile", "bank", "--root", str(tmp_path)]
    )
    assert result.exit_code == 0, result.output
    assert [s.name for s in _stored(tmp_path)] == ["Spotify"]


def test_confirm_then_cashflow(tmp_path):
    runner = CliRunner()
    feed = _write_feed(tmp_path)
    runner.invoke(main, ["detect", str(feed), "--root", str(tmp_path)])
    [sub] = _stored(tmp_path)

    result = runner.invoke(main, ["confirm", sub.id, "--root", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "Netflix: confirmed" in result.output
    assert _stored(tmp_path)[0].status == "confirmed"

    for args in (["list"], ["clusters"], ["cashflow", "--months", "3"]):
        result = runner.invoke(main, [*args, "--root", str(tmp_path)])
        assert result.exit_code == 0, result.output


def test_set_category(tmp_path):
    runner = CliRunner()
    feed = _write_feed(tmp_path)
    runner.invoke(main, ["detect", str(feed), "--root", str(tmp_path)])
    [sub] = _stored(tmp_path)

    result = runner.invoke(main, ["set", sub.id, "--category", "Family", "--root", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert _stored(tmp_path)[0].category == "Family"


def test_unknown_id_fails(tmp_path):
    result = CliRunner().invoke(main, ["ignore", "nope", "--root", str(tmp_path)])
    assert result.exit_code == 1


def test_add_rule(tmp_path):
    result = CliRunner().invoke(
        main,
        ["add-rule", "^CRAVE", "--name", "Crave", "--category", "Media", "--root", str(tmp_path)],
    )
    assert result.exit_code == 0, result.output
    with open(tmp_path / ".subtracker" / "rules.yaml") as f:
        saved = yaml.safe_load(f)
    assert saved["rules"][0]["rename"] == "Crave"


def test_add_rule_bad_pattern(tmp_path):
    result = CliRunner().invoke(main, ["add-rule", "([", "--root", str(tmp_path)])
    assert result.exit_code == 1


def test_add_rule_bad_rename(tmp_path):
    result = CliRunner().invoke(
        main, ["add-rule", "GYM", "--name", r"AT\T Gym", "--root", str(tmp_path)]
    )
    assert result.exit_code == 1
    assert not (tmp_path / ".subtracker" / "rules.yaml").exists()
