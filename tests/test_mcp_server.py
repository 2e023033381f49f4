"""Tests for the MCP tool handlers."""

import asyncio
import json

from subtracker.lib.mcp_server import call_tool, list_tools
from subtracker.lib.project import Project
from subtracker.lib.subscription import CandidateSubscription


def _seed(root):
    sub = CandidateSubscription(
        id="netflix1",
        name="Netflix",
        normalized_key="NETFLIX COM",
        amount=15.99,
        cadence="monthly",
        last_seen_date="2024-04-04",
        occurrence_count=4,
        confidence="high",
        needs_review=False,
        category="Media",
    )
    with Project(root).open_store() as store:
        store.upsert_many([sub])


def _call(name, arguments=None):
    [content] = asyncio.run(call_tool(name, arguments or {}))
    return content.text


def test_list_tools_names():
    tools = asyncio.run(list_tools())
    assert {t.name for t in tools} == {
        "subs_list",
        "subs_totals",
        "subs_clusters",
        "subs_cashflow",
        "subs_set_status",
    }


def test_set_status_and_totals(tmp_path, monkeypatch):
    monkeypatch.setenv("SUBTRACKER_ROOT", str(tmp_path))
    _seed(tmp_path)

    listed = json.loads(_call("subs_list", {"status": "suggested"}))
    assert [s["id"] for s in listed] == ["netflix1"]

    updated = json.loads(_call("subs_set_status", {"id": "netflix1", "status": "confirmed"}))
    assert updated["status"] == "confirmed"

    totals = json.loads(_call("subs_totals"))
    assert totals["annual"] == 191.88

    clusters = json.loads(_call("subs_clusters"))
    assert clusters["clusters"][0]["category"] == "Media"


def test_errors_are_returned_as_text(tmp_path, monkeypatch):
    monkeypatch.setenv("SUBTRACKER_ROOT", str(tmp_path))
    assert _call("subs_set_status", {"id": "missing", "status": "confirmed"}).startswith("Error:")
    assert _call("subs_set_status", {"id": "x", "status": "bogus"}).startswith("Error:")
    assert _call("nope").startswith("Unknown tool")


def test_cashflow_rejects_bad_months(tmp_path, monkeypatch):
    monkeypatch.setenv("SUBTRACKER_ROOT", str(tmp_path))
    _seed(tmp_path)
    assert _call("subs_cashflow", {"months": "six"}).startswith("Error:")
    assert _call("subs_cashflow", {"months": None}).startswith("Error:")

    points = json.loads(_call("subs_cashflow", {"months": "4"}))
    assert len(points) == 4
