"""Tests for the gensync CLI command surface."""

from __future__ import annotations

import json

import pytest

from conftest import START_MS, FakeEngineClient, make_queued
from gensync import cli, transitions
from gensync.cli import build_parser, main


@pytest.fixture
def engine(monkeypatch: pytest.MonkeyPatch) -> FakeEngineClient:
    client = FakeEngineClient()
    monkeypatch.setattr(cli, "build_client", lambda args: client)
    return client


def test_status_prints_wire_payload(engine: FakeEngineClient, capsys) -> None:
    engine.remote["gnr-1"] = make_queued("gnr-1")

    exit_code = main(["status", "gnr-1"])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["id"] == "gnr-1"
    assert payload["status"] == "queued"
    assert payload["queuedAt"] == START_MS + 5


def test_status_unknown_generation(engine: FakeEngineClient, capsys) -> None:
    exit_code = main(["status", "gnr-missing"])

    assert exit_code == 1
    assert "Unknown generation: gnr-missing" in capsys.readouterr().out


def test_watch_prints_transitions_until_terminal(engine: FakeEngineClient, capsys) -> None:
    queued = make_queued("gnr-1")
    running = transitions.start(queued, START_MS + 100)
    engine.script("gnr-1", [queued, running, transitions.complete(running, START_MS + 200)])

    exit_code = main(["watch", "gnr-1", "--poll-interval", "0.01", "--timeout", "5"])

    assert exit_code == 0
    assert capsys.readouterr().out.splitlines() == ["gnr-1\trunning", "gnr-1\tcompleted"]


def test_watch_reports_non_success_exit_code(engine: FakeEngineClient, capsys) -> None:
    queued = make_queued("gnr-1")
    engine.script("gnr-1", [queued, transitions.fail(queued, START_MS + 100, transitions.TIMEOUT_ERROR)])

    exit_code = main(["watch", "gnr-1", "--poll-interval", "0.01"])

    assert exit_code == 2
    assert capsys.readouterr().out.splitlines() == ["gnr-1\tfailed"]


def test_cancel_requests_remote_cancellation(engine: FakeEngineClient, capsys) -> None:
    exit_code = main(["cancel", "gnr-1"])

    assert exit_code == 0
    assert engine.cancel_calls == ["gnr-1"]
    assert "requested cancel for gnr-1" in capsys.readouterr().out


def test_node_generations_lists_sorted(engine: FakeEngineClient, capsys) -> None:
    engine.node_generations = [
        make_queued("gnr-late", START_MS + 100),
        transitions.cancel(make_queued("gnr-gone", START_MS + 50), START_MS + 60),
        make_queued("gnr-early", START_MS),
    ]

    exit_code = main(["node-generations", "nd-1", "--origin-type", "workspace", "--origin-id", "wrks-1"])

    assert exit_code == 0
    lines = capsys.readouterr().out.splitlines()
    assert [line.split("\t")[0] for line in lines] == ["gnr-early", "gnr-late"]


def test_node_generations_empty(engine: FakeEngineClient, capsys) -> None:
    exit_code = main(["node-generations", "nd-2", "--origin-type", "workspace", "--origin-id", "wrks-1"])

    assert exit_code == 0
    assert "No generations for node nd-2" in capsys.readouterr().out


@pytest.mark.parametrize(
    ("argv", "command"),
    [
        (["status", "gnr-1"], "status"),
        (["watch", "gnr-1"], "watch"),
        (["cancel", "gnr-1"], "cancel"),
        (["node-generations", "nd-1", "--origin-type", "run", "--origin-id", "r1"], "node-generations"),
    ],
)
def test_parser_routes_subcommands(argv: list[str], command: str) -> None:
    args = build_parser().parse_args(["--base-url", "http://engine.test", *argv])

    assert args.command == command
    assert args.base_url == "http://engine.test"
