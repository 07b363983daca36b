"""Integration tests for the run.py command line."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

import run
from tests.testing_utils import ADDR1, ADDR2, DEFAULT_URI
from universal_ledger.ledger import ZERO_ADDRESS, Collection, StateFileConflict, encode


@pytest.fixture
def cli(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    """Run a CLI command against a state file in tmp_path.

    Returns (exit_code, parsed stdout or None).
    """
    state = tmp_path / "state.json"
    events = tmp_path / "events.jsonl"

    def invoke(*argv: str) -> tuple[int, object]:
        code = run.main(["--state", str(state), "--events", str(events), *argv])
        out = capsys.readouterr().out
        return code, json.loads(out) if out.strip() else None

    invoke.state = state  # type: ignore[attr-defined]
    invoke.events = events  # type: ignore[attr-defined]
    return invoke


class TestDeploy:
    """Tests for the deploy command."""

    def test_deploy_writes_state(self, cli) -> None:
        code, out = cli("deploy", "--admin", ADDR1)

        assert code == 0
        assert out["admin"] == ADDR1
        saved = json.loads(cli.state.read_text())
        assert saved["metadata"]["base_uri"] == DEFAULT_URI
        assert saved["event_sequence"] == 2

    def test_deploy_refuses_overwrite(self, cli) -> None:
        cli("deploy", "--admin", ADDR1)
        code, _ = cli("deploy", "--admin", ADDR2)
        assert code == 1
        assert Collection.load(cli.state).owner == ADDR1

    def test_deploy_force(self, cli) -> None:
        cli("deploy", "--admin", ADDR1)
        code, _ = cli("deploy", "--admin", ADDR2, "--force", "--base-uri", "ipfs://x/")
        assert code == 0
        loaded = Collection.load(cli.state)
        assert loaded.owner == ADDR2
        assert loaded.base_uri == "ipfs://x/"

    def test_zero_admin_rejected(self, cli) -> None:
        code, out = cli("deploy", "--admin", ZERO_ADDRESS)
        assert code == 1
        assert out["code"] == "invalid_owner"
        assert not cli.state.exists()


class TestCommands:
    """Tests for query and mutation commands."""

    def test_command_without_state_fails(self, cli, capsys: pytest.CaptureFixture[str]) -> None:
        code = run.main(["--state", str(cli.state), "owner-of", "1"])
        assert code == 1
        assert "deploy" in capsys.readouterr().err

    def test_queries(self, cli) -> None:
        token_id = encode(111, ADDR1)
        cli("deploy", "--admin", ADDR1)

        assert cli("owner-of", str(token_id))[1]["owner"] == ADDR1
        assert cli("init-owner", hex(token_id))[1]["init_owner"] == ADDR1
        assert cli("token-uri", "1")[1]["token_uri"] == DEFAULT_URI + "GeneralKey(1)"

    def test_transfer_persists(self, cli) -> None:
        token_id = str(encode(111, ADDR1))
        cli("deploy", "--admin", ADDR1)

        code, out = cli(
            "transfer", "--from", ADDR1, "--to", ADDR2, "--token", token_id, "--caller", ADDR1
        )

        assert code == 0
        assert out["success"] is True
        assert out["events"][0]["args"]["to"] == ADDR2
        assert cli("owner-of", token_id)[1]["owner"] == ADDR2

    def test_rejected_call_leaves_state(self, cli) -> None:
        token_id = str(encode(111, ADDR1))
        cli("deploy", "--admin", ADDR1)
        before = cli.state.read_text()

        code, out = cli(
            "transfer", "--from", ADDR1, "--to", ADDR2, "--token", token_id, "--caller", ADDR2
        )

        assert code == 1
        assert out["code"] == "not_authorized"
        assert cli.state.read_text() == before

    def test_burn_then_broadcast(self, cli) -> None:
        token_id = str(encode(5, ADDR1))
        cli("deploy", "--admin", ADDR1)
        cli("burn", "--token", token_id, "--caller", ADDR1)

        code, out = cli("broadcast-mint", token_id)
        assert code == 1
        assert out["code"] == "already_transferred"

    def test_broadcast_batch(self, cli) -> None:
        cli("deploy", "--admin", ADDR1)
        code, out = cli("broadcast-self-transfer", "1", "2")
        assert code == 0
        assert [e["args"]["token_id"] for e in out["events"]] == ["1", "2"]

    def test_event_log_spans_invocations(self, cli) -> None:
        cli("deploy", "--admin", ADDR1)
        cli("broadcast-mint", "7")

        lines = [json.loads(line) for line in cli.events.read_text().splitlines()]
        assert [line["sequence"] for line in lines] == [1, 2, 3]
        assert lines[-1]["event_type"] == "Transfer"
        assert json.loads(cli.state.read_text())["event_sequence"] == 3

    def test_malformed_token(self, cli, capsys: pytest.CaptureFixture[str]) -> None:
        cli("deploy", "--admin", ADDR1)
        code, out = cli("owner-of", "banana")
        assert code == 1
        assert out is None

    def test_stale_save_refused(self, cli) -> None:
        """A commit by another process between load and save wins; ours is dropped."""
        token_id = encode(111, ADDR1)
        cli("deploy", "--admin", ADDR1)
        args = run.build_parser().parse_args(
            ["--state", str(cli.state), "--events", str(cli.events), "burn", "--token", "0",
             "--caller", ADDR1]
        )

        def interleaved(collection: Collection) -> object:
            server = Collection.load(cli.state)
            server.broadcast_mint(encode(1, ADDR1))
            server.save(cli.state)
            return collection.transfer_from(ADDR1, ADDR2, token_id, ADDR1)

        with pytest.raises(StateFileConflict):
            run._mutate(args, interleaved)

        assert Collection.load(cli.state).owner_of(token_id) == ADDR1
        types = [json.loads(line)["event_type"] for line in cli.events.read_text().splitlines()]
        assert types == ["OwnershipTransferred", "NewERC721Universal"]
