#!/usr/bin/env python3
"""
Universal Ledger - command line runner

Every command works on a JSON state file (default from config state.state_file)
and appends committed events to the JSONL event log (logging.output_file).

Usage:
    python run.py deploy --admin 0xf39f...                # Create a new state file
    python run.py owner-of 0x6f...                        # Query (decimal or 0x hex ids)
    python run.py transfer --from 0xa.. --to 0xb.. --token 123 --caller 0xa..
    python run.py burn --token 123 --caller 0xa..
    python run.py broadcast-self-transfer 1526678896913600633777236021071795506115833578868
    python run.py serve --port 8000                       # HTTP query/broadcast API
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from universal_ledger.config import get_validated_config, load_config, setup_logging
from universal_ledger.ledger import Collection, EventLogger, LedgerError

# Load environment variables
load_dotenv()

logger = logging.getLogger("universal_ledger.run")


def _event_logger(
    args: argparse.Namespace, truncate: bool, start_sequence: int = 0, defer_writes: bool = False
) -> EventLogger:
    output_file = args.events or get_validated_config().logging.output_file
    return EventLogger(
        output_file=output_file,
        truncate=truncate,
        start_sequence=start_sequence,
        defer_writes=defer_writes,
    )


def _state_path(args: argparse.Namespace) -> Path:
    return Path(args.state or get_validated_config().state.state_file)


def _load(args: argparse.Namespace) -> Collection:
    """Resume the collection from its state file.

    Events are held until the caller saves and flushes, so a refused save
    leaves the event log untouched.
    """
    path = _state_path(args)
    if not path.exists():
        raise FileNotFoundError(f"State file not found: {path}. Run 'deploy' first.")
    with open(path) as f:
        data: dict[str, Any] = json.load(f)
    events = _event_logger(
        args, truncate=False, start_sequence=data.get("event_sequence", 0), defer_writes=True
    )
    return Collection.from_dict(data, event_logger=events)


def _print(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


def cmd_deploy(args: argparse.Namespace) -> int:
    cfg = get_validated_config().collection
    path = _state_path(args)
    if path.exists() and not args.force:
        print(f"Refusing to overwrite {path} (use --force)", file=sys.stderr)
        return 1
    collection = Collection(
        args.admin,
        args.name or cfg.name,
        args.symbol or cfg.symbol,
        args.base_uri if args.base_uri is not None else cfg.base_uri,
        prefix=cfg.prefix,
        suffix=cfg.suffix,
        address=cfg.address,
        event_logger=_event_logger(args, truncate=True),
    )
    collection.save(path, overwrite=True)
    _print({"address": collection.address, "admin": collection.owner, "state_file": str(path)})
    return 0


def cmd_owner_of(args: argparse.Namespace) -> int:
    _print({"token_id": args.token, "owner": _load(args).owner_of(args.token)})
    return 0


def cmd_init_owner(args: argparse.Namespace) -> int:
    _print({"token_id": args.token, "init_owner": _load(args).init_owner(args.token)})
    return 0


def cmd_token_uri(args: argparse.Namespace) -> int:
    _print({"token_id": args.token, "token_uri": _load(args).token_uri(args.token)})
    return 0


def _mutate(args: argparse.Namespace, action: Any) -> int:
    """Run one call against the state file, saving only if it commits.

    The save is refused with StateFileConflict if another process (the
    server, say) saved the file after we loaded it.
    """
    collection = _load(args)
    events = action(collection)
    collection.save(_state_path(args))
    collection.event_logger.flush()
    _print({"success": True, "events": [e.to_dict() for e in events]})
    return 0


def cmd_transfer(args: argparse.Namespace) -> int:
    if args.safe:
        return _mutate(
            args, lambda c: c.safe_transfer_from(args.from_, args.to, args.token, args.caller)
        )
    return _mutate(args, lambda c: c.transfer_from(args.from_, args.to, args.token, args.caller))


def cmd_burn(args: argparse.Namespace) -> int:
    return _mutate(args, lambda c: c.burn(args.token, args.caller))


def cmd_broadcast_mint(args: argparse.Namespace) -> int:
    return _mutate(args, lambda c: c.broadcast_mint_batch(args.tokens))


def cmd_broadcast_self_transfer(args: argparse.Namespace) -> int:
    return _mutate(args, lambda c: c.broadcast_self_transfer_batch(args.tokens))


def cmd_serve(args: argparse.Namespace) -> int:
    from universal_ledger.api import run_server

    collection = _load(args)
    run_server(collection, host=args.host, port=args.port, state_path=_state_path(args))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Universal Ledger")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("--state", default=None, help="State file (default: state.state_file)")
    parser.add_argument("--events", default=None, help="JSONL event log (default: logging.output_file)")
    parser.add_argument("--log-level", default=None, help="Override logging.level")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("deploy", help="Create a new collection state file")
    p.add_argument("--admin", required=True, help="Admin address")
    p.add_argument("--name", default=None)
    p.add_argument("--symbol", default=None)
    p.add_argument("--base-uri", dest="base_uri", default=None)
    p.add_argument("--force", action="store_true", help="Overwrite an existing state file")
    p.set_defaults(func=cmd_deploy)

    for name, func in (
        ("owner-of", cmd_owner_of),
        ("init-owner", cmd_init_owner),
        ("token-uri", cmd_token_uri),
    ):
        p = sub.add_parser(name)
        p.add_argument("token", help="Token id (decimal or 0x hex)")
        p.set_defaults(func=func)

    p = sub.add_parser("transfer", help="Transfer a token")
    p.add_argument("--from", dest="from_", required=True)
    p.add_argument("--to", required=True)
    p.add_argument("--token", required=True)
    p.add_argument("--caller", required=True)
    p.add_argument("--safe", action="store_true", help="Use safe transfer")
    p.set_defaults(func=cmd_transfer)

    p = sub.add_parser("burn", help="Burn a token")
    p.add_argument("--token", required=True)
    p.add_argument("--caller", required=True)
    p.set_defaults(func=cmd_burn)

    for name, func in (
        ("broadcast-mint", cmd_broadcast_mint),
        ("broadcast-self-transfer", cmd_broadcast_self_transfer),
    ):
        p = sub.add_parser(name, help="Replay the canonical event for virtual tokens")
        p.add_argument("tokens", nargs="+", help="Token ids (decimal or 0x hex)")
        p.set_defaults(func=func)

    p = sub.add_parser("serve", help="Serve the HTTP API")
    p.add_argument("--host", default=None)
    p.add_argument("--port", type=int, default=None)
    p.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    load_config(args.config)
    setup_logging(args.log_level)

    try:
        return int(args.func(args))
    except LedgerError as e:
        logger.debug("Call rejected: %s", e.message)
        _print(e.to_response())
        return 1
    except (ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
