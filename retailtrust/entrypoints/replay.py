"""Ledger replay entrypoint.

Replays a JSON-lines call log against a fresh or restored ledger, checks
accounting invariants after every call and optionally writes the final
snapshot.

Usage:
    RETAILTRUST_LEDGER__ADMIN=ST1... \
      python -m retailtrust.entrypoints.replay --replay.calls calls.jsonl \
      --replay.snapshot_out final.json
"""

import os
import sys
from pathlib import Path
from typing import Optional, Sequence

import bittensor as bt
from dotenv import load_dotenv

from retailtrust.base.config import build_parser, load_admin, load_ledger_config
from retailtrust.ledger import Ledger, LedgerState, verify_invariants
from retailtrust.ledger.replay import load_calls, replay


def main(argv: Optional[Sequence[str]] = None) -> int:
    # Load .env if not in test mode
    if os.environ.get("RETAILTRUST_TEST_MODE") != "true":
        load_dotenv()

    parser = build_parser(description="RetailTrust ledger replay")
    parser.add_argument("--replay.calls", type=str, required=False)
    parser.add_argument("--replay.snapshot_in", type=str, required=False)
    parser.add_argument("--replay.snapshot_out", type=str, required=False)
    parser.add_argument(
        "--replay.no_invariants",
        action="store_true",
        help="Skip invariant checks after each call.",
        default=False,
    )
    args = parser.parse_args(argv)

    calls_path = os.environ.get(
        "RETAILTRUST_REPLAY__CALLS", getattr(args, "replay.calls", None) or "",
    )
    snapshot_in = getattr(args, "replay.snapshot_in", None)
    snapshot_out = getattr(args, "replay.snapshot_out", None)

    if not calls_path:
        bt.logging.error("--replay.calls or RETAILTRUST_REPLAY__CALLS is required")
        return 1

    config = load_ledger_config(args)

    state = None
    if snapshot_in:
        try:
            state = LedgerState.from_json(Path(snapshot_in).read_text())
        except (OSError, ValueError) as e:
            bt.logging.error({"ledger_replay": {"event": "snapshot_load_failed", "error": str(e)}})
            return 1
        verification = verify_invariants(state, config)
        if not verification:
            bt.logging.error({"ledger_replay": {
                "event": "snapshot_invalid",
                "errors": verification.errors,
            }})
            return 1
        admin = state.admin
    else:
        admin = load_admin(args)
        if not admin:
            bt.logging.error("--ledger.admin or RETAILTRUST_LEDGER__ADMIN is required")
            return 1

    try:
        calls = load_calls(calls_path)
    except (OSError, ValueError) as e:
        bt.logging.error({"ledger_replay": {"event": "load_failed", "error": str(e)}})
        return 1

    ledger = Ledger(admin=admin, config=config, state=state)
    report = replay(
        ledger, calls, check_invariants=not getattr(args, "replay.no_invariants", False),
    )

    if snapshot_out:
        Path(snapshot_out).write_text(ledger.state.to_json())
        bt.logging.info({"ledger_replay": {"event": "snapshot_written", "path": snapshot_out}})

    print(report.final_hash)
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
