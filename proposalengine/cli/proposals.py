"""Command-line entry point for operating on stored proposals.

Purpose:
  - Drive the proposal engine against a SQLite database for operators and scripts.
Inputs:
  - Subcommand plus JSON files in the wire format (see app_api/codec.py).
Outputs:
  - Proposal snapshots as JSON on stdout; errors on stderr with exit code 2.
Example:
  - python -m proposalengine.cli.proposals --db proposals.db create --debt debt.json \
      --proposed-value 500 --expiration 2026-12-01T00:00:00+00:00 --payment-deadline 3
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from proposalengine.app_api import codec
from proposalengine.app_api.config import LOG_LEVELS, load_engine_config
from proposalengine.app_api.facade import ProposalService, ServiceResult
from proposalengine.app_api.factories.build_app import build_proposal_service
from proposalengine.core.domain.enums import Situation
from proposalengine.core.domain.errors import ProposalEngineError
from proposalengine.core.valuation.engine import value_debt
from proposalengine.infra.sqlite.db import get_connection

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Debt proposal lifecycle and valuation")
    parser.add_argument("--config", default=None, help="Optional JSON engine config")
    parser.add_argument("--db", default=None, help="SQLite database path (overrides config)")
    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level (overrides config)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create or upgrade the schema")

    add_debtor = sub.add_parser("add-debtor", help="Register a debtor from a JSON file")
    add_debtor.add_argument("path")

    create = sub.add_parser("create", help="Create a proposal for a debt JSON file")
    create.add_argument("--debt", required=True, help="Debt JSON file")
    create.add_argument("--proposed-value", type=int, required=True)
    create.add_argument("--expiration", required=True, help="ISO 8601 timestamp with offset")
    create.add_argument("--payment-deadline", type=int, required=True, help="Days")
    create.add_argument("--payment", action="append", default=None, help="Payment method name")
    create.add_argument("--channel", action="append", default=None, help="Communication channel")
    create.add_argument("--id", default=None, help="Proposal id (default: random UUID)")

    show = sub.add_parser("show", help="Print a stored proposal")
    show.add_argument("proposal_id")

    advance = sub.add_parser("advance", help="Move a proposal to a new situation")
    advance.add_argument("proposal_id")
    advance.add_argument("target", choices=[s.value for s in Situation])

    payment = sub.add_parser("complete-payment", help="Mark a payment method completed")
    payment.add_argument("proposal_id")
    payment.add_argument("name")

    channel = sub.add_parser("complete-communication", help="Mark a channel completed")
    channel.add_argument("proposal_id")
    channel.add_argument("name")

    charges = sub.add_parser("update-charges", help="Replace charges from a JSON file and revalue")
    charges.add_argument("proposal_id")
    charges.add_argument("path", help="JSON object with any of fee/interest/otherCharges/correction/originalValue")

    sub.add_parser("expire-due", help="Expire every open proposal past its expiration date")

    value = sub.add_parser("value", help="Compute the present value of a debt JSON file")
    value.add_argument("path")

    return parser.parse_args(argv)


def _read_json(path: str) -> Any:
    return codec.loads(Path(path).read_text(encoding="utf-8"))


def _print_result(result: ServiceResult) -> None:
    payload = codec.proposal_to_dict(result.proposal)
    payload["_version"] = result.version
    if result.notices:
        payload["_notices"] = [notice.value for notice in result.notices]
    print(codec.dumps(payload))


def _update_charges(service: ProposalService, proposal_id: str, payload: Any) -> ServiceResult:
    if not isinstance(payload, dict):
        raise ProposalEngineError("charges file must hold a JSON object")
    other_charges = None
    if "otherCharges" in payload:
        other_charges = [codec.charge_from_dict(item) for item in payload["otherCharges"] or []]
    return service.update_charges(
        proposal_id,
        original_value=payload.get("originalValue"),
        fee=codec.charge_from_dict(payload["fee"]) if "fee" in payload else None,
        interest=codec.charge_from_dict(payload["interest"]) if "interest" in payload else None,
        other_charges=other_charges,
        correction=(
            codec.correction_from_dict(payload["correction"]) if "correction" in payload else None
        ),
    )


def run(args: argparse.Namespace, service: ProposalService) -> int:
    if args.command == "init-db":
        print("OK schema ready")
    elif args.command == "add-debtor":
        debtor_id = service.register_debtor(codec.debtor_from_dict(_read_json(args.path)))
        print(debtor_id)
    elif args.command == "create":
        result = service.create_proposal(
            debt=codec.debt_from_dict(_read_json(args.debt)),
            proposed_value=args.proposed_value,
            expiration_date=codec.decode_datetime(args.expiration, "expiration"),
            payment_deadline=args.payment_deadline,
            payments=args.payment,
            communication=args.channel,
            proposal_id=args.id,
        )
        _print_result(result)
    elif args.command == "show":
        _print_result(service.get(args.proposal_id))
    elif args.command == "advance":
        _print_result(service.advance(args.proposal_id, Situation(args.target)))
    elif args.command == "complete-payment":
        _print_result(service.complete_payment(args.proposal_id, args.name))
    elif args.command == "complete-communication":
        _print_result(service.complete_communication(args.proposal_id, args.name))
    elif args.command == "update-charges":
        _print_result(_update_charges(service, args.proposal_id, _read_json(args.path)))
    elif args.command == "expire-due":
        for proposal_id in service.expire_due():
            print(proposal_id)
    elif args.command == "value":
        debt_payload = _read_json(args.path)
        if isinstance(debt_payload, dict):
            debt_payload = {k: v for k, v in debt_payload.items() if k != "presentValue"}
        result = value_debt(codec.debt_from_dict(debt_payload))
        print(
            codec.dumps(
                {
                    "presentValue": result.present_value,
                    "rawTotal": str(result.raw_total),
                    "notices": [notice.value for notice in result.notices],
                }
            )
        )
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = load_engine_config(args.config)
    except ProposalEngineError as exc:
        print(f"ERROR {exc}", file=sys.stderr)
        return 2
    logging.basicConfig(
        level=(args.log_level or config.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    conn = get_connection(args.db or config.db_path)
    try:
        service = build_proposal_service(conn, config=config)
        return run(args, service)
    except (ProposalEngineError, OSError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"ERROR {type(exc).__name__}: {exc}", file=sys.stderr)
        return 2
    finally:
        conn.close()


if __name__ == "__main__":
    sys.exit(main())
