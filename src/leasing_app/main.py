"""Command-line entry point."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

from leasing_app.core.container import build_container
from leasing_app.core.errors import LeasingError
from leasing_app.models.agreement import AgreementView, CreateAgreementRequest


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create and inspect leasing agreements.")
    parser.add_argument("--config", type=Path, default=None, help="Path to leasing.yaml.")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create", help="Create an agreement from a JSON request file.")
    create.add_argument("request", type=Path, help="JSON file with the creation request.")

    show = commands.add_parser("show", help="Print one agreement.")
    show.add_argument("agreement_id")

    listing = commands.add_parser("list", help="List an employee's agreements.")
    listing.add_argument("employee_id")

    remind = commands.add_parser("remind", help="Send payment-due reminders.")
    remind.add_argument("employee_ids", nargs="+")
    remind.add_argument("--days", type=int, default=7, help="Reminder window in days.")
    return parser


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def run(argv: list[str] | None = None) -> int:
    """Run one CLI command and return the process exit code."""
    args = _build_parser().parse_args(argv)
    container = build_container(args.config)
    container.audit_log.cleanup_old_logs(container.config.logging.retention_days)
    service = container.leasing_service

    try:
        if args.command == "create":
            with args.request.open("r", encoding="utf-8") as file:
                request = CreateAgreementRequest.from_dict(json.load(file))
            _print_json(asdict(AgreementView.from_agreement(service.process_agreement(request))))
        elif args.command == "show":
            _print_json(service.get_agreement(args.agreement_id).to_dict())
        elif args.command == "list":
            agreements = service.list_employee_agreements(args.employee_id)
            _print_json([agreement.to_dict() for agreement in agreements])
        elif args.command == "remind":
            sent = service.send_payment_reminders(args.employee_ids, within_days=args.days)
            _print_json({"reminders_sent": sent})
    except LeasingError as error:
        _print_json(error.to_dict())
        return 1
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
