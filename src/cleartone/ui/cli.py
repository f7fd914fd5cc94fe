# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from dotenv import load_dotenv

from cleartone.app import build_application
from cleartone.config import configure_logging
from cleartone.domain.clearance import Terms
from cleartone.domain.errors import ClearanceError
from cleartone.domain.model import Decision, PartyRole

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from cleartone.app import Application

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Negotiate audio sample clearances")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    caller = argparse.ArgumentParser(add_help=False)
    caller.add_argument(
        "--as",
        dest="credential",
        type=str,
        required=True,
        help="Credential (party id) of the caller",
    )
    versioned = argparse.ArgumentParser(add_help=False)
    versioned.add_argument(
        "--expected-version",
        type=int,
        help="Fail instead of overwriting if the request moved past this version",
    )

    party = subparsers.add_parser("party", help="Party management commands")
    party_sub = party.add_subparsers(dest="party_command", required=True)
    party_create = party_sub.add_parser("create", help="Create a party")
    party_create.add_argument("--display-name", type=str, required=True, help="Display name")
    party_create.add_argument("--email", type=str, help="Optional email address")

    work = subparsers.add_parser("work", help="Register and browse works")
    work_sub = work.add_subparsers(dest="work_command", required=True)
    for name, help_text in (
        ("register-original", "Register an original work you hold the rights to"),
        ("register-derivative", "Register a derivative work that samples an original"),
    ):
        register = work_sub.add_parser(name, parents=[caller], help=help_text)
        register.add_argument("--title", type=str, required=True, help="Work title")
        register.add_argument("--artist", type=str, required=True, help="Performing artist")
        register.add_argument("--audio", type=Path, required=True, help="Path to the audio file")

    work_list = work_sub.add_parser("list", parents=[caller], help="List registered works")
    work_list.add_argument(
        "--derivatives",
        action="store_true",
        help="List your own derivative works instead of the original catalog",
    )
    work_show = work_sub.add_parser("show", parents=[caller], help="Show one work")
    work_show.add_argument("--work", type=str, required=True, help="Work id")

    candidates = subparsers.add_parser(
        "candidates", parents=[caller], help="Rank originals a derivative work may sample"
    )
    candidates.add_argument("--derivative", type=str, required=True, help="Derivative work id")

    request = subparsers.add_parser("request", help="Clearance request commands")
    request_sub = request.add_subparsers(dest="request_command", required=True)

    create = request_sub.add_parser("create", parents=[caller], help="Open a clearance request")
    create.add_argument("--original", type=str, required=True, help="Original work id")
    create.add_argument("--derivative", type=str, required=True, help="Derivative work id")
    create.add_argument("--usage", type=str, required=True, help="Intended usage")
    create.add_argument("--confidence", type=float, help="Match confidence in [0, 1]")

    matched = request_sub.add_parser(
        "create-matched",
        parents=[caller],
        help="Open a request against the best-matching original",
    )
    matched.add_argument("--derivative", type=str, required=True, help="Derivative work id")
    matched.add_argument("--usage", type=str, required=True, help="Intended usage")

    respond = request_sub.add_parser(
        "respond", parents=[caller, versioned], help="Respond as rights holder"
    )
    respond.add_argument("--request", type=str, required=True, help="Clearance request id")
    respond.add_argument(
        "--decision",
        type=str,
        required=True,
        choices=[decision.value for decision in Decision],
        help="Decision to record",
    )
    respond.add_argument("--terms", type=str, help="Terms of use")
    respond.add_argument("--royalty", type=float, help="Royalty percentage (0-100)")
    respond.add_argument("--notes", type=str, help="Notes, required to reject")

    counter = request_sub.add_parser(
        "counter", parents=[caller, versioned], help="Counter-propose as requester"
    )
    counter.add_argument("--request", type=str, required=True, help="Clearance request id")
    counter.add_argument("--proposal", type=str, required=True, help="Counter proposal")
    counter.add_argument("--notes", type=str, help="Optional notes")

    accept = request_sub.add_parser(
        "accept", parents=[caller, versioned], help="Accept approved terms as requester"
    )
    accept.add_argument("--request", type=str, required=True, help="Clearance request id")

    show = request_sub.add_parser("show", parents=[caller], help="Show one request")
    show.add_argument("--request", type=str, required=True, help="Clearance request id")

    listing = request_sub.add_parser("list", parents=[caller], help="List your requests")
    listing.add_argument(
        "--role",
        type=str,
        choices=[role.value for role in PartyRole],
        help="Only requests where you play this role",
    )

    history = request_sub.add_parser("history", parents=[caller], help="Negotiation history")
    history.add_argument("--request", type=str, required=True, help="Clearance request id")

    stats = subparsers.add_parser(
        "stats", parents=[caller], help="Counts per status of your requests"
    )
    stats.add_argument(
        "--role",
        type=str,
        choices=[role.value for role in PartyRole],
        help="Only requests where you play this role",
    )

    match = subparsers.add_parser(
        "match", parents=[caller], help="Rank registered originals against an audio file"
    )
    match.add_argument("audio", type=Path, help="Audio file to match; it is not stored")

    compare = subparsers.add_parser("compare", help="Compare two audio files")
    compare.add_argument("first", type=Path, help="First audio file")
    compare.add_argument("second", type=Path, help="Second audio file")

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _emit(payload: object) -> None:
    print(json.dumps(payload, default=str, indent=2))


def _dump(entity: Any) -> dict[str, Any]:
    return asdict(entity)


def _run(app: Application, args: argparse.Namespace) -> None:  # noqa: C901, PLR0912
    command = args.command

    if command == "party" and args.party_command == "create":
        party = app.catalog.create_party(args.display_name, args.email)
        _emit(_dump(party))
        return
    if command == "compare":
        comparison = app.catalog.compare_audio(args.first.read_bytes(), args.second.read_bytes())
        _emit(
            {
                "is_match": comparison.is_match,
                "confidence": comparison.confidence,
                "matching_ids": sorted(comparison.matching_ids),
                "identifier_confidence": comparison.identifier_confidence,
            }
        )
        return

    caller = app.identity.resolve_caller(args.credential)

    if command == "work":
        _run_work(app, args, caller.id)
    elif command == "stats":
        statistics = app.clearance.get_statistics(
            caller.id, PartyRole(args.role) if args.role else None
        )
        _emit({"total": statistics.total, **statistics.counts})
    elif command == "candidates":
        matches = app.clearance.list_candidates(caller.id, _parse_uuid(args.derivative))
        _emit([match._asdict() for match in matches])
    elif command == "match":
        matches = app.catalog.match_audio(args.audio.read_bytes(), caller_id=caller.id)
        _emit([match._asdict() for match in matches])
    elif command == "request":
        _run_request(app, args, caller.id)
    else:
        raise ValueError(f"Unsupported command: {command}")


def _run_work(app: Application, args: argparse.Namespace, caller_id: UUID) -> None:
    catalog = app.catalog
    subcommand = args.work_command

    if subcommand in ("register-original", "register-derivative"):
        register = (
            catalog.register_original_work
            if subcommand == "register-original"
            else catalog.register_derivative_work
        )
        work = register(
            caller_id, title=args.title, artist=args.artist, audio=args.audio.read_bytes()
        )
    elif subcommand == "list":
        works = (
            catalog.list_derivative_works(caller_id)
            if args.derivatives
            else catalog.list_original_works()
        )
        _emit([_dump(item) for item in works])
        return
    elif subcommand == "show":
        work = catalog.get_work(_parse_uuid(args.work), caller_id)
    else:
        raise ValueError(f"Unsupported work command: {subcommand}")
    _emit({"kind": work.entity_type.value, **_dump(work)})


def _run_request(app: Application, args: argparse.Namespace, caller_id: UUID) -> None:
    clearance = app.clearance
    subcommand = args.request_command

    if subcommand == "create":
        request = clearance.create_request(
            caller_id,
            _parse_uuid(args.original),
            args.usage,
            args.confidence,
            derivative_work_id=_parse_uuid(args.derivative),
        )
    elif subcommand == "create-matched":
        request = clearance.create_with_matching(
            caller_id, _parse_uuid(args.derivative), args.usage
        )
        if request is None:
            _emit({"matched": False})
            return
    elif subcommand == "respond":
        request = clearance.respond(
            _parse_uuid(args.request),
            caller_id,
            Decision(args.decision),
            Terms(terms_of_use=args.terms, royalty_percentage=args.royalty, notes=args.notes),
            expected_version=args.expected_version,
        )
    elif subcommand == "counter":
        request = clearance.counter(
            _parse_uuid(args.request),
            caller_id,
            args.proposal,
            notes=args.notes,
            expected_version=args.expected_version,
        )
    elif subcommand == "accept":
        request = clearance.accept(
            _parse_uuid(args.request), caller_id, expected_version=args.expected_version
        )
    elif subcommand == "show":
        request = clearance.get_request(_parse_uuid(args.request), caller_id)
    elif subcommand == "list":
        role = PartyRole(args.role) if args.role else None
        _emit([_dump(item) for item in clearance.list_requests(caller_id, role)])
        return
    elif subcommand == "history":
        events = clearance.history(_parse_uuid(args.request), caller_id)
        _emit([_dump(event) for event in events])
        return
    else:
        raise ValueError(f"Unsupported request command: {subcommand}")
    _emit(_dump(request))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        configure_logging(level=logging.DEBUG if parsed_args.verbose else None)
        _run(build_application(), parsed_args)
    except ClearanceError as exc:
        log.error("%s: %s", exc.kind, exc.message)  # noqa: TRY400
        print(json.dumps({"error": exc.as_dict()}), file=sys.stderr)
        sys.exit(1)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console-script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
