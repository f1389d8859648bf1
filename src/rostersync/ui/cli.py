from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, SIGTERM, getsignal, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from rostersync.app import clear_progress, compare_roster, list_progress, run_roster_sync
from rostersync.config import configure_logging, get_sync_config
from rostersync.domain.execution import ShutdownSignal
from rostersync.domain.model import Phase

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from types import FrameType

    from rostersync.domain.reconciliation import ComparisonReport

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile the Worksection roster into Supabase")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Compare and apply creates and soft deletes")
    mode = sync.add_mutually_exclusive_group()
    mode.add_argument(
        "--apply",
        dest="dry_run",
        action="store_false",
        default=None,
        help="Write changes to the target (overrides ROSTERSYNC_DRY_RUN)",
    )
    mode.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        default=None,
        help="Only log what would change",
    )
    sync.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Number of items between pauses (defaults to config)",
    )
    sync.add_argument(
        "--batch-delay",
        type=float,
        default=None,
        help="Pause in seconds between batches (defaults to config)",
    )
    sync.add_argument(
        "--continue-on-error",
        action="store_true",
        default=None,
        help="Keep going after a failed item instead of stopping the phase",
    )

    subparsers.add_parser("compare", help="Print the classification report only")

    progress = subparsers.add_parser("progress", help="Inspect or drop saved progress")
    progress_sub = progress.add_subparsers(dest="progress_command", required=True)
    progress_sub.add_parser("show", help="List saved ledgers")
    progress_clear = progress_sub.add_parser("clear", help="Delete saved ledgers")
    progress_clear.add_argument(
        "--phase",
        choices=[phase.value for phase in Phase],
        help="Only clear this phase (default: all)",
    )

    return parser.parse_args(list(argv))


def _report_lines(report: ComparisonReport) -> Iterator[str]:
    yield (
        f"roster={report.source_total} target={report.target_total} matched={report.matched} "
        f"unchanged={report.unchanged} missing={len(report.missing)} "
        f"orphaned={len(report.orphaned)} mismatched={len(report.mismatched)} "
        f"ignored={report.ignored}"
    )
    for unit, unit_report in report.by_unit.items():
        yield (
            f"{unit}: roster={unit_report.source_count} target={unit_report.target_count} "
            f"missing={len(unit_report.missing)} orphaned={len(unit_report.orphaned)} "
            f"mismatched={len(unit_report.mismatched)}"
        )
        for missing in unit_report.missing:
            yield f"  + {missing.record.email} ({missing.record.full_name})"
        for orphan in unit_report.orphaned:
            yield f"  - {orphan.email} ({orphan.full_name})"
        for mismatch in unit_report.mismatched:
            yield (
                f"  ~ {mismatch.record.email}: roster {mismatch.expected_unit!r}, "
                f"target {mismatch.actual_unit!r}"
            )


def _run_sync(args: argparse.Namespace) -> int:
    settings = get_sync_config().with_overrides(
        dry_run=args.dry_run,
        batch_size=args.batch_size,
        batch_delay_seconds=args.batch_delay,
        continue_on_error=args.continue_on_error,
    )
    shutdown = ShutdownSignal()

    def request_stop(signal_received: int, _frame: FrameType | None) -> None:
        shutdown.request(f"signal {signal_received}")

    previous = {sig: getsignal(sig) for sig in (SIGINT, SIGTERM)}
    for sig in previous:
        signal(sig, request_stop)
    try:
        statistics = run_roster_sync(settings=settings, should_stop=shutdown)
    finally:
        for sig, handler in previous.items():
            signal(sig, handler)

    if statistics.fatal_error is not None:
        log.error("Sync failed: %s", statistics.fatal_error)
        return 1
    if statistics.cancelled:
        log.warning("Sync cancelled; the next run resumes from saved progress")
        return 1
    return 0 if statistics.errors == 0 else 1


def _run_progress(args: argparse.Namespace) -> int:
    if args.progress_command == "show":
        ledgers = list_progress()
        if not ledgers:
            log.info("No saved progress")
        for ledger in ledgers:
            log.info(
                "%s: started %s, updated %s, processed=%s, created=%s, deleted=%s, errors=%s",
                ledger.phase,
                ledger.started_at.isoformat(),
                ledger.updated_at.isoformat(),
                len(ledger.processed),
                ledger.counters.created,
                ledger.counters.deleted,
                ledger.counters.errors,
            )
        return 0

    phase = Phase(args.phase) if args.phase else None
    cleared = clear_progress(phase=phase)
    log.info("Cleared progress for: %s", ", ".join(cleared) or "nothing")
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        if parsed_args.command == "sync":
            exit_code = _run_sync(parsed_args)
        elif parsed_args.command == "compare":
            for line in _report_lines(compare_roster()):
                log.info(line)
            exit_code = 0
        elif parsed_args.command == "progress":
            exit_code = _run_progress(parsed_args)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
