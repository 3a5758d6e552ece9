"""Command-line entry for recurrence_lite.

Small CLI for trying rules out from a shell: expand a rule over a window or
check that RRULE text parses, printing its canonical form.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from typing import Optional, Sequence

from dateutil.parser import isoparse

from .config_manager import ConfigManager
from .lite_exceptions import LiteRecurrenceError
from .lite_logging import configure_lite_logging
from .lite_occurrences import get_occurrences
from .lite_rrule_codec import parse_rrule
from .lite_rrule_expander import LiteRRuleExpander

logger = logging.getLogger(__name__)


def _parse_naive_datetime(value: str) -> datetime:
    """argparse type for ISO 8601 dates/date-times without a UTC offset."""
    try:
        parsed = isoparse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid ISO 8601 value: {value!r}") from e
    if parsed.tzinfo is not None:
        raise argparse.ArgumentTypeError(f"time zone offsets are not supported: {value!r}")
    return parsed


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for recurrence_lite CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="recurrence-lite",
        description="recurrence_lite - compute occurrences of RFC 5545 recurrence rules",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  recurrence-lite validate "RRULE:FREQ=WEEKLY;BYDAY=TU,TH;INTERVAL=2"
  recurrence-lite expand "FREQ=DAILY" --anchor 2024-01-01T09:00 \\
      --after 2024-01-01 --before 2024-01-08
        """,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    expand = subparsers.add_parser("expand", help="Print occurrences inside a window, one per line")
    expand.add_argument("rrule", help="RRULE text, with or without the RRULE: prefix")
    expand.add_argument(
        "--anchor", type=_parse_naive_datetime, required=True, help="Series start (DTSTART)"
    )
    expand.add_argument(
        "--after", type=_parse_naive_datetime, required=True, help="Inclusive window start"
    )
    expand.add_argument(
        "--before", type=_parse_naive_datetime, required=True, help="Exclusive window end"
    )

    validate = subparsers.add_parser("validate", help="Parse RRULE text and print its canonical form")
    validate.add_argument("rrule", help="RRULE text, with or without the RRULE: prefix")

    return parser


def _run_validate(rrule_text: str) -> int:
    result = parse_rrule(rrule_text)
    if not result.success or result.rule is None:
        kind = result.error_kind.value if result.error_kind else "unknown"
        print(f"{kind}: {result.error_message}", file=sys.stderr)
        return 1
    print(result.rule.to_rrule_string())
    return 0


def _run_expand(args: argparse.Namespace) -> int:
    result = parse_rrule(args.rrule)
    if not result.success or result.rule is None:
        kind = result.error_kind.value if result.error_kind else "unknown"
        print(f"{kind}: {result.error_message}", file=sys.stderr)
        return 1

    expander = LiteRRuleExpander(ConfigManager().load_expander_config())
    try:
        occurrences = get_occurrences(
            result.rule, args.anchor, args.after, args.before, expander=expander
        )
    except LiteRecurrenceError as e:
        logger.debug("Expansion failed", exc_info=True)
        print(f"expansion failed: {e}", file=sys.stderr)
        return 1

    for occurrence in occurrences:
        print(occurrence.isoformat())
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the recurrence_lite CLI.

    Returns:
        Process exit code (0 on success, 1 when the rule is rejected)
    """
    parser = _create_parser()
    args = parser.parse_args(argv)

    configure_lite_logging(debug_mode=args.debug)

    if args.command == "validate":
        return _run_validate(args.rrule)
    return _run_expand(args)


if __name__ == "__main__":
    sys.exit(main())
