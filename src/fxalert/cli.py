"""Command line handling: an optional positional threshold.

    fxalert 5.3     # set the threshold to 5.30 BRL and start monitoring
    fxalert         # start with the previously saved threshold

Starting without a threshold and without a saved configuration is a usage
error (exit status 1), as is a threshold that is not a positive number.
"""

import argparse
import sys
from decimal import Decimal, InvalidOperation

from fxalert.state.store import ConfigStore

EXIT_USAGE = 1


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with exit status 1."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"❌ {message}\n")


def parse_threshold(raw: str) -> Decimal:
    """Parse a CLI threshold; argparse reports ArgumentTypeError as a usage error."""
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        value = None
    if value is None or not value.is_finite() or value <= 0:
        raise argparse.ArgumentTypeError(
            f"Invalid threshold {raw!r}. Please provide a positive number."
        )
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="fxalert",
        description="Monitor the USD-BRL ask rate and alert when it reaches a target.",
        epilog="Example: fxalert 5.3",
    )
    parser.add_argument(
        "threshold",
        nargs="?",
        type=parse_threshold,
        help="ask rate (BRL per USD) at or above which a sell alert is sent",
    )
    return parser


def resolve_threshold(argv: list[str], store: ConfigStore) -> Decimal:
    """Apply the CLI threshold (if any) and return the effective one.

    Exits with status 1 and a usage message when no threshold is given and
    none is saved.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.threshold is not None:
        store.set_threshold(args.threshold)

    threshold = store.get_threshold()
    if threshold is None:
        parser.print_usage(sys.stderr)
        parser.exit(
            EXIT_USAGE,
            "❌ No threshold configured. Please provide a threshold.\n"
            "Example: fxalert 5.3\n",
        )
    return threshold
