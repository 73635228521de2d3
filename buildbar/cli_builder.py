"""Factory for constructing the CLI argument parser."""

import argparse

from .settings import DEFAULT_BAR_WIDTH


def build_arg_parser() -> argparse.ArgumentParser:
    """Construct the argparse parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="buildbar",
        description="buildbar - live progress dashboard for internal-json build event streams",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Pipe a build started with --log-format internal-json into buildbar,\n"
            "or replay a recorded stream with --file."
        ),
    )

    parser.add_argument(
        "--file",
        type=str,
        help="Read events from this file instead of stdin",
    )

    parser.add_argument(
        "--simple-log",
        dest="simple_log",
        action="store_true",
        help="Print one line per event instead of drawing the dashboard",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        dest="verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )

    parser.add_argument(
        "--quiet",
        dest="quiet",
        action="count",
        default=0,
        help="Decrease verbosity (repeatable)",
    )

    parser.add_argument(
        "-L",
        "--print-build-logs",
        dest="print_build_logs",
        action="store_true",
        help="Stream build log lines above the dashboard",
    )

    parser.add_argument(
        "--bar-width",
        dest="bar_width",
        type=int,
        default=DEFAULT_BAR_WIDTH,
        help=f"Width of the progress bars in cells (default: {DEFAULT_BAR_WIDTH})",
    )

    parser.add_argument(
        "--replay-delay",
        dest="replay_delay",
        type=float,
        default=0.0,
        help="Seconds to sleep after each event, for watching recorded streams",
    )

    parser.add_argument(
        "--no-color",
        dest="no_color",
        action="store_true",
        help="Disable colored output and unicode symbols",
    )

    return parser
