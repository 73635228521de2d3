"""Command-line interface for buildbar."""

import argparse
import sys
import time
from typing import Optional, TextIO

from rich.text import Text

from .activity.types import Verbosity
from .cli_builder import build_arg_parser
from .display.terminal import can_draw, is_terminal
from .errors import EventParseError, FieldError, TerminalModeError
from .events import dispatch_event, parse_event
from .formatters import OutputFormatter
from .logger import Logger
from .progress_bar import ProgressBar
from .settings import ProgressBarSettings
from .simple_logger import SimpleLogger

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


class CLI:
    """Command-line interface for buildbar."""

    def __init__(self):
        self.parser = build_arg_parser()

    def run(self, argv: Optional[list[str]] = None) -> int:
        """Run the CLI.

        Args:
            argv: Command-line arguments (defaults to sys.argv[1:])

        Returns:
            Exit code
        """
        args = self.parser.parse_args(argv)
        output = OutputFormatter(no_color=args.no_color)

        if args.bar_width < 1:
            self._print_error(output, f"--bar-width must be positive, got {args.bar_width}")
            return EXIT_ERROR
        if args.replay_delay < 0:
            self._print_error(output, f"--replay-delay must not be negative, got {args.replay_delay}")
            return EXIT_ERROR

        settings = self._build_settings(args)

        try:
            stream = open(args.file, encoding="utf-8", errors="replace") if args.file else sys.stdin
        except OSError as e:
            self._print_error(output, f"cannot read {args.file}: {e.strerror}")
            return EXIT_ERROR

        try:
            return self._run_logger(args, settings, output, stream)
        finally:
            if stream is not sys.stdin:
                stream.close()

    def _build_settings(self, args: argparse.Namespace) -> ProgressBarSettings:
        return ProgressBarSettings(
            print_build_logs=args.print_build_logs,
            verbosity=Verbosity.clamp(Verbosity.INFO + args.verbose - args.quiet),
            bar_width=args.bar_width,
        )

    def _make_logger(
        self, args: argparse.Namespace, settings: ProgressBarSettings, output: OutputFormatter
    ) -> Logger:
        if args.simple_log:
            return SimpleLogger(output=output, settings=settings)

        # Events may arrive on stdin, so only stderr decides whether to draw.
        progress_bar = ProgressBar(
            is_tty=can_draw(),
            settings=settings,
            no_color=args.no_color,
            read_input=args.file is not None and is_terminal(sys.stdin),
        )
        progress_bar.start()
        return progress_bar

    def _run_logger(
        self,
        args: argparse.Namespace,
        settings: ProgressBarSettings,
        output: OutputFormatter,
        stream: TextIO,
    ) -> int:
        try:
            logger = self._make_logger(args, settings, output)
        except TerminalModeError as e:
            self._print_error(output, e)
            return EXIT_ERROR

        exit_code = EXIT_OK
        try:
            self._replay(stream, logger, args.replay_delay)
        except KeyboardInterrupt:
            exit_code = EXIT_INTERRUPTED
        finally:
            try:
                logger.stop()
            except TerminalModeError as e:
                self._print_error(output, e)
                exit_code = EXIT_ERROR

        if exit_code == EXIT_INTERRUPTED:
            output.print(Text("Interrupted.", style="bold red"))
        return exit_code

    def _replay(self, stream: TextIO, logger: Logger, delay: float) -> None:
        """Feed every line of the stream to the logger."""
        for line in stream:
            try:
                event = parse_event(line)
                if event is None:
                    logger.write_to_stdout(line.rstrip("\r\n"))
                    continue
                dispatch_event(event, logger)
            except (EventParseError, FieldError) as e:
                logger.log(Verbosity.WARN, f"ignoring malformed event: {e}")
                continue

            if delay:
                time.sleep(delay)

    def _print_error(self, output: OutputFormatter, error: object) -> None:
        message = Text(f"{output.symbols.Error} ")
        message.append("Error:", style="bold red")
        message.append(f" {error}")
        output.print(message)


def main() -> int:
    """Main entry point."""
    cli = CLI()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
