"""Logger base class for activity and message reporting.

Provides the abstract interface the build pipeline talks to.
See progress_bar.py and simple_logger.py for implementations.
"""

import sys
from abc import ABC, abstractmethod
from typing import Sequence

from .activity.types import ROOT_ACTIVITY, ActivityId, ActivityKind, Field, ResultKind, Verbosity


class Logger(ABC):
    """Abstract base class for pipeline loggers.

    All methods may be called from any thread.
    """

    @abstractmethod
    def log(self, level: Verbosity, message: str) -> None:
        """Log a pre-formatted message.

        Args:
            level: Severity of the message
            message: Text, possibly containing ANSI escapes
        """
        pass

    @abstractmethod
    def start_activity(
        self,
        act_id: ActivityId,
        level: Verbosity,
        kind: ActivityKind,
        text: str,
        fields: Sequence[Field] = (),
        parent: ActivityId = ROOT_ACTIVITY,
    ) -> None:
        """Report that a unit of work started.

        Args:
            act_id: Caller-assigned id, unique while the unit is open
            level: Verbosity at which the start should be announced
            kind: Kind of work
            text: Free-text description
            fields: Kind-specific positional fields
            parent: Id of the enclosing unit, or 0
        """
        pass

    @abstractmethod
    def stop_activity(self, act_id: ActivityId) -> None:
        """Report that a unit of work finished.

        Args:
            act_id: Id passed to start_activity
        """
        pass

    @abstractmethod
    def result(self, act_id: ActivityId, result_kind: ResultKind, fields: Sequence[Field] = ()) -> None:
        """Report a progress update or other result for an open unit.

        Args:
            act_id: Id passed to start_activity
            result_kind: Kind of result
            fields: Result-specific positional fields
        """
        pass

    def write_to_stdout(self, text: str) -> None:
        """Write pipeline output to stdout, untouched by the dashboard."""
        sys.stdout.write(text + "\n")
        sys.stdout.flush()

    def is_verbose(self) -> bool:
        """Check whether build logs are streamed to the console."""
        return False

    @abstractmethod
    def stop(self) -> None:
        """Stop the logger display."""
        pass
