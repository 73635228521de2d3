"""Exception types raised by buildbar."""


class BuildbarError(Exception):
    """Base class for buildbar errors."""


class TerminalModeError(BuildbarError):
    """Raised when the terminal cannot be put into (or out of) raw mode."""


class FieldError(ValueError):
    """Raised when an event carries fields that do not match its kind's layout."""


class EventParseError(ValueError):
    """Raised when a line of the internal-json event stream cannot be decoded."""
