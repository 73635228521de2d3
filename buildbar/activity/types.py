"""Type definitions for activities, results and verbosity levels.

Numeric values match the codes used by the internal-json event stream.
"""

from enum import IntEnum
from typing import Union

ActivityId = int

# The root sentinel: activities whose parent is 0 have no parent.
ROOT_ACTIVITY: ActivityId = 0

Field = Union[str, int]


class ActivityKind(IntEnum):
    """Closed set of activity kinds."""

    UNKNOWN = 0
    COPY_PATH = 100
    FILE_TRANSFER = 101
    REALISE = 102
    COPY_PATHS = 103
    BUILDS = 104
    BUILD = 105
    OPTIMISE_STORE = 106
    VERIFY_PATHS = 107
    SUBSTITUTE = 108
    QUERY_PATH_INFO = 109
    POST_BUILD_HOOK = 110
    BUILD_WAITING = 111
    EVALUATE = 112

    @classmethod
    def from_code(cls, code: int) -> "ActivityKind":
        """Decode a wire code, mapping unknown codes to UNKNOWN."""
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN


class ResultKind(IntEnum):
    """Kinds of result events reported against an open activity."""

    FILE_LINKED = 100
    BUILD_LOG_LINE = 101
    UNTRUSTED_PATH = 102
    CORRUPTED_PATH = 103
    SET_PHASE = 104
    PROGRESS = 105
    SET_EXPECTED = 106
    POST_BUILD_LOG_LINE = 107
    EXPECT_BUILD = 108
    UNEXPECT_BUILD = 109
    EXPECT_SUBSTITUTION = 110
    UNEXPECT_SUBSTITUTION = 111


class Verbosity(IntEnum):
    """Log levels, from least to most verbose."""

    ERROR = 0
    WARN = 1
    NOTICE = 2
    INFO = 3
    TALKATIVE = 4
    CHATTY = 5
    DEBUG = 6
    VOMIT = 7

    @classmethod
    def clamp(cls, value: int) -> "Verbosity":
        """Clamp an integer into the valid range of levels."""
        return cls(max(cls.ERROR, min(cls.VOMIT, value)))
