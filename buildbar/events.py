"""Decoding of the internal-json event stream.

Each event is a single line of the form ``@nix {json}``. Lines without the
prefix are ordinary output and are left to the caller.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from .activity.types import ROOT_ACTIVITY, ActivityId, ActivityKind, Field, ResultKind, Verbosity
from .errors import EventParseError
from .logger import Logger

EVENT_PREFIX = "@nix "


@dataclass
class MsgEvent:
    level: Verbosity
    message: str


@dataclass
class StartEvent:
    act_id: ActivityId
    level: Verbosity
    kind: ActivityKind
    text: str = ""
    parent: ActivityId = ROOT_ACTIVITY
    fields: list[Field] = field(default_factory=list)


@dataclass
class StopEvent:
    act_id: ActivityId


@dataclass
class ResultEvent:
    act_id: ActivityId
    result_kind: ResultKind
    fields: list[Field] = field(default_factory=list)


Event = Union[MsgEvent, StartEvent, StopEvent, ResultEvent]


def _require(data: dict[str, Any], key: str, expected: type) -> Any:
    if key not in data:
        raise EventParseError(f"missing '{key}'")
    value = data[key]
    if expected is int and isinstance(value, bool) or not isinstance(value, expected):
        raise EventParseError(f"'{key}' must be {expected.__name__}, got {type(value).__name__}")
    return value


def _optional(data: dict[str, Any], key: str, expected: type, default: Any) -> Any:
    if key not in data:
        return default
    return _require(data, key, expected)


def _fields(data: dict[str, Any]) -> list[Field]:
    raw = data.get("fields", [])
    if not isinstance(raw, list):
        raise EventParseError("'fields' must be a list")
    for value in raw:
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            raise EventParseError(f"unsupported field value: {value!r}")
    return raw


def parse_event(line: str) -> Optional[Event]:
    """Decode one line of the event stream.

    Returns:
        The decoded event, or None if the line is not an event

    Raises:
        EventParseError: If the line has the prefix but is not a valid event
    """
    line = line.rstrip("\r\n")
    if not line.startswith(EVENT_PREFIX):
        return None

    try:
        data = json.loads(line[len(EVENT_PREFIX):])
    except json.JSONDecodeError as e:
        raise EventParseError(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise EventParseError("event is not a JSON object")

    action = data.get("action")
    if action == "msg":
        return MsgEvent(
            level=Verbosity.clamp(_require(data, "level", int)),
            message=_require(data, "msg", str),
        )
    if action == "start":
        return StartEvent(
            act_id=_require(data, "id", int),
            level=Verbosity.clamp(_require(data, "level", int)),
            kind=ActivityKind.from_code(_require(data, "type", int)),
            text=_optional(data, "text", str, ""),
            parent=_optional(data, "parent", int, ROOT_ACTIVITY),
            fields=_fields(data),
        )
    if action == "stop":
        return StopEvent(act_id=_require(data, "id", int))
    if action == "result":
        code = _require(data, "type", int)
        try:
            result_kind = ResultKind(code)
        except ValueError as e:
            raise EventParseError(f"unknown result type {code}") from e
        return ResultEvent(act_id=_require(data, "id", int), result_kind=result_kind, fields=_fields(data))

    raise EventParseError(f"unknown action {action!r}")


def dispatch_event(event: Event, logger: Logger) -> None:
    """Forward a decoded event to the matching logger method."""
    if isinstance(event, MsgEvent):
        logger.log(event.level, event.message)
    elif isinstance(event, StartEvent):
        logger.start_activity(event.act_id, event.level, event.kind, event.text, event.fields, event.parent)
    elif isinstance(event, StopEvent):
        logger.stop_activity(event.act_id)
    elif isinstance(event, ResultEvent):
        logger.result(event.act_id, event.result_kind, event.fields)
