"""LSP structures consumed by the client.

Each ``from_json`` goes through the typed accessors of json_value, so a
server payload of the wrong shape raises JsonTypeError instead of producing
half-filled objects.
"""

from dataclasses import dataclass
from typing import Any, Dict, List

from lsppp.lsp.json_value import (
    as_array,
    as_int,
    as_object,
    as_string,
    get_path,
    is_nothing,
)

SEVERITY_ERROR = 1
SEVERITY_WARNING = 2


@dataclass(frozen=True, order=True)
class Position:
    """zero-based line / character position"""

    line: int
    character: int

    @classmethod
    def from_json(cls, value: Any) -> "Position":
        obj = as_object(value)
        return cls(as_int(obj.get("line")), as_int(obj.get("character")))

    def to_json(self) -> Dict[str, int]:
        return {"line": self.line, "character": self.character}


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position

    @classmethod
    def from_json(cls, value: Any) -> "Range":
        obj = as_object(value)
        return cls(Position.from_json(obj.get("start")), Position.from_json(obj.get("end")))


@dataclass(frozen=True)
class TextEdit:
    range: Range
    new_text: str

    @classmethod
    def from_json(cls, value: Any) -> "TextEdit":
        obj = as_object(value)
        return cls(Range.from_json(obj.get("range")), as_string(obj.get("newText", "")))


@dataclass(frozen=True)
class Location:
    uri: str
    range: Range

    @classmethod
    def from_json(cls, value: Any) -> "Location":
        """accepts Location and LocationLink shapes"""
        obj = as_object(value)
        uri = obj.get("uri", obj.get("targetUri"))
        range_data = obj.get("range", obj.get("targetSelectionRange", obj.get("targetRange")))
        return cls(as_string(uri), Range.from_json(range_data))


@dataclass(frozen=True)
class Diagnostic:
    range: Range
    message: str
    severity: int = 0

    @classmethod
    def from_json(cls, value: Any) -> "Diagnostic":
        obj = as_object(value)
        severity = obj.get("severity")
        return cls(
            Range.from_json(obj.get("range")),
            as_string(obj.get("message", "")),
            0 if is_nothing(severity) else as_int(severity),
        )

    @property
    def kind(self) -> str:
        """error / warning / info"""
        if self.severity == SEVERITY_ERROR:
            return "error"
        if self.severity == SEVERITY_WARNING:
            return "warning"
        return "info"


def locations_from_result(result: Any) -> List[Location]:
    """normalize a definition/references result (single, array or null)"""
    if is_nothing(result):
        return []
    if isinstance(result, dict):
        result = [result]
    return [Location.from_json(item) for item in as_array(result)]


def text_edits_from_result(result: Any) -> List[TextEdit]:
    if is_nothing(result):
        return []
    return [TextEdit.from_json(item) for item in as_array(result)]


def diagnostics_from_params(params: Any) -> List[Diagnostic]:
    items = get_path(params, "diagnostics", default=[])
    if is_nothing(items):
        return []
    return [Diagnostic.from_json(item) for item in as_array(items)]
