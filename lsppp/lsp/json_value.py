"""JSON value engine: recursive-descent decoder and its matching encoder.

Decoded documents are plain Python values:

    object  -> dict
    array   -> list
    string  -> str
    number  -> int (no fraction/exponent) or float
    boolean -> bool
    null    -> NULL

NULL is a dedicated sentinel so that an explicit ``null`` stays distinct from
a key that is absent (``dict.get`` returning ``None``). The typed accessors at
the bottom of the module fail with JsonTypeError on a shape mismatch instead
of letting a wrong type leak into arithmetic or indexing.
"""

import math
import re
from typing import Any, Dict, List, Tuple, Union


class _Null:
    """the JSON ``null`` value"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "NULL"

    def __bool__(self):
        return False

    def __reduce__(self):
        return (_Null, ())


NULL = _Null()


class JsonSyntaxError(ValueError):
    """malformed or truncated JSON text"""

    def __init__(self, message: str, pos: int):
        super().__init__(f"{message} (position {pos})")
        self.pos = pos


class JsonTypeError(TypeError):
    """decoded value does not have the expected shape"""


_WHITESPACE = re.compile(r"[ \t\n\r]*")
_NUMBER = re.compile(r"-?[0-9]+(\.[0-9]+)?([eE][+-]?[0-9]+)?")
_STRING_CHUNK = re.compile(r'[^"\\]*')

_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_LITERALS = (
    ("true", True),
    ("false", False),
    ("null", NULL),
)

_ENCODE_ESCAPES = {
    ord('"'): '\\"',
    ord("\\"): "\\\\",
    ord("\n"): "\\n",
    ord("\r"): "\\r",
    ord("\t"): "\\t",
    ord("\b"): "\\b",
    ord("\f"): "\\f",
}
# remaining control characters are not allowed raw inside JSON strings
for _code in range(0x20):
    _ENCODE_ESCAPES.setdefault(_code, f"\\u{_code:04x}")


# ═══════════════════════════════════════════════════════════════════════════
# decoding
# ═══════════════════════════════════════════════════════════════════════════


def _skip_ws(text: str, pos: int) -> int:
    return _WHITESPACE.match(text, pos).end()


def parse(text: str, pos: int = 0) -> Tuple[Any, int]:
    """Parse exactly one JSON value starting at ``pos``.

    Leading whitespace is skipped. Nothing after the value is inspected,
    which lets callers compose values or resume on the same text.

    Args:
        text: JSON text
        pos: index to start parsing from

    Returns:
        (value, index immediately after the value)

    Raises:
        JsonSyntaxError: truncated input, unterminated string, unmatched
            delimiter, malformed number or unknown literal
    """
    pos = _skip_ws(text, pos)
    if pos >= len(text):
        raise JsonSyntaxError("unexpected end of input", pos)

    first = text[pos]
    if first == "{":
        return _parse_object(text, pos + 1)
    if first == "[":
        return _parse_array(text, pos + 1)
    if first == '"':
        return _parse_string(text, pos + 1)
    if first == "-" or "0" <= first <= "9":
        return _parse_number(text, pos)

    for literal, value in _LITERALS:
        if text.startswith(literal, pos):
            return value, pos + len(literal)

    raise JsonSyntaxError(f"invalid json syntax starting with {first!r}", pos)


def _parse_object(text: str, pos: int) -> Tuple[Dict[str, Any], int]:
    obj: Dict[str, Any] = {}
    pos = _skip_ws(text, pos)
    if text.startswith("}", pos):
        return obj, pos + 1

    while True:
        pos = _skip_ws(text, pos)
        if pos >= len(text):
            raise JsonSyntaxError("unterminated object", pos)
        if text[pos] != '"':
            raise JsonSyntaxError("object key must be a string", pos)
        key, pos = _parse_string(text, pos + 1)

        pos = _skip_ws(text, pos)
        if not text.startswith(":", pos):
            raise JsonSyntaxError("colon missing after object key", pos)
        obj[key], pos = parse(text, pos + 1)

        pos = _skip_ws(text, pos)
        if pos >= len(text):
            raise JsonSyntaxError("unterminated object", pos)
        if text[pos] == "}":
            return obj, pos + 1
        if text[pos] != ",":
            raise JsonSyntaxError("comma missing between object items", pos)

        # a trailing comma before the closing brace is tolerated
        pos = _skip_ws(text, pos + 1)
        if text.startswith("}", pos):
            return obj, pos + 1


def _parse_array(text: str, pos: int) -> Tuple[List[Any], int]:
    arr: List[Any] = []
    pos = _skip_ws(text, pos)
    if text.startswith("]", pos):
        return arr, pos + 1

    while True:
        value, pos = parse(text, pos)
        arr.append(value)

        pos = _skip_ws(text, pos)
        if pos >= len(text):
            raise JsonSyntaxError("unterminated array", pos)
        if text[pos] == "]":
            return arr, pos + 1
        if text[pos] != ",":
            raise JsonSyntaxError("comma missing between array items", pos)

        pos = _skip_ws(text, pos + 1)
        if text.startswith("]", pos):
            return arr, pos + 1


def _parse_string(text: str, pos: int) -> Tuple[str, int]:
    # pos points just past the opening quote
    chunks = []
    end = len(text)
    while True:
        match = _STRING_CHUNK.match(text, pos)
        chunks.append(match.group())
        pos = match.end()
        if pos >= end:
            raise JsonSyntaxError("end of input found while parsing string", pos)

        if text[pos] == '"':
            return "".join(chunks), pos + 1

        # backslash: known escapes are translated, anything else passes through
        if pos + 1 >= end:
            raise JsonSyntaxError("end of input found while parsing string", pos)
        escaped = text[pos + 1]
        chunks.append(_ESCAPES.get(escaped, escaped))
        pos += 2


def _parse_number(text: str, pos: int) -> Tuple[Union[int, float], int]:
    match = _NUMBER.match(text, pos)
    if match is None:
        raise JsonSyntaxError("error parsing number", pos)

    token = match.group()
    try:
        if match.group(1) or match.group(2):
            value = float(token)
        else:
            value = int(token)
    except ValueError:
        raise JsonSyntaxError(f"error parsing number {token!r}", pos)
    return value, match.end()


def decode(text: str) -> Any:
    """Decode a complete JSON document (only whitespace may follow it)."""
    try:
        value, pos = parse(text)
    except RecursionError:
        raise JsonSyntaxError("nesting too deep", 0) from None
    pos = _skip_ws(text, pos)
    if pos != len(text):
        raise JsonSyntaxError("unexpected data after json value", pos)
    return value


# ═══════════════════════════════════════════════════════════════════════════
# encoding
# ═══════════════════════════════════════════════════════════════════════════


def _encode_string(value: str) -> str:
    return '"' + value.translate(_ENCODE_ESCAPES) + '"'


def encode(value: Any) -> str:
    """Encode a Python value as compact JSON text.

    Integers (and floats with no fractional part) are written without a
    decimal point, so request ids round-trip exactly. ``None`` and NULL
    both encode as ``null``.
    """
    if value is None or value is NULL:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise JsonTypeError(f"cannot encode non-finite number {value!r}")
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, str):
        return _encode_string(value)
    if isinstance(value, dict):
        items = (f"{_encode_string(str(key))}:{encode(item)}" for key, item in value.items())
        return "{" + ",".join(items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(encode(item) for item in value) + "]"
    raise JsonTypeError(f"cannot encode value of type {type(value).__name__}")


# ═══════════════════════════════════════════════════════════════════════════
# typed accessors
# ═══════════════════════════════════════════════════════════════════════════


def type_name(value: Any) -> str:
    """JSON type name of a decoded value ("absent" for None)"""
    if value is None:
        return "absent"
    if value is NULL:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _mismatch(expected: str, value: Any) -> JsonTypeError:
    return JsonTypeError(f"expected {expected}, got {type_name(value)}")


def as_object(value: Any) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise _mismatch("object", value)
    return value


def as_array(value: Any) -> List[Any]:
    if not isinstance(value, list):
        raise _mismatch("array", value)
    return value


def as_string(value: Any) -> str:
    if not isinstance(value, str):
        raise _mismatch("string", value)
    return value


def as_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise _mismatch("boolean", value)
    return value


def as_number(value: Any) -> Union[int, float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _mismatch("number", value)
    return value


def as_int(value: Any) -> int:
    number = as_number(value)
    if isinstance(number, float):
        if not number.is_integer():
            raise JsonTypeError(f"expected integer, got {number!r}")
        return int(number)
    return number


def is_null(value: Any) -> bool:
    """explicit JSON null (an absent key is not null)"""
    return value is NULL


def is_nothing(value: Any) -> bool:
    """absent or explicit null"""
    return value is None or value is NULL


def get_path(value: Any, *keys: Union[str, int], default: Any = None) -> Any:
    """Walk nested objects/arrays.

    Returns ``default`` when a key or index is missing or an intermediate
    value is absent/null; a container of the wrong shape raises
    JsonTypeError.

    Example:
        get_path(message, "result", "capabilities", default={})
    """
    current = value
    for key in keys:
        if is_nothing(current):
            return default
        if isinstance(key, int):
            items = as_array(current)
            if not -len(items) <= key < len(items):
                return default
            current = items[key]
        else:
            current = as_object(current).get(key)
    if current is None:
        return default
    return current
