"""
Tilesmith - Compact JSON

JSON writer for layout and pattern files. Flat arrays of primitives stay on
one line; named arrays can instead be wrapped a fixed number of items per
line, so a layout's row-major tile list reads as its grid.
"""

import json
from typing import Any, Mapping


def _is_flat(value) -> bool:
    return isinstance(value, (list, tuple)) and all(
        x is None or isinstance(x, (int, float, str)) for x in value
    )


def _wrapped(items: list, per_line: int, level: int, indent: int) -> str:
    pad = " " * (indent * level)
    child_pad = " " * (indent * (level + 1))
    lines = [
        child_pad + ", ".join(json.dumps(x) for x in items[i:i + per_line])
        for i in range(0, len(items), per_line)
    ]
    return "[\n" + ",\n".join(lines) + "\n" + pad + "]"


def _format(value: Any, level: int, indent: int, wrap: Mapping[str, int], key: str | None) -> str:
    pad = " " * (indent * level)
    child_pad = " " * (indent * (level + 1))

    if isinstance(value, dict):
        if not value:
            return "{}"
        items = [
            f"{child_pad}{json.dumps(str(k))}: {_format(v, level + 1, indent, wrap, str(k))}"
            for k, v in value.items()
        ]
        return "{\n" + ",\n".join(items) + "\n" + pad + "}"

    if _is_flat(value):
        per_line = wrap.get(key, 0) if key is not None else 0
        if per_line > 0 and len(value) > per_line:
            return _wrapped(list(value), per_line, level, indent)
        return json.dumps(list(value))

    if isinstance(value, (list, tuple)):
        items = [child_pad + _format(v, level + 1, indent, wrap, None) for v in value]
        return "[\n" + ",\n".join(items) + "\n" + pad + "]"

    return json.dumps(value)


def dumps(obj, indent: int = 2, wrap: Mapping[str, int] | None = None) -> str:
    """
    Serialize obj to a JSON formatted string.

    Args:
        obj: The object to serialize
        indent: Number of spaces for indentation (default: 2)
        wrap: Field name -> items per line for flat arrays under that key
              (e.g. {"tiles": width}); other flat arrays stay on one line

    Returns:
        A formatted JSON string
    """
    return _format(obj, 0, indent, wrap or {}, None)


def dump(obj, fp, indent: int = 2, wrap: Mapping[str, int] | None = None):
    """Serialize obj to a file-like object, ending with a newline."""
    fp.write(dumps(obj, indent, wrap))
    fp.write("\n")


def load(fp):
    """Wraps json.load."""
    return json.load(fp)


def loads(s):
    """Wraps json.loads."""
    return json.loads(s)
