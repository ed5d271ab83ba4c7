"""Plain-text rendering of a request's repeated model loads."""

from __future__ import annotations

import re

LoadLog = dict[str, dict[str, list[str]]]

BANNER_WIDTH = 220
BANNER_FILL = "-"

_SPECIAL_ENTITIES = {"&amp;": "&", "&quot;": "\"", "&lt;": "<", "&gt;": ">"}
_SPECIAL_ENTITY_RE = re.compile("|".join(map(re.escape, _SPECIAL_ENTITIES)))


def filter_repeats(data: LoadLog) -> LoadLog:
    """Return a copy keeping only ids loaded at least twice.

    Type buckets left empty are dropped. ``data`` is not modified.
    """

    repeated: LoadLog = {}
    for type_name, ids in data.items():
        kept = {identifier: list(locations) for identifier, locations in ids.items() if len(locations) > 1}
        if kept:
            repeated[type_name] = kept
    return repeated


def chop_start(value: str, prefix: str) -> str:
    if prefix and value.startswith(prefix):
        return value[len(prefix):]
    return value


def format_summary(repeated: LoadLog, path_prefix: str = "") -> str:
    lines = ["Repeated model loads:"]
    for type_name, ids in repeated.items():
        lines.append(f"{type_name}:")
        for identifier, locations in ids.items():
            shortened = [chop_start(location, path_prefix) for location in locations]
            lines.append(f"- ID: {identifier}, Count: {len(shortened)}, Locations:")
            lines.extend(f"  - {location}" for location in shortened)
    return "\n".join(lines) + "\n"


def pad_both(text: str, width: int = BANNER_WIDTH, fill: str = BANNER_FILL) -> str:
    """Center ``text`` in ``width`` columns; the odd fill char goes right.

    Text longer than ``width`` is returned unchanged.
    """

    missing = width - len(text)
    if missing <= 0:
        return text
    left = missing // 2
    return fill * left + text + fill * (missing - left)


def decode_special_chars(text: str) -> str:
    """Reverse only the HTML special-character escapes, leaving other `&name` runs alone."""

    return _SPECIAL_ENTITY_RE.sub(lambda match: _SPECIAL_ENTITIES[match.group(0)], text)


def build_report(url: str, total_loaded: int, summary: str) -> str:
    decoded = decode_special_chars(url)
    sections = [
        "\n\n",
        pad_both(f" {decoded} "),
        f"Total number of loaded models: {total_loaded}",
        summary,
    ]
    return "\n\n".join(sections)
