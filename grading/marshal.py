"""Turns a test case's textual input into call arguments."""

from __future__ import annotations

import json


def marshal(raw_input: str) -> list[object]:
    """
    Convert a catalog input string into an argument list.

    - ``""`` gives no arguments.
    - Text starting with ``[`` or ``{`` is parsed as JSON and passed as a
      single argument; unparseable text degrades to the raw string.
    - Anything else is one string argument, unchanged. Numbers are not
      coerced here; numeric equivalence is the comparator's job.
    """
    if raw_input == "":
        return []
    if raw_input.startswith(("[", "{")):
        try:
            return [json.loads(raw_input)]
        except json.JSONDecodeError:
            return [raw_input]
    return [raw_input]
