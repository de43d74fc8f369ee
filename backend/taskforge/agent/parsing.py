"""Tool-call directive parsing.

Models request a tool by embedding a directive in their free-text reply:

    <tool>read_file</tool><params>{"path": "src/app.py"}</params>

Only the first directive in a response is honored. Anything after it is
counted (so the executor can log it) but never executed.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Union

TOOL_CALL_PATTERN = re.compile(
    r"<tool>([^<]+)</tool><params>(.*?)</params>", re.DOTALL
)


@dataclass(frozen=True)
class NoToolCall:
    """The response is a final answer."""


@dataclass(frozen=True)
class ToolCall:
    name: str
    raw_params: str
    params: dict = field(default_factory=dict)
    extra_calls: int = 0


@dataclass(frozen=True)
class MalformedToolCall:
    """A directive was found but its params are not a JSON object."""

    name: str
    raw_params: str
    reason: str
    extra_calls: int = 0


ParsedResponse = Union[NoToolCall, ToolCall, MalformedToolCall]


def parse_tool_call(content: str) -> ParsedResponse:
    matches = list(TOOL_CALL_PATTERN.finditer(content))
    if not matches:
        return NoToolCall()

    first = matches[0]
    name = first.group(1).strip()
    raw_params = first.group(2)
    extra_calls = len(matches) - 1

    if not raw_params.strip():
        return ToolCall(name=name, raw_params=raw_params, extra_calls=extra_calls)

    try:
        params = json.loads(raw_params)
    except json.JSONDecodeError as e:
        return MalformedToolCall(
            name=name,
            raw_params=raw_params,
            reason=f"invalid JSON: {e}",
            extra_calls=extra_calls,
        )

    if not isinstance(params, dict):
        return MalformedToolCall(
            name=name,
            raw_params=raw_params,
            reason=f"expected a JSON object, got {type(params).__name__}",
            extra_calls=extra_calls,
        )

    return ToolCall(
        name=name, raw_params=raw_params, params=params, extra_calls=extra_calls
    )
