# src/clinic_workflow/tasks/tokens.py

"""
Confirmation tokens and link construction.

A token is a deterministic, non-secret routing string. It is derived from a
small sequential id and a timestamp, so it is easy to guess and must not be
used for access control. Links also carry the plain id, and the id is what the
server trusts when a link is followed; tokens are never re-verified.
"""

from __future__ import annotations

import re
import struct
from enum import IntEnum

from .identity import MAX_TASK_ID
from .task_errors import MalformedInput

_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_MASK64 = 0xFFFFFFFFFFFFFFFF

STAFF = "staff"
CUSTOMER = "customer"


class LinkStage(IntEnum):
    """Stage ordinal mixed into the token so the two customer links never collide."""

    INITIAL = 0
    FINAL = 1

    @property
    def path_name(self) -> str:
        return "initial" if self is LinkStage.INITIAL else "final"


def _fnv1a64(data: bytes) -> int:
    h = _FNV64_OFFSET
    for byte in data:
        h ^= byte
        h = (h * _FNV64_PRIME) & _MASK64
    return h


class TokenGenerator:
    """FNV-1a 64-bit over (id, stage ordinal, content), rendered as 16 hex digits."""

    def derive(self, task_id: int, stage_ordinal: int, content: str) -> str:
        payload = struct.pack(">iB", int(task_id), int(stage_ordinal)) + content.encode("utf-8")
        return f"{_fnv1a64(payload):016x}"


def link_segment(task_id: int, token: str) -> str:
    return f"x{task_id}x{token}"


def build_link(role: str, stage: str | None, task_id: int, token: str, *, confirmed: bool = False) -> str:
    """`/<role>/<stage>/x<id>x<token>[/confirmed]`."""
    parts = ["", role]
    if stage:
        parts.append(stage)
    parts.append(link_segment(task_id, token))
    if confirmed:
        parts.append("confirmed")
    return "/".join(parts)


def parse_link_segment(segment: str) -> int:
    """Return the task id carried between the two `x` delimiters of a link segment."""
    pieces = segment.split("x")
    if len(pieces) != 3 or pieces[0] != "":
        raise MalformedInput(f"malformed link segment: {segment!r}")
    raw_id = pieces[1]
    if not re.fullmatch(r"-?[0-9]+", raw_id):
        raise MalformedInput(f"malformed task id in link segment: {segment!r}")
    task_id = int(raw_id)
    if not -MAX_TASK_ID - 1 <= task_id <= MAX_TASK_ID:
        raise MalformedInput(f"task id out of range in link segment: {segment!r}")
    return task_id
