# src/clinic_workflow/tasks/inspection.py

"""
Check-state interpretation.

A check state is a string of ASCII digits. The first digit is the format
version, each following digit is 1 (pass) or 0 (fail) for one inspection item
in the order defined for that version:

    version 1: screen, keyboard, touchpad   ->  "1110" = touchpad failed

Storage keeps check states as opaque text. Anything that interprets them must
go through `decode_check_state`, which rejects versions it does not know
(for example "9111").
"""

from __future__ import annotations

from .task_errors import MalformedInput

CHECKLISTS: dict[str, tuple[str, ...]] = {
    "1": ("screen", "keyboard", "touchpad"),
}


class UnknownCheckStateVersion(MalformedInput):
    code = "UNKNOWN_CHECK_STATE_VERSION"


def validate_check_state(raw: str) -> str:
    """Raise MalformedInput unless `raw` is a well-formed check state of a known version."""
    if not raw:
        raise MalformedInput("check state is empty")
    if not (raw.isascii() and raw.isdigit()):
        raise MalformedInput(f"check state must contain only digits: {raw!r}")

    version, results = raw[0], raw[1:]
    items = CHECKLISTS.get(version)
    if items is None:
        raise UnknownCheckStateVersion(f"unknown check state version {version!r} in {raw!r}")
    if len(results) != len(items):
        raise MalformedInput(
            f"check state version {version} expects {len(items)} item(s), got {len(results)}"
        )
    bad = [d for d in results if d not in "01"]
    if bad:
        raise MalformedInput(f"check state items must be 0 or 1: {raw!r}")
    return raw


def decode_check_state(raw: str) -> dict[str, bool]:
    """Map each inspection item of `raw` to True (passed) or False (failed)."""
    validate_check_state(raw)
    items = CHECKLISTS[raw[0]]
    return {item: digit == "1" for item, digit in zip(items, raw[1:])}


def failed_items(raw: str) -> list[str]:
    return [item for item, ok in decode_check_state(raw).items() if not ok]
