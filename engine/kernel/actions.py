"""
Folio Kernel — Action Construction

Factory functions for creating well-formed editor actions.
Used by the drag/drop resolver and UI controllers to feed the reducer,
and by tests to build actions concisely.
"""

from __future__ import annotations

import copy
from typing import Any

from engine.kernel.types import Action, Portfolio


def make_action(type: str, payload: dict[str, Any] | None = None) -> Action:
    """Build an Action; payload defaults to an empty dict."""
    return Action(type=type, payload=payload or {})


def load_portfolio(portfolio: Portfolio) -> Action:
    return make_action("portfolio.load", {"portfolio": copy.deepcopy(portfolio)})


def add_block(
    kind: str,
    position: int | None = None,
    data: dict[str, Any] | None = None,
    *,
    block_id: str | None = None,
) -> Action:
    """
    position=None appends. data=None uses the kind's default payload.
    block_id lets a controller pre-assign the id it will send to the server.
    """
    payload: dict[str, Any] = {"kind": kind, "position": position, "data": data}
    if block_id is not None:
        payload["block_id"] = block_id
    return make_action("block.add", payload)


def update_block(block_id: str, data: dict[str, Any]) -> Action:
    return make_action("block.update", {"block_id": block_id, "data": data})


def remove_block(block_id: str) -> Action:
    return make_action("block.remove", {"block_id": block_id})


def move_block(block_id: str, new_index: int) -> Action:
    return make_action("block.move", {"block_id": block_id, "new_index": new_index})


def reorder_blocks(block_ids: list[str]) -> Action:
    return make_action("block.reorder", {"block_ids": list(block_ids)})


def select_block(block_id: str | None) -> Action:
    return make_action("block.select", {"block_id": block_id})


def set_template(template: str) -> Action:
    return make_action("template.set", {"template": template})


def set_preview_mode(enabled: bool) -> Action:
    return make_action("preview.set", {"enabled": enabled})


def set_viewport(mode: str) -> Action:
    return make_action("viewport.set", {"mode": mode})


def mark_clean() -> Action:
    return make_action("editor.mark_clean")


def mark_dirty() -> Action:
    return make_action("editor.mark_dirty")


def revert() -> Action:
    return make_action("editor.revert")
