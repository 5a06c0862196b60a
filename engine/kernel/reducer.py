"""
Folio Kernel — Editor Reducer

Pure function: (state, action) → ReduceResult
No side effects. No IO. Never talks to the builder.

The client's optimistic copy of a portfolio. Structural verbs run through
the same ordering functions the builder uses, so replaying one sequence of
edits here and on the server yields the same block order and payloads.

Anything that cannot apply locally (unknown block, no portfolio loaded,
unknown action) is a no-op with a warning, never an exception.
"""

from __future__ import annotations

import copy
from dataclasses import replace

from engine.kernel.blocks import default_block_data, sanitize_block_data
from engine.kernel.ordering import insert_at, move_to, normalize, remove_by_id, reorder_by_ids
from engine.kernel.types import (
    BLOCK_KINDS,
    TEMPLATE_KINDS,
    VIEWPORT_MODES,
    Action,
    Block,
    EditorState,
    Portfolio,
    ReduceResult,
    new_id,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def empty_editor_state() -> EditorState:
    """Nothing loaded, nothing selected, clean, desktop."""
    return EditorState()


def reduce(state: EditorState, action: Action) -> ReduceResult:
    """
    Apply one action to the current state.

    The returned state is a new object; the input state is never modified.
    """
    handler = _HANDLERS.get(action.type)
    if handler is None:
        return _reject(state, f"UNKNOWN_ACTION: {action.type}")

    if handler in _NEEDS_PORTFOLIO and state.portfolio is None:
        return _reject(state, f"NO_PORTFOLIO: {action.type}")

    return handler(copy.deepcopy(state), action.payload)


def replay(actions: list[Action], state: EditorState | None = None) -> EditorState:
    """Reduce a sequence of actions, skipping those that do not apply."""
    current = state or empty_editor_state()
    for action in actions:
        current = reduce(current, action).state
    return current


def selected_block(state: EditorState) -> Block | None:
    """Resolve the selection against the current blocks."""
    if state.portfolio is None or state.selected_block_id is None:
        return None
    return next((b for b in state.portfolio.blocks if b.id == state.selected_block_id), None)


def snapshot(state: EditorState) -> Portfolio | None:
    """A copy of the local portfolio, safe to hand to a save call."""
    return copy.deepcopy(state.portfolio)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _reject(state: EditorState, warning: str) -> ReduceResult:
    return ReduceResult(state=state, applied=False, warning=warning)


def _ok(state: EditorState) -> ReduceResult:
    return ReduceResult(state=state, applied=True)


def _has_block(state: EditorState, block_id: str | None) -> bool:
    return any(b.id == block_id for b in state.portfolio.blocks)


def _structural(state: EditorState, blocks: list[Block]) -> ReduceResult:
    state.portfolio.blocks = blocks
    state.is_dirty = True
    if state.selected_block_id is not None and not _has_block(state, state.selected_block_id):
        state.selected_block_id = None
    return _ok(state)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _handle_load(state: EditorState, p: dict) -> ReduceResult:
    portfolio = p.get("portfolio")
    if not isinstance(portfolio, Portfolio):
        return _reject(state, "INVALID_PAYLOAD: portfolio.load requires a Portfolio")
    portfolio = replace(portfolio, blocks=normalize(portfolio.blocks))
    state.portfolio = copy.deepcopy(portfolio)
    state.saved = copy.deepcopy(portfolio)
    state.selected_block_id = None
    state.is_dirty = False
    return _ok(state)


def _handle_block_add(state: EditorState, p: dict) -> ReduceResult:
    kind = p.get("kind")
    if kind not in BLOCK_KINDS:
        return _reject(state, f"UNKNOWN_KIND: {kind}")

    block_id = p.get("block_id")
    if block_id is not None and not isinstance(block_id, str):
        return _reject(state, "INVALID_PAYLOAD: block.add 'block_id' must be a string")
    block_id = block_id or new_id()
    if _has_block(state, block_id):
        return _reject(state, f"BLOCK_EXISTS: {block_id}")

    blocks = state.portfolio.blocks
    position = p.get("position")
    if position is not None and (not isinstance(position, int) or isinstance(position, bool)):
        return _reject(state, "INVALID_PAYLOAD: block.add 'position' must be an integer")
    index = len(blocks) if position is None else position
    data = p.get("data")
    if data is not None and not isinstance(data, dict):
        return _reject(state, "INVALID_PAYLOAD: block.add 'data' must be an object")
    block = Block(
        id=block_id,
        kind=kind,
        position=index,
        data=default_block_data(kind) if data is None else sanitize_block_data(kind, data),
    )
    return _structural(state, insert_at(blocks, block, index))


def _handle_block_update(state: EditorState, p: dict) -> ReduceResult:
    block_id = p.get("block_id")
    data = p.get("data")
    if not _has_block(state, block_id):
        return _reject(state, f"BLOCK_NOT_FOUND: {block_id}")
    if not isinstance(data, dict):
        return _reject(state, "INVALID_PAYLOAD: block.update requires 'data'")

    blocks = [
        replace(b, data=sanitize_block_data(b.kind, {**b.data, **data})) if b.id == block_id else b
        for b in state.portfolio.blocks
    ]
    return _structural(state, blocks)


def _handle_block_remove(state: EditorState, p: dict) -> ReduceResult:
    block_id = p.get("block_id")
    if not _has_block(state, block_id):
        return _reject(state, f"BLOCK_NOT_FOUND: {block_id}")
    return _structural(state, remove_by_id(state.portfolio.blocks, block_id))


def _handle_block_move(state: EditorState, p: dict) -> ReduceResult:
    block_id = p.get("block_id")
    new_index = p.get("new_index")
    if not _has_block(state, block_id):
        return _reject(state, f"BLOCK_NOT_FOUND: {block_id}")
    if not isinstance(new_index, int) or isinstance(new_index, bool):
        return _reject(state, "INVALID_PAYLOAD: block.move requires integer 'new_index'")
    return _structural(state, move_to(state.portfolio.blocks, block_id, new_index))


def _handle_block_reorder(state: EditorState, p: dict) -> ReduceResult:
    block_ids = p.get("block_ids")
    if not isinstance(block_ids, list) or not all(isinstance(b, str) for b in block_ids):
        return _reject(state, "INVALID_PAYLOAD: block.reorder requires a list of string 'block_ids'")
    return _structural(state, reorder_by_ids(state.portfolio.blocks, block_ids))


def _handle_block_select(state: EditorState, p: dict) -> ReduceResult:
    block_id = p.get("block_id")
    if block_id is not None and (state.portfolio is None or not _has_block(state, block_id)):
        return _reject(state, f"BLOCK_NOT_FOUND: {block_id}")
    state.selected_block_id = block_id
    return _ok(state)


def _handle_template_set(state: EditorState, p: dict) -> ReduceResult:
    template = p.get("template")
    if template not in TEMPLATE_KINDS:
        return _reject(state, f"UNKNOWN_TEMPLATE: {template}")
    state.portfolio.template = template
    state.is_dirty = True
    return _ok(state)


def _handle_preview_set(state: EditorState, p: dict) -> ReduceResult:
    state.is_preview_mode = bool(p.get("enabled"))
    return _ok(state)


def _handle_viewport_set(state: EditorState, p: dict) -> ReduceResult:
    mode = p.get("mode")
    if mode not in VIEWPORT_MODES:
        return _reject(state, f"UNKNOWN_VIEWPORT: {mode}")
    state.viewport_mode = mode
    return _ok(state)


def _handle_mark_clean(state: EditorState, p: dict) -> ReduceResult:
    state.is_dirty = False
    state.saved = copy.deepcopy(state.portfolio)
    return _ok(state)


def _handle_mark_dirty(state: EditorState, p: dict) -> ReduceResult:
    state.is_dirty = True
    return _ok(state)


def _handle_revert(state: EditorState, p: dict) -> ReduceResult:
    if state.saved is None:
        return _reject(state, "NOTHING_SAVED: editor.revert")
    state.portfolio = copy.deepcopy(state.saved)
    state.is_dirty = False
    if state.selected_block_id is not None and not _has_block(state, state.selected_block_id):
        state.selected_block_id = None
    return _ok(state)


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------

_HANDLERS = {
    "portfolio.load": _handle_load,
    "block.add": _handle_block_add,
    "block.update": _handle_block_update,
    "block.remove": _handle_block_remove,
    "block.move": _handle_block_move,
    "block.reorder": _handle_block_reorder,
    "block.select": _handle_block_select,
    "template.set": _handle_template_set,
    "preview.set": _handle_preview_set,
    "viewport.set": _handle_viewport_set,
    "editor.mark_clean": _handle_mark_clean,
    "editor.mark_dirty": _handle_mark_dirty,
    "editor.revert": _handle_revert,
}

_NEEDS_PORTFOLIO = {
    _handle_block_add,
    _handle_block_update,
    _handle_block_remove,
    _handle_block_move,
    _handle_block_reorder,
    _handle_template_set,
    _handle_revert,
}
