"""
Folio Kernel — the pure engine.

Components:
  blocks    — per-kind payload validation, defaults, sanitizing
  ordering  — dense position maintenance (insert/remove/move/reorder)
  builder   — owner-scoped portfolio operations over storage + media
  reducer   — (editor state, action) → editor state  (pure, optimistic)
  dnd       — drag gesture → ordering operation
  renderer  — (template, blocks) → render plan → HTML
"""

from engine.kernel.blocks import default_block_data, validate_block, validate_block_data
from engine.kernel.builder import Conflict, NotFound, PortfolioBuilder, ValidationFailed
from engine.kernel.dnd import InstanceItem, PaletteItem, resolve_drop
from engine.kernel.ordering import insert_at, move_to, normalize, remove_by_id, reorder_by_ids
from engine.kernel.reducer import empty_editor_state, reduce, replay
from engine.kernel.renderer import build_render_plan, render_html

__all__ = [
    "validate_block",
    "validate_block_data",
    "default_block_data",
    "insert_at",
    "remove_by_id",
    "move_to",
    "reorder_by_ids",
    "normalize",
    "PortfolioBuilder",
    "ValidationFailed",
    "NotFound",
    "Conflict",
    "reduce",
    "replay",
    "empty_editor_state",
    "PaletteItem",
    "InstanceItem",
    "resolve_drop",
    "build_render_plan",
    "render_html",
]
