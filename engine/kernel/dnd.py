"""
Folio Kernel — Drag/Drop Resolver

Pure function: (drag item, target gap) → DropResolution
Decides which ordering operation a gesture means. No validation, no IO.

Gaps sit between rendered blocks: n blocks have gaps 0..n. Dropping an
instance on either gap adjacent to itself is a no-op, never a visible jump.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from engine.kernel import actions
from engine.kernel.types import Action

ZONE_CANVAS = "canvas"
ZONE_TRASH = "trash"

NOOP = "noop"


@dataclass(frozen=True)
class PaletteItem:
    """A block kind dragged from the palette. Has no identity yet."""

    kind: str


@dataclass(frozen=True)
class InstanceItem:
    """An existing block dragged from the canvas."""

    block_id: str
    index: int


@dataclass
class DropResolution:
    operation: str  # "add_block" | "move_block" | "remove_block" | "noop"
    args: dict[str, Any] = field(default_factory=dict)

    @property
    def is_noop(self) -> bool:
        return self.operation == "noop"


def resolve_drop(
    item: PaletteItem | InstanceItem,
    gap_index: int,
    *,
    block_count: int | None = None,
    zone: str = ZONE_CANVAS,
) -> DropResolution:
    """
    Map a drop gesture to an operation.

    Palette at gap i → add_block(kind, position=i).
    Instance at gap i, currently at c:
        i == c or i == c + 1 → noop
        i < c                → move_block(new_index=i)
        i > c + 1            → move_block(new_index=i - 1)
    Instance on trash → remove_block. Palette on trash → noop.
    """
    if zone == ZONE_TRASH:
        if isinstance(item, InstanceItem):
            return DropResolution("remove_block", {"block_id": item.block_id})
        return DropResolution(NOOP)

    if zone != ZONE_CANVAS:
        return DropResolution(NOOP)

    gap = max(0, gap_index)
    if block_count is not None:
        gap = min(gap, block_count)

    if isinstance(item, PaletteItem):
        return DropResolution("add_block", {"kind": item.kind, "position": gap})

    current = item.index
    if gap in (current, current + 1):
        return DropResolution(NOOP)
    new_index = gap if gap < current else gap - 1
    return DropResolution("move_block", {"block_id": item.block_id, "new_index": new_index})


def to_action(resolution: DropResolution) -> Action | None:
    """Turn a resolution into a reducer action. None for noop."""
    args = resolution.args
    if resolution.operation == "add_block":
        return actions.add_block(args["kind"], position=args["position"])
    if resolution.operation == "move_block":
        return actions.move_block(args["block_id"], args["new_index"])
    if resolution.operation == "remove_block":
        return actions.remove_block(args["block_id"])
    return None
