"""
Folio Kernel — Ordering

Pure functions over an ordered block list. Every function returns a new
list of new Block values whose positions are exactly 0..n-1. Inputs are
never modified.

Blocks arriving with equal positions (external data) are ordered by their
index in the input list before relabeling.
"""

from __future__ import annotations

from dataclasses import replace

from engine.kernel.types import Block


def normalize(blocks: list[Block]) -> list[Block]:
    """Stable sort by (position, input index), then relabel 0..n-1."""
    ranked = sorted(enumerate(blocks), key=lambda pair: (pair[1].position, pair[0]))
    return [replace(block, position=i) for i, (_, block) in enumerate(ranked)]


def is_dense(blocks: list[Block]) -> bool:
    """True if positions are exactly {0, 1, ..., n-1}."""
    return sorted(b.position for b in blocks) == list(range(len(blocks)))


def index_of(blocks: list[Block], block_id: str) -> int | None:
    """Current rank of a block in display order, or None if absent."""
    for i, block in enumerate(normalize(blocks)):
        if block.id == block_id:
            return i
    return None


def insert_at(blocks: list[Block], new_block: Block, index: int) -> list[Block]:
    """
    Insert new_block so it lands at `index` (clamped to [0, len]).

    Existing blocks at or after the index shift down by one.
    """
    ordered = normalize(blocks)
    index = max(0, min(index, len(ordered)))

    shifted = [replace(b, position=b.position + 1) if b.position >= index else b for b in ordered]
    return normalize([*shifted, replace(new_block, position=index)])


def remove_by_id(blocks: list[Block], block_id: str) -> list[Block]:
    """
    Drop the block with this id and relabel the rest in their prior order.

    Unknown ids are a no-op: the input comes back unchanged.
    """
    if not any(b.id == block_id for b in blocks):
        return blocks
    return normalize([b for b in blocks if b.id != block_id])


def move_to(blocks: list[Block], block_id: str, new_index: int) -> list[Block]:
    """
    Move a block to `new_index`: remove it, then insert it at that index.

    Moving a block to the index it already holds returns the input unchanged.
    Unknown ids are a no-op.
    """
    current = index_of(blocks, block_id)
    if current is None:
        return blocks

    remaining = normalize([b for b in blocks if b.id != block_id])
    clamped = max(0, min(new_index, len(remaining)))
    if clamped == current and is_dense(blocks):
        return blocks

    moving = next(b for b in blocks if b.id == block_id)
    return insert_at(remaining, moving, clamped)


def reorder_by_ids(blocks: list[Block], block_ids: list[str]) -> list[Block]:
    """
    Rebuild the list in the order given by block_ids.

    The given sequence is the new membership: blocks whose ids are omitted
    are dropped. Unknown ids are ignored; a repeated id keeps its first slot.
    """
    by_id = {b.id: b for b in blocks}
    seen: set[str] = set()
    ordered: list[Block] = []
    for block_id in block_ids:
        if block_id in by_id and block_id not in seen:
            seen.add(block_id)
            ordered.append(by_id[block_id])
    return [replace(block, position=i) for i, block in enumerate(ordered)]
