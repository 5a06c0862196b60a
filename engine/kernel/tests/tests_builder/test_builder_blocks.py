"""
Folio Kernel -- Builder Block Operation Tests

add/update/remove/move/reorder. Nothing invalid is ever persisted and
positions stay dense after every commit.
"""

import pytest

from engine.kernel.builder import Conflict, NotFound, ValidationFailed
from engine.kernel.ordering import is_dense

OWNER = "owner_test"
OTHER_OWNER = "owner_other"


@pytest.fixture
async def portfolio(builder):
    return await builder.create_portfolio(OWNER, "Blocks")


def kinds(portfolio) -> list[str]:
    return [b.kind for b in sorted(portfolio.blocks, key=lambda b: b.position)]


class TestAddBlock:
    @pytest.mark.asyncio
    async def test_append_uses_default_payload(self, builder, portfolio):
        updated = await builder.add_block(portfolio.id, OWNER, "title")
        assert len(updated.blocks) == 1
        assert updated.blocks[0].data["text"] == "New Title"
        assert updated.blocks[0].position == 0

    @pytest.mark.asyncio
    async def test_insert_at_front(self, builder, portfolio):
        await builder.add_block(portfolio.id, OWNER, "title", position=0)
        updated = await builder.add_block(portfolio.id, OWNER, "divider", position=0)
        assert kinds(updated) == ["divider", "title"]
        assert [b.position for b in updated.blocks] == [0, 1]

    @pytest.mark.asyncio
    async def test_position_clamped(self, builder, portfolio):
        await builder.add_block(portfolio.id, OWNER, "title")
        updated = await builder.add_block(portfolio.id, OWNER, "divider", position=50)
        assert kinds(updated) == ["title", "divider"]

    @pytest.mark.asyncio
    async def test_unknown_kind_rejected(self, builder, portfolio):
        with pytest.raises(ValidationFailed) as exc:
            await builder.add_block(portfolio.id, OWNER, "video")
        assert exc.value.field == "kind"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("position", ["1", 1.5, True])
    async def test_non_integer_position_rejected(self, builder, portfolio, position):
        with pytest.raises(ValidationFailed) as exc:
            await builder.add_block(portfolio.id, OWNER, "title", position=position)
        assert exc.value.field == "position"
        assert (await builder.get_portfolio(portfolio.id, OWNER)).blocks == []

    @pytest.mark.asyncio
    async def test_invalid_payload_not_persisted(self, builder, portfolio):
        with pytest.raises(ValidationFailed) as exc:
            await builder.add_block(portfolio.id, OWNER, "link", {"text": "x", "url": "nope"})
        assert exc.value.field == "data"
        assert (await builder.get_portfolio(portfolio.id, OWNER)).blocks == []

    @pytest.mark.asyncio
    async def test_payload_sanitized_before_storing(self, builder, portfolio):
        updated = await builder.add_block(
            portfolio.id, OWNER, "richtext", {"content": "<p>Hi</p><script>steal()</script>"}
        )
        assert updated.blocks[0].data["content"] == "<p>Hi</p>"

    @pytest.mark.asyncio
    async def test_client_assigned_block_id(self, builder, portfolio):
        updated = await builder.add_block(portfolio.id, OWNER, "title", block_id="client-1")
        assert updated.blocks[0].id == "client-1"

    @pytest.mark.asyncio
    async def test_client_block_id_collision_is_conflict(self, builder, portfolio):
        await builder.add_block(portfolio.id, OWNER, "title", block_id="client-1")
        with pytest.raises(Conflict):
            await builder.add_block(portfolio.id, OWNER, "divider", block_id="client-1")

    @pytest.mark.asyncio
    async def test_other_owner_not_found(self, builder, portfolio):
        with pytest.raises(NotFound):
            await builder.add_block(portfolio.id, OTHER_OWNER, "title")


class TestUpdateBlock:
    @pytest.mark.asyncio
    async def test_shallow_merge(self, builder, portfolio):
        added = await builder.add_block(portfolio.id, OWNER, "title")
        block_id = added.blocks[0].id

        updated = await builder.update_block(portfolio.id, OWNER, block_id, {"text": "Hello"})
        assert updated.blocks[0].data == {"text": "Hello", "level": 2, "alignment": "left"}

    @pytest.mark.asyncio
    async def test_invalid_merge_rejected(self, builder, portfolio):
        added = await builder.add_block(portfolio.id, OWNER, "title")
        block_id = added.blocks[0].id

        with pytest.raises(ValidationFailed):
            await builder.update_block(portfolio.id, OWNER, block_id, {"level": 9})
        stored = await builder.get_portfolio(portfolio.id, OWNER)
        assert stored.blocks[0].data["level"] == 2

    @pytest.mark.asyncio
    async def test_unknown_block_not_found(self, builder, portfolio):
        with pytest.raises(NotFound) as exc:
            await builder.update_block(portfolio.id, OWNER, "ghost", {"text": "x"})
        assert exc.value.kind == "block"


class TestRemoveMoveReorder:
    @pytest.fixture
    async def three(self, builder, portfolio):
        for kind in ("title", "richtext", "divider"):
            await builder.add_block(portfolio.id, OWNER, kind)
        return await builder.get_portfolio(portfolio.id, OWNER)

    @pytest.mark.asyncio
    async def test_remove_relabels(self, builder, three):
        middle = three.blocks[1].id
        updated = await builder.remove_block(three.id, OWNER, middle)
        assert kinds(updated) == ["title", "divider"]
        assert is_dense(updated.blocks)

    @pytest.mark.asyncio
    async def test_remove_unknown_is_noop(self, builder, three):
        updated = await builder.remove_block(three.id, OWNER, "ghost")
        assert kinds(updated) == ["title", "richtext", "divider"]

    @pytest.mark.asyncio
    async def test_move(self, builder, three):
        first = three.blocks[0].id
        updated = await builder.move_block(three.id, OWNER, first, 2)
        assert kinds(updated) == ["richtext", "divider", "title"]

    @pytest.mark.asyncio
    async def test_move_unknown_not_found(self, builder, three):
        with pytest.raises(NotFound):
            await builder.move_block(three.id, OWNER, "ghost", 0)

    @pytest.mark.asyncio
    async def test_reorder_drops_omitted(self, builder, three):
        last = three.blocks[2].id
        first = three.blocks[0].id
        updated = await builder.reorder_blocks(three.id, OWNER, [last, first])
        assert kinds(updated) == ["divider", "title"]
        assert is_dense(updated.blocks)

    @pytest.mark.asyncio
    async def test_reorder_requires_string_list(self, builder, three):
        with pytest.raises(ValidationFailed) as exc:
            await builder.reorder_blocks(three.id, OWNER, [1, 2])
        assert exc.value.field == "block_ids"


class TestWalkthrough:
    """Empty draft → two inserts → reorder → publish cycle."""

    @pytest.mark.asyncio
    async def test_full_scenario(self, builder, portfolio):
        after_title = await builder.add_block(portfolio.id, OWNER, "title", position=0)
        title_id = after_title.blocks[0].id
        after_divider = await builder.add_block(portfolio.id, OWNER, "divider", position=0)
        assert kinds(after_divider) == ["divider", "title"]
        assert [b.position for b in after_divider.blocks] == [0, 1]

        reordered = await builder.reorder_blocks(portfolio.id, OWNER, [title_id])
        assert [(b.id, b.position) for b in reordered.blocks] == [(title_id, 0)]

        published = await builder.publish(portfolio.id, OWNER, True)
        slug = published.slug
        assert slug

        await builder.publish(portfolio.id, OWNER, False)
        republished = await builder.publish(portfolio.id, OWNER, True)
        assert republished.slug == slug
