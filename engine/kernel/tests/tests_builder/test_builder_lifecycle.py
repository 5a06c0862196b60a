"""
Folio Kernel -- Builder Lifecycle Tests

Create, read, list, and metadata updates. Ownership failures look
exactly like missing portfolios.
"""

import pytest

from engine.kernel.blocks import default_block_data
from engine.kernel.builder import NotFound, ValidationFailed
from engine.kernel.types import STATUS_DRAFT

OWNER = "owner_test"
OTHER_OWNER = "owner_other"


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_empty_draft(self, builder):
        portfolio = await builder.create_portfolio(OWNER, "My Work")

        assert portfolio.title == "My Work"
        assert portfolio.owner_id == OWNER
        assert portfolio.blocks == []
        assert portfolio.status == STATUS_DRAFT
        assert portfolio.slug is None
        assert portfolio.template == "gallery"
        assert portfolio.theme == "default"
        assert portfolio.created_at == portfolio.updated_at

    @pytest.mark.asyncio
    async def test_create_with_template_and_theme(self, builder):
        portfolio = await builder.create_portfolio(OWNER, "About me", template="about", theme="dark")
        assert portfolio.template == "about"
        assert portfolio.theme == "dark"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("title", ["", "   ", "x" * 201])
    async def test_bad_title_rejected(self, builder, storage, title):
        with pytest.raises(ValidationFailed) as exc:
            await builder.create_portfolio(OWNER, title)
        assert exc.value.field == "title"
        assert storage.portfolios == {}

    @pytest.mark.asyncio
    async def test_unknown_template_rejected(self, builder):
        with pytest.raises(ValidationFailed) as exc:
            await builder.create_portfolio(OWNER, "Work", template="blog")
        assert exc.value.field == "template"

    @pytest.mark.asyncio
    async def test_ids_are_unique(self, builder):
        first = await builder.create_portfolio(OWNER, "One")
        second = await builder.create_portfolio(OWNER, "Two")
        assert first.id != second.id


class TestRead:
    @pytest.mark.asyncio
    async def test_get_own_portfolio(self, builder):
        created = await builder.create_portfolio(OWNER, "Mine")
        fetched = await builder.get_portfolio(created.id, OWNER)
        assert fetched.id == created.id
        assert fetched.title == "Mine"

    @pytest.mark.asyncio
    async def test_other_owner_gets_not_found(self, builder):
        created = await builder.create_portfolio(OWNER, "Mine")
        with pytest.raises(NotFound) as exc:
            await builder.get_portfolio(created.id, OTHER_OWNER)
        assert exc.value.kind == "portfolio"

    @pytest.mark.asyncio
    async def test_missing_portfolio_not_found(self, builder):
        with pytest.raises(NotFound):
            await builder.get_portfolio("does-not-exist", OWNER)

    @pytest.mark.asyncio
    async def test_list_only_own_most_recent_first(self, builder):
        first = await builder.create_portfolio(OWNER, "First")
        second = await builder.create_portfolio(OWNER, "Second")
        await builder.create_portfolio(OTHER_OWNER, "Theirs")
        await builder.update_portfolio(first.id, OWNER, title="First, edited")

        listed = await builder.list_portfolios(OWNER)
        assert [p.id for p in listed] == [first.id, second.id]

    @pytest.mark.asyncio
    async def test_get_published_hides_drafts(self, builder):
        created = await builder.create_portfolio(OWNER, "Draft")
        published = await builder.publish(created.id, OWNER, True)
        await builder.publish(created.id, OWNER, False)
        with pytest.raises(NotFound):
            await builder.get_published(published.slug)


class TestUpdateMetadata:
    @pytest.mark.asyncio
    async def test_partial_update_changes_only_given_fields(self, builder):
        created = await builder.create_portfolio(OWNER, "Old", template="about", theme="light")
        updated = await builder.update_portfolio(created.id, OWNER, title="New")

        assert updated.title == "New"
        assert updated.template == "about"
        assert updated.theme == "light"
        assert updated.updated_at >= created.updated_at

    @pytest.mark.asyncio
    async def test_bulk_blocks_replace_and_normalize(self, builder):
        created = await builder.create_portfolio(OWNER, "Bulk")
        blocks = [
            {"id": "b2", "kind": "divider", "position": 7, "data": default_block_data("divider")},
            {"id": "b1", "kind": "title", "position": 3, "data": default_block_data("title")},
        ]
        updated = await builder.update_portfolio(created.id, OWNER, blocks=blocks)

        assert [(b.id, b.position) for b in updated.blocks] == [("b1", 0), ("b2", 1)]

    @pytest.mark.asyncio
    async def test_one_bad_block_rejects_whole_update(self, builder):
        created = await builder.create_portfolio(OWNER, "Atomic")
        await builder.add_block(created.id, OWNER, "title")
        blocks = [
            {"id": "ok", "kind": "title", "position": 0, "data": default_block_data("title")},
            {"id": "bad", "kind": "list", "position": 1, "data": {"items": [], "list_type": "ordered"}},
        ]

        with pytest.raises(ValidationFailed) as exc:
            await builder.update_portfolio(created.id, OWNER, title="Changed", blocks=blocks)
        assert exc.value.field == "blocks[1]"
        assert "List must have at least one item" in exc.value.errors

        stored = await builder.get_portfolio(created.id, OWNER)
        assert stored.title == "Atomic"
        assert len(stored.blocks) == 1
        assert stored.blocks[0].kind == "title"

    @pytest.mark.asyncio
    async def test_duplicate_block_ids_rejected(self, builder):
        created = await builder.create_portfolio(OWNER, "Dupes")
        data = default_block_data("title")
        blocks = [
            {"id": "same", "kind": "title", "position": 0, "data": data},
            {"id": "same", "kind": "title", "position": 1, "data": data},
        ]
        with pytest.raises(ValidationFailed):
            await builder.update_portfolio(created.id, OWNER, blocks=blocks)

    @pytest.mark.asyncio
    async def test_missing_kind_rejected(self, builder):
        created = await builder.create_portfolio(OWNER, "No kind")
        with pytest.raises(ValidationFailed) as exc:
            await builder.update_portfolio(created.id, OWNER, blocks=[{"id": "x", "data": {}}])
        assert exc.value.field == "blocks[0]"

    @pytest.mark.asyncio
    async def test_non_string_kind_rejected(self, builder):
        created = await builder.create_portfolio(OWNER, "Odd kind")
        with pytest.raises(ValidationFailed) as exc:
            await builder.update_portfolio(created.id, OWNER, blocks=[{"id": "a", "kind": ["title"], "data": {}}])
        assert exc.value.field == "blocks[0]"
        assert (await builder.get_portfolio(created.id, OWNER)).blocks == []

    @pytest.mark.asyncio
    async def test_other_owner_cannot_update(self, builder):
        created = await builder.create_portfolio(OWNER, "Mine")
        with pytest.raises(NotFound):
            await builder.update_portfolio(created.id, OTHER_OWNER, title="Stolen")
        assert (await builder.get_portfolio(created.id, OWNER)).title == "Mine"

    @pytest.mark.asyncio
    async def test_last_save_wins(self, builder):
        created = await builder.create_portfolio(OWNER, "Two tabs")
        tab_a = [{"id": "a", "kind": "title", "position": 0, "data": default_block_data("title")}]
        tab_b = [{"id": "b", "kind": "divider", "position": 0, "data": default_block_data("divider")}]

        await builder.update_portfolio(created.id, OWNER, blocks=tab_a)
        final = await builder.update_portfolio(created.id, OWNER, blocks=tab_b)

        assert [b.id for b in final.blocks] == ["b"]
