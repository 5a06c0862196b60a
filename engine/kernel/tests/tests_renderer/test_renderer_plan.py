"""
Folio Renderer -- Render Plan Tests

Template selection, ordering, media resolution, and determinism of the
plan handed to clients.
"""

import pytest

from engine.kernel.blocks import default_block_data
from engine.kernel.media import DEFAULT_PLACEHOLDER_URL, MemoryMedia
from engine.kernel.renderer import LAYOUTS, build_render_plan
from engine.kernel.types import PLACEHOLDER_MEDIA_ID, Block


def block(id, kind, position, **data):
    return Block(id=id, kind=kind, position=position, data=data or default_block_data(kind))


class TestTemplates:
    @pytest.mark.parametrize("template", ["gallery", "about", "contact"])
    def test_known_templates_pick_their_layout(self, template):
        plan = build_render_plan(template, [])
        assert plan.template == template
        assert plan.layout == LAYOUTS[template]

    def test_gallery_is_grid(self):
        layout = build_render_plan("gallery", []).layout
        assert (layout.container, layout.max_width, layout.gap) == ("grid", "1200px", "2rem")

    def test_about_emphasizes_first(self):
        layout = build_render_plan("about", []).layout
        assert layout.emphasize_first is True
        assert layout.max_width == "800px"

    def test_contact_is_centered(self):
        layout = build_render_plan("contact", []).layout
        assert (layout.align, layout.max_width, layout.gap) == ("center", "600px", "1.5rem")

    def test_unknown_template_falls_back_to_gallery(self):
        plan = build_render_plan("blog", [])
        assert plan.template == "gallery"
        assert plan.layout == LAYOUTS["gallery"]

    def test_template_never_changes_blocks(self):
        blocks = [block("a", "title", 0), block("b", "divider", 1)]
        orders = {t: [n.block_id for n in build_render_plan(t, blocks).nodes] for t in LAYOUTS}
        assert set(map(tuple, orders.values())) == {("a", "b")}


class TestOrdering:
    def test_sorted_by_position(self):
        blocks = [block("c", "divider", 2), block("a", "title", 0), block("b", "list", 1)]
        plan = build_render_plan("gallery", blocks)
        assert [n.block_id for n in plan.nodes] == ["a", "b", "c"]

    def test_sparse_positions_renumbered(self):
        blocks = [block("a", "title", 10), block("b", "divider", 40)]
        plan = build_render_plan("gallery", blocks)
        assert [n.position for n in plan.nodes] == [0, 1]

    def test_equal_positions_keep_input_order(self):
        blocks = [block("x", "title", 0), block("y", "divider", 0)]
        plan = build_render_plan("gallery", blocks)
        assert [n.block_id for n in plan.nodes] == ["x", "y"]

    def test_input_not_mutated(self):
        blocks = [block("b", "divider", 5), block("a", "title", 1)]
        build_render_plan("gallery", blocks)
        assert [(b.id, b.position) for b in blocks] == [("b", 5), ("a", 1)]


class TestProps:
    def test_images_resolve_media_urls(self):
        media = MemoryMedia(base_url="https://cdn.test")
        blocks = [block("i", "images", 0, media_ids=["m1", "m2"], layout="grid", columns=3)]
        props = build_render_plan("gallery", blocks, media).nodes[0].props
        assert props["media"] == [
            {"id": "m1", "url": "https://cdn.test/m1"},
            {"id": "m2", "url": "https://cdn.test/m2"},
        ]
        assert props["columns"] == 3

    def test_images_default_columns(self):
        blocks = [block("i", "images", 0, media_ids=["m1"], layout="grid")]
        assert build_render_plan("gallery", blocks).nodes[0].props["columns"] == 2

    def test_single_layout_keeps_first_image(self):
        blocks = [block("i", "images", 0, media_ids=["m1", "m2", "m3"], layout="single")]
        props = build_render_plan("gallery", blocks, MemoryMedia()).nodes[0].props
        assert props["media_ids"] == ["m1"]
        assert [e["id"] for e in props["media"]] == ["m1"]

    def test_placeholder_resolves_to_placeholder_url(self):
        blocks = [block("c", "carousel", 0)]
        props = build_render_plan("gallery", blocks, MemoryMedia()).nodes[0].props
        assert props["media"] == [{"id": PLACEHOLDER_MEDIA_ID, "url": DEFAULT_PLACEHOLDER_URL}]

    def test_no_media_store_leaves_urls_empty(self):
        blocks = [block("c", "carousel", 0, media_ids=["m1"], autoplay=True, show_indicators=False)]
        props = build_render_plan("gallery", blocks).nodes[0].props
        assert props["media"] == [{"id": "m1", "url": None}]

    def test_props_are_copies(self):
        original = block("t", "title", 0)
        plan = build_render_plan("gallery", [original])
        plan.nodes[0].props["text"] = "changed"
        assert original.data["text"] == "New Title"


class TestDeterminism:
    def test_same_input_same_plan(self):
        blocks = [block("a", "title", 1), block("b", "images", 0, media_ids=["m"], layout="masonry")]
        media = MemoryMedia()
        first = build_render_plan("about", blocks, media).to_dict()
        second = build_render_plan("about", blocks, media).to_dict()
        assert first == second

    def test_to_dict_shape(self):
        data = build_render_plan("contact", [block("a", "divider", 0)]).to_dict()
        assert set(data) == {"template", "layout", "nodes"}
        assert data["nodes"][0] == {
            "block_id": "a",
            "kind": "divider",
            "position": 0,
            "props": {"style": "solid", "thickness": 1, "color": "#e0e0e0"},
        }
