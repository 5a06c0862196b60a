"""
Folio Kernel — Template Renderer

Pure function: (template, blocks, media?) → RenderPlan
No IO. Deterministic: same input → same output, always.

The template only picks the wrapper layout. It never changes which blocks
render or in what order; order always comes from block positions.

render_html turns a plan into the public page. Structural class names only,
styling is the client's concern.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from html import escape as _html_escape
from typing import Any

from engine.kernel.blocks import sanitize_markup
from engine.kernel.media import MediaStore
from engine.kernel.types import DEFAULT_TEMPLATE, Block

# ---------------------------------------------------------------------------
# Plan types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TemplateLayout:
    container: str
    max_width: str
    gap: str
    align: str = "left"
    emphasize_first: bool = False


@dataclass
class RenderNode:
    block_id: str
    kind: str
    position: int
    props: dict[str, Any] = field(default_factory=dict)


@dataclass
class RenderPlan:
    template: str
    layout: TemplateLayout
    nodes: list[RenderNode] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "template": self.template,
            "layout": {
                "container": self.layout.container,
                "max_width": self.layout.max_width,
                "gap": self.layout.gap,
                "align": self.layout.align,
                "emphasize_first": self.layout.emphasize_first,
            },
            "nodes": [
                {"block_id": n.block_id, "kind": n.kind, "position": n.position, "props": copy.deepcopy(n.props)}
                for n in self.nodes
            ],
        }


LAYOUTS: dict[str, TemplateLayout] = {
    "gallery": TemplateLayout(container="grid", max_width="1200px", gap="2rem"),
    "about": TemplateLayout(container="stack", max_width="800px", gap="2rem", emphasize_first=True),
    "contact": TemplateLayout(container="stack", max_width="600px", gap="1.5rem", align="center"),
}

DEFAULT_COLUMNS = 2


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_render_plan(template: str, blocks: list[Block], media: MediaStore | None = None) -> RenderPlan:
    """
    Lay out blocks under a template.

    Incoming blocks may be unsorted or sparse; they are ordered by
    (position, input index) and renumbered 0..n-1 in the plan.
    Unknown templates fall back to the gallery layout.
    """
    if template not in LAYOUTS:
        template = DEFAULT_TEMPLATE
    layout = LAYOUTS[template]

    ordered = sorted(enumerate(blocks), key=lambda pair: (pair[1].position, pair[0]))
    nodes = [
        RenderNode(block_id=block.id, kind=block.kind, position=i, props=_props(block, media))
        for i, (_, block) in enumerate(ordered)
    ]
    return RenderPlan(template=template, layout=layout, nodes=nodes)


def render_html(plan: RenderPlan, title: str = "Portfolio") -> str:
    """
    Render a complete HTML page from a plan.
    Returns a UTF-8 HTML string.
    """
    layout = plan.layout
    parts: list[str] = []

    parts.append("<!DOCTYPE html>")
    parts.append('<html lang="en">')
    parts.append("<head>")
    parts.append('  <meta charset="utf-8">')
    parts.append('  <meta name="viewport" content="width=device-width, initial-scale=1">')
    parts.append(f"  <title>{escape(title)}</title>")
    parts.append(f'  <meta property="og:title" content="{escape(title)}">')
    parts.append("</head>")
    parts.append("<body>")

    classes = f"folio-page folio-template-{escape(plan.template)} folio-{layout.container} folio-align-{layout.align}"
    style = f"max-width: {layout.max_width}; gap: {layout.gap}"
    parts.append(f'  <main class="{classes}" style="{escape(style)}">')

    if not plan.nodes:
        parts.append('    <p class="folio-empty">This page is empty.</p>')

    for i, node in enumerate(plan.nodes):
        emphasis = " folio-emphasis" if layout.emphasize_first and i == 0 else ""
        parts.append(
            f'    <section class="folio-block folio-{escape(node.kind)}{emphasis}" data-block-id="{escape(node.block_id)}">'
        )
        parts.append(f"      {_render_node(node)}")
        parts.append("    </section>")

    parts.append("  </main>")
    parts.append("</body>")
    parts.append("</html>")

    return "\n".join(parts)


def escape(text: Any) -> str:
    """HTML-escape user content."""
    return _html_escape(str(text), quote=True)


# ---------------------------------------------------------------------------
# Props
# ---------------------------------------------------------------------------


def _media_entries(media_ids: list[str], media: MediaStore | None) -> list[dict[str, Any]]:
    return [{"id": mid, "url": media.display_url(mid) if media else None} for mid in media_ids]


def _props(block: Block, media: MediaStore | None) -> dict[str, Any]:
    props = copy.deepcopy(block.data)

    if block.kind == "images":
        media_ids = list(props.get("media_ids") or [])
        if props.get("layout") == "single":
            media_ids = media_ids[:1]
        props["media_ids"] = media_ids
        props["columns"] = props.get("columns") or DEFAULT_COLUMNS
        props["media"] = _media_entries(media_ids, media)

    elif block.kind == "carousel":
        props["media"] = _media_entries(list(props.get("media_ids") or []), media)

    return props


# ---------------------------------------------------------------------------
# HTML per kind
# ---------------------------------------------------------------------------


def _img(entry: dict[str, Any]) -> str:
    src = escape(entry["url"] or "")
    return f'<img src="{src}" alt="" loading="lazy">'


def _render_node(node: RenderNode) -> str:
    p = node.props
    kind = node.kind

    if kind == "title":
        level = p.get("level", 1)
        if not isinstance(level, int) or not 1 <= level <= 6:
            level = 1
        align = escape(p.get("alignment", "left"))
        return f'<h{level} class="folio-align-{align}">{escape(p.get("text", ""))}</h{level}>'

    if kind == "richtext":
        # Stored content is sanitized on write; clean again for rows written before that.
        return f'<div class="folio-richtext">{sanitize_markup(p.get("content", ""))}</div>'

    if kind == "list":
        tag = "ol" if p.get("list_type") == "ordered" else "ul"
        items = "".join(f"<li>{escape(item)}</li>" for item in p.get("items", []))
        return f"<{tag}>{items}</{tag}>"

    if kind == "images":
        layout = escape(p.get("layout", "grid"))
        imgs = "".join(f"<figure>{_img(e)}</figure>" for e in p.get("media", []))
        return f'<div class="folio-images folio-images-{layout}" data-columns="{escape(p["columns"])}">{imgs}</div>'

    if kind == "resume":
        return _render_resume(p)

    if kind == "carousel":
        slides = "".join(f'<div class="folio-slide">{_img(e)}</div>' for e in p.get("media", []))
        autoplay = "true" if p.get("autoplay") else "false"
        indicators = "true" if p.get("show_indicators", True) else "false"
        return f'<div class="folio-carousel" data-autoplay="{autoplay}" data-indicators="{indicators}">{slides}</div>'

    if kind == "divider":
        style = escape(p.get("style", "solid"))
        return f'<hr class="folio-divider-{style}" data-thickness="{escape(p.get("thickness", 1))}">'

    if kind == "link":
        target = ' target="_blank" rel="noopener noreferrer"' if p.get("open_in_new_tab") else ""
        style = escape(p.get("style", "text"))
        return f'<a class="folio-link-{style}" href="{escape(p.get("url", ""))}"{target}>{escape(p.get("text", ""))}</a>'

    return ""


def _render_resume(p: dict[str, Any]) -> str:
    parts = ['<div class="folio-resume">']
    for section in p.get("sections", []):
        parts.append(f"<h3>{escape(section.get('title', ''))}</h3>")
        for entry in section.get("items", []):
            parts.append('<div class="folio-resume-entry">')
            parts.append(f"<h4>{escape(entry.get('title', ''))}</h4>")
            if entry.get("subtitle"):
                parts.append(f"<p class=\"folio-resume-subtitle\">{escape(entry['subtitle'])}</p>")
            if entry.get("date"):
                parts.append(f"<p class=\"folio-resume-date\">{escape(entry['date'])}</p>")
            if entry.get("description"):
                parts.append(f"<p>{escape(entry['description'])}</p>")
            parts.append("</div>")
    parts.append("</div>")
    return "".join(parts)
