"""
Folio Kernel — Block Validation

Validates block payloads before they reach the ordering engine or storage.
Every block is one of 8 kinds; each kind has one validator, one default
payload, and nothing else. Validation is structural (well-formed?) only.
It never looks at other blocks or at the portfolio.

Adding a kind means adding it to BLOCK_KINDS, _VALIDATORS and _DEFAULTS.
"""

from __future__ import annotations

import copy
import re
import unicodedata
from typing import Any
from urllib.parse import urlparse

import bleach

from engine.kernel.types import (
    MAX_TITLE_LENGTH,
    PLACEHOLDER_MEDIA_ID,
    Block,
    ValidationResult,
)

MAX_RICHTEXT_LENGTH = 10_000
MAX_LIST_ITEMS = 50
MAX_LIST_ITEM_LENGTH = 500
MAX_IMAGES = 20
MAX_CAROUSEL_IMAGES = 10
MAX_RESUME_SECTIONS = 10
MAX_RESUME_ENTRIES = 20
MAX_LINK_TEXT_LENGTH = 100

TITLE_ALIGNMENTS = ("left", "center", "right")
LIST_TYPES = ("ordered", "unordered")
IMAGE_LAYOUTS = ("grid", "masonry", "single")
DIVIDER_STYLES = ("solid", "dashed", "dotted")
LINK_STYLES = ("button", "text")

RICHTEXT_TAGS = frozenset(
    {
        "p", "br", "strong", "b", "em", "i", "u", "s", "a", "ul", "ol", "li",
        "blockquote", "code", "pre", "h1", "h2", "h3", "h4", "h5", "h6", "span",
    }
)
RICHTEXT_ATTRIBUTES = {"a": ["href", "title", "target", "rel"], "span": ["class"]}

_HEX_COLOR_RE = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
# bleach strip=True keeps the text inside removed tags, so script and
# style bodies are dropped before clean() sees the markup.
_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_block_data(kind: str, data: Any) -> ValidationResult:
    """
    Validate a payload against its kind.

    Unknown kinds fail. A non-dict payload fails. Everything else is
    dispatched to the kind's validator.
    """
    if not isinstance(kind, str) or kind not in _VALIDATORS:
        return ValidationResult.from_errors([f"Unknown block kind: {kind}"])
    if not isinstance(data, dict):
        return ValidationResult.from_errors(["Block data must be an object"])
    return ValidationResult.from_errors(_VALIDATORS[kind](data))


def validate_block(block: Block) -> ValidationResult:
    """Validate identity, position and payload of a whole block."""
    errors: list[str] = []

    if not isinstance(block.id, str) or not block.id.strip():
        errors.append("Block id is required")

    if not _is_int(block.position) or block.position < 0:
        errors.append("Block position must be a non-negative integer")

    errors.extend(validate_block_data(block.kind, block.data).errors)
    return ValidationResult.from_errors(errors)


def default_block_data(kind: str) -> dict[str, Any]:
    """
    Minimal payload that passes its own validator unmodified.

    Raises:
        ValueError: If the kind is not recognized
    """
    if not isinstance(kind, str) or kind not in _DEFAULTS:
        raise ValueError(f"Unknown block kind: {kind}")
    return copy.deepcopy(_DEFAULTS[kind])


def sanitize_block_data(kind: str, data: Any) -> Any:
    """
    Clean a payload before validation.

    Strings lose control characters and are NFC-normalized; richtext markup
    is cleaned against an allow-list and disallowed tags are stripped.
    Returns a new value; the input is not modified. Non-dict payloads pass
    through untouched so the validator can reject them.
    """
    if not isinstance(data, dict):
        return data
    cleaned = _clean_value(data)
    if kind == "richtext" and isinstance(cleaned.get("content"), str):
        cleaned["content"] = sanitize_markup(cleaned["content"])
    return cleaned


def sanitize_markup(markup: str) -> str:
    """Strip disallowed tags from richtext markup, keeping their text."""
    without_scripts = _SCRIPT_STYLE_RE.sub("", markup)
    return bleach.clean(
        without_scripts,
        tags=RICHTEXT_TAGS,
        attributes=RICHTEXT_ATTRIBUTES,
        protocols={"http", "https", "mailto"},
        strip=True,
        strip_comments=True,
    )


def media_references(block: Block) -> list[str]:
    """Media ids a block holds, in payload order. Empty for non-media kinds."""
    if block.kind not in ("images", "carousel"):
        return []
    refs = block.data.get("media_ids") or []
    return [r for r in refs if isinstance(r, str)]


def is_valid_url(value: str) -> bool:
    """Absolute http(s) URL with a plausible host and no whitespace."""
    if not isinstance(value, str) or not value or any(c.isspace() for c in value):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https"):
        return False
    host = parsed.hostname or ""
    return host == "localhost" or ("." in host and not host.startswith(".") and not host.endswith("."))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _clean_value(value: Any) -> Any:
    if isinstance(value, str):
        return unicodedata.normalize("NFC", _CONTROL_CHARS_RE.sub("", value))
    if isinstance(value, dict):
        return {k: _clean_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_clean_value(v) for v in value]
    return value


def _validate_media_ids(d: dict, label: str, maximum: int) -> list[str]:
    errors: list[str] = []
    ids = d.get("media_ids")
    if not isinstance(ids, list) or not ids:
        errors.append(f"{label} must have at least one image")
        return errors
    if len(ids) > maximum:
        errors.append(f"{label} cannot have more than {maximum} images")
    for i, ref in enumerate(ids):
        if _is_blank(ref):
            errors.append(f"{label} image reference {i + 1} must be a non-empty string")
    return errors


# ---------------------------------------------------------------------------
# Per-kind validators
# ---------------------------------------------------------------------------


def _validate_title(d: dict) -> list[str]:
    errors: list[str] = []
    text = d.get("text")
    if _is_blank(text):
        errors.append("Title text is required")
    elif len(text) > MAX_TITLE_LENGTH:
        errors.append(f"Title text must be at most {MAX_TITLE_LENGTH} characters")

    if not _is_int(d.get("level")) or not 1 <= d["level"] <= 6:
        errors.append("Title level must be between 1 and 6")

    if d.get("alignment") not in TITLE_ALIGNMENTS:
        errors.append("Title alignment must be left, center, or right")
    return errors


def _validate_richtext(d: dict) -> list[str]:
    errors: list[str] = []
    content = d.get("content")
    if _is_blank(content):
        errors.append("Rich text content is required")
    elif len(content) > MAX_RICHTEXT_LENGTH:
        errors.append(f"Rich text content must be at most {MAX_RICHTEXT_LENGTH:,} characters")
    return errors


def _validate_list(d: dict) -> list[str]:
    errors: list[str] = []
    items = d.get("items")
    if not isinstance(items, list) or not items:
        errors.append("List must have at least one item")
    else:
        if len(items) > MAX_LIST_ITEMS:
            errors.append(f"List cannot have more than {MAX_LIST_ITEMS} items")
        for i, item in enumerate(items):
            if _is_blank(item):
                errors.append(f"List item {i + 1} cannot be empty")
            elif len(item) > MAX_LIST_ITEM_LENGTH:
                errors.append(f"List item {i + 1} must be at most {MAX_LIST_ITEM_LENGTH} characters")

    if d.get("list_type") not in LIST_TYPES:
        errors.append("List type must be ordered or unordered")
    return errors


def _validate_images(d: dict) -> list[str]:
    errors = _validate_media_ids(d, "Images block", MAX_IMAGES)

    if d.get("layout") not in IMAGE_LAYOUTS:
        errors.append("Images layout must be grid, masonry, or single")

    columns = d.get("columns")
    if columns is not None and (not _is_int(columns) or not 1 <= columns <= 6):
        errors.append("Images columns must be between 1 and 6")
    return errors


def _validate_resume(d: dict) -> list[str]:
    errors: list[str] = []
    sections = d.get("sections")
    if not isinstance(sections, list) or not sections:
        errors.append("Resume must have at least one section")
        return errors
    if len(sections) > MAX_RESUME_SECTIONS:
        errors.append(f"Resume cannot have more than {MAX_RESUME_SECTIONS} sections")

    for si, section in enumerate(sections, start=1):
        if not isinstance(section, dict):
            errors.append(f"Resume section {si} must be an object")
            continue
        title = section.get("title")
        if _is_blank(title):
            errors.append(f"Resume section {si} title is required")
        elif len(title) > 100:
            errors.append(f"Resume section {si} title must be at most 100 characters")

        entries = section.get("items")
        if not isinstance(entries, list) or not entries:
            errors.append(f"Resume section {si} must have at least one item")
            continue
        if len(entries) > MAX_RESUME_ENTRIES:
            errors.append(f"Resume section {si} cannot have more than {MAX_RESUME_ENTRIES} items")

        for ei, entry in enumerate(entries, start=1):
            where = f"Resume section {si}, item {ei}"
            if not isinstance(entry, dict):
                errors.append(f"{where} must be an object")
                continue
            if _is_blank(entry.get("title")):
                errors.append(f"{where} title is required")
            elif len(entry["title"]) > MAX_TITLE_LENGTH:
                errors.append(f"{where} title must be at most {MAX_TITLE_LENGTH} characters")
            for key, limit in (("subtitle", 200), ("description", 1000), ("date", 100)):
                value = entry.get(key)
                if value is None:
                    continue
                if not isinstance(value, str):
                    errors.append(f"{where} {key} must be a string")
                elif len(value) > limit:
                    errors.append(f"{where} {key} must be at most {limit} characters")
    return errors


def _validate_carousel(d: dict) -> list[str]:
    errors = _validate_media_ids(d, "Carousel", MAX_CAROUSEL_IMAGES)

    if not isinstance(d.get("autoplay"), bool):
        errors.append("Carousel autoplay must be a boolean")
    if not isinstance(d.get("show_indicators"), bool):
        errors.append("Carousel show_indicators must be a boolean")
    return errors


def _validate_divider(d: dict) -> list[str]:
    errors: list[str] = []
    if d.get("style") not in DIVIDER_STYLES:
        errors.append("Divider style must be solid, dashed, or dotted")

    thickness = d.get("thickness")
    if not _is_int(thickness) or not 1 <= thickness <= 10:
        errors.append("Divider thickness must be an integer between 1 and 10")

    color = d.get("color")
    if color is not None and (not isinstance(color, str) or not _HEX_COLOR_RE.match(color)):
        errors.append("Divider color must be a 3 or 6 digit hex color")
    return errors


def _validate_link(d: dict) -> list[str]:
    errors: list[str] = []
    text = d.get("text")
    if _is_blank(text):
        errors.append("Link text is required")
    elif len(text) > MAX_LINK_TEXT_LENGTH:
        errors.append(f"Link text must be at most {MAX_LINK_TEXT_LENGTH} characters")

    url = d.get("url")
    if _is_blank(url):
        errors.append("Link URL is required")
    elif not is_valid_url(url):
        errors.append("Link URL must be a valid HTTP or HTTPS URL")

    if not isinstance(d.get("open_in_new_tab"), bool):
        errors.append("Link open_in_new_tab must be a boolean")
    if d.get("style") not in LINK_STYLES:
        errors.append("Link style must be button or text")
    return errors


# ---------------------------------------------------------------------------
# Dispatcher + defaults
# ---------------------------------------------------------------------------

_VALIDATORS: dict[str, Any] = {
    "title": _validate_title,
    "richtext": _validate_richtext,
    "list": _validate_list,
    "images": _validate_images,
    "resume": _validate_resume,
    "carousel": _validate_carousel,
    "divider": _validate_divider,
    "link": _validate_link,
}

_DEFAULTS: dict[str, dict[str, Any]] = {
    "title": {"text": "New Title", "level": 2, "alignment": "left"},
    "richtext": {"content": "<p>Enter your text here...</p>"},
    "list": {"items": ["List item 1"], "list_type": "unordered"},
    "images": {"media_ids": [PLACEHOLDER_MEDIA_ID], "layout": "grid", "columns": 2},
    "resume": {
        "sections": [
            {
                "title": "Experience",
                "items": [
                    {
                        "title": "Job Title",
                        "subtitle": "Company Name",
                        "description": "Job description...",
                        "date": "2023 - Present",
                    }
                ],
            }
        ]
    },
    "carousel": {"media_ids": [PLACEHOLDER_MEDIA_ID], "autoplay": False, "show_indicators": True},
    "divider": {"style": "solid", "thickness": 1, "color": "#e0e0e0"},
    "link": {"text": "Click here", "url": "https://example.com", "open_in_new_tab": True, "style": "button"},
}
