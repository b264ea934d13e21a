# backend/content/renderer.py
"""
Server-side rendering of page blocks.

Every block type maps to a presentation function; most of them render a
template under ``content/blocks/``. Unknown types produce no output.
"""
import logging

from django.template.loader import render_to_string
from django.utils.safestring import mark_safe

from . import blocks

logger = logging.getLogger(__name__)

# Grid columns (out of 12) taken by each section-layout column width.
COLUMN_SPANS = {
    "1/2": 6,
    "1/3": 4,
    "2/3": 8,
}
FULL_SPAN = 12

BLOCK_RENDERERS = {}


def register(block_type):
    def decorator(func):
        BLOCK_RENDERERS[block_type] = func
        return func
    return decorator


def column_span(width):
    return COLUMN_SPANS.get(width, FULL_SPAN)


def _template_renderer(block_type):
    def render(block, content, depth):
        return render_to_string(
            f"content/blocks/{block_type}.html",
            {"block": block, "content": content},
        )
    return render


for _block_type in blocks.BLOCK_DEFINITIONS:
    if _block_type != blocks.SECTION_LAYOUT:
        register(_block_type)(_template_renderer(_block_type))


@register(blocks.SECTION_LAYOUT)
def render_section_layout(block, content, depth):
    columns = []
    for column in content.get("columns") or []:
        if not isinstance(column, dict):
            continue
        columns.append({
            "span": column_span(column.get("width")),
            "html": render_blocks(column.get("blocks") or [], depth=depth + 1),
        })
    return render_to_string(
        "content/blocks/section-layout.html",
        {"block": block, "content": content, "columns": columns},
    )


def render_block(block, depth=1):
    if not isinstance(block, dict):
        return ""
    renderer = BLOCK_RENDERERS.get(block.get("type"))
    if renderer is None:
        logger.debug("No renderer for block type %r", block.get("type"))
        return ""
    content = block.get("content")
    if not isinstance(content, dict):
        content = {}
    return renderer(block, content, depth)


def render_blocks(items, depth=1):
    """HTML for a list of blocks, in order."""
    limit = blocks.max_depth()
    if depth > limit:
        logger.warning("Skipping blocks nested deeper than %s levels", limit)
        return mark_safe("")
    return mark_safe("".join(render_block(block, depth) for block in items or []))
