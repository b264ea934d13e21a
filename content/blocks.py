# backend/content/blocks.py
"""
Block schema registry for the page builder.

Each block type is described once here: its editable fields drive the
admin form and its type tag selects the presentation template. Page
content is stored as ``[{"id": ..., "type": ..., "content": {...}}]``.
"""
import copy
import json
import logging
import string
from dataclasses import dataclass, field

from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils.crypto import get_random_string

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 6
BLOCK_ID_LENGTH = 7
BLOCK_ID_CHARS = string.ascii_lowercase + string.digits

FIELD_TEXT = "text"
FIELD_TEXTAREA = "textarea"
FIELD_IMAGE = "image"
FIELD_COLOR = "color"
FIELD_SELECT = "select"
FIELD_TOGGLE = "toggle"
FIELD_NUMBER = "number"
FIELD_REPEATER = "repeater"

FIELD_KINDS = (
    FIELD_TEXT,
    FIELD_TEXTAREA,
    FIELD_IMAGE,
    FIELD_COLOR,
    FIELD_SELECT,
    FIELD_TOGGLE,
    FIELD_NUMBER,
    FIELD_REPEATER,
)

GROUP_CONTENT = "content"
GROUP_STYLE = "style"
GROUP_ADVANCED = "advanced"
GROUPS = (GROUP_CONTENT, GROUP_STYLE, GROUP_ADVANCED)

SECTION_LAYOUT = "section-layout"

# Column widths produced by each section-layout structure.
LAYOUT_COLUMNS = {
    "50-50": ("1/2", "1/2"),
    "33-33-33": ("1/3", "1/3", "1/3"),
    "66-33": ("2/3", "1/3"),
    "33-66": ("1/3", "2/3"),
    "100": ("1/1",),
}


class UnknownBlockType(KeyError):
    pass


@dataclass(frozen=True)
class FieldDefinition:
    name: str
    label: str
    kind: str = FIELD_TEXT
    default: object = None
    options: tuple = ()  # (value, label) pairs for select fields
    fields: tuple = ()  # item shape for repeater fields
    group: str = GROUP_CONTENT
    description: str = ""

    def default_value(self):
        return copy.deepcopy(self.default)

    def option_values(self):
        return [value for value, _ in self.options]


@dataclass(frozen=True)
class BlockDefinition:
    type: str
    label: str
    icon: str
    description: str
    fields: tuple = field(default_factory=tuple)
    is_premium: bool = False

    def get_field(self, name):
        for f in self.fields:
            if f.name == name:
                return f
        return None


BLOCK_DEFINITIONS = {
    "hero": BlockDefinition(
        type="hero",
        label="Hero Block",
        icon="Layout",
        description="Full-width banner with title and CTA",
        fields=(
            FieldDefinition("title", "Main Headline", FIELD_TEXT, "Welcome"),
            FieldDefinition("subtitle", "Sub-Headline", FIELD_TEXTAREA, "Add a description..."),
            FieldDefinition("buttonText", "Button Label", FIELD_TEXT, "Get Started"),
            FieldDefinition("bgImage", "Background Image", FIELD_IMAGE, ""),
            FieldDefinition(
                "overlayOpacity", "Overlay Opacity", FIELD_NUMBER, 30,
                group=GROUP_STYLE, description="0-100%",
            ),
            FieldDefinition("textColor", "Text Color", FIELD_COLOR, "#ffffff", group=GROUP_STYLE),
        ),
    ),
    "text": BlockDefinition(
        type="text",
        label="Rich Text",
        icon="Type",
        description="WYSIWYG content block",
        fields=(
            FieldDefinition("body", "Content", FIELD_TEXTAREA, "<p>Start writing...</p>"),
            FieldDefinition(
                "maxWidth", "Max Width", FIELD_SELECT, "4xl",
                options=(
                    ("2xl", "Small (2xl)"),
                    ("4xl", "Medium (4xl)"),
                    ("6xl", "Large (6xl)"),
                    ("full", "Full Width"),
                ),
                group=GROUP_STYLE,
            ),
        ),
    ),
    "features": BlockDefinition(
        type="features",
        label="Features",
        icon="CheckCircle2",
        description="List of icons",
        fields=(
            FieldDefinition(
                "items", "Features", FIELD_REPEATER,
                [{"icon": "Zap", "title": "Fast Delivery", "desc": "We deliver your prints in record time."}],
                fields=(
                    FieldDefinition("icon", "Icon", FIELD_TEXT, "Zap"),
                    FieldDefinition("title", "Title", FIELD_TEXT, "Feature"),
                    FieldDefinition("desc", "Description", FIELD_TEXTAREA, "Details"),
                ),
            ),
        ),
    ),
    "image": BlockDefinition(
        type="image",
        label="Image Block",
        icon="Image",
        description="Full width visual",
        fields=(
            FieldDefinition("url", "Image", FIELD_IMAGE, ""),
            FieldDefinition("caption", "Caption", FIELD_TEXT, ""),
        ),
    ),
    "hero-slider": BlockDefinition(
        type="hero-slider",
        label="Hero Slider",
        icon="RefreshCw",
        description="Multi-slide interactive hero",
        is_premium=True,
        fields=(
            FieldDefinition(
                "slides", "Slides", FIELD_REPEATER,
                [{"title": "New Slide", "subtitle": "Description", "buttonText": "Action"}],
                fields=(
                    FieldDefinition("title", "Headline", FIELD_TEXT, "Slide Title"),
                    FieldDefinition("subtitle", "Description", FIELD_TEXTAREA, "Slide description"),
                    FieldDefinition("buttonText", "Button Text", FIELD_TEXT, "Learn More"),
                    FieldDefinition("bgImage", "Background", FIELD_IMAGE, ""),
                    FieldDefinition("tag", "Top Tag", FIELD_TEXT, "New"),
                ),
            ),
            FieldDefinition("autoPlay", "Auto Play", FIELD_TOGGLE, True, group=GROUP_ADVANCED),
            FieldDefinition("interval", "Interval (sec)", FIELD_NUMBER, 5, group=GROUP_ADVANCED),
        ),
    ),
    "parallax": BlockDefinition(
        type="parallax",
        label="Parallax Banner",
        icon="MousePointer2",
        description="Scrolling depth effect",
        is_premium=True,
        fields=(
            FieldDefinition("title", "Headline", FIELD_TEXT, "Parallax Title"),
            FieldDefinition("subtitle", "Subtitle", FIELD_TEXT, "Scroll to see the magic"),
            FieldDefinition("imageUrl", "Background Image", FIELD_IMAGE, ""),
            FieldDefinition("enabled", "Enable Effect", FIELD_TOGGLE, True, group=GROUP_ADVANCED),
            FieldDefinition("height", "Height (px)", FIELD_NUMBER, 600, group=GROUP_STYLE),
        ),
    ),
    "premium-list": BlockDefinition(
        type="premium-list",
        label="Premium List",
        icon="Settings2",
        description="Features, services, or steps",
        is_premium=True,
        fields=(
            FieldDefinition(
                "style", "List Style", FIELD_SELECT, "grid",
                options=(
                    ("grid", "Grid"),
                    ("checklist", "Checklist"),
                    ("numbered", "Numbered"),
                    ("cards", "Cards"),
                    ("glass", "Glassmorphism"),
                ),
                group=GROUP_STYLE,
            ),
            FieldDefinition(
                "items", "List Items", FIELD_REPEATER,
                [{"title": "New Item", "desc": "Description"}],
                fields=(
                    FieldDefinition("title", "Title", FIELD_TEXT, "Feature"),
                    FieldDefinition("desc", "Description", FIELD_TEXTAREA, "Details"),
                ),
            ),
        ),
    ),
    "testimonials": BlockDefinition(
        type="testimonials",
        label="Reviews Slider",
        icon="User",
        description="Client feedback",
        is_premium=True,
        fields=(
            FieldDefinition(
                "items", "Testimonials", FIELD_REPEATER,
                [{"author": "John Doe", "quote": "They transformed our marketing materials. Highly recommended!"}],
                fields=(
                    FieldDefinition("author", "Author", FIELD_TEXT, "Happy Customer"),
                    FieldDefinition("quote", "Quote", FIELD_TEXTAREA, "Great service!"),
                ),
            ),
        ),
    ),
    "content-media": BlockDefinition(
        type="content-media",
        label="Content Media",
        icon="Layout",
        description="Balanced layout",
        is_premium=True,
        fields=(
            FieldDefinition("title", "Headline", FIELD_TEXT, "The Perfect Partner"),
            FieldDefinition(
                "body", "Content", FIELD_TEXTAREA,
                "<p>We work closely with you to bring your ideas to life.</p>",
            ),
            FieldDefinition("imageUrl", "Image", FIELD_IMAGE, ""),
            FieldDefinition("buttonText", "Button Label", FIELD_TEXT, "Learn More"),
            FieldDefinition("swap", "Image on the left", FIELD_TOGGLE, False, group=GROUP_STYLE),
        ),
    ),
    SECTION_LAYOUT: BlockDefinition(
        type=SECTION_LAYOUT,
        label="Column Layout",
        icon="Layers",
        description="Structural container",
        is_premium=True,
        fields=(
            FieldDefinition(
                "layoutType", "Column Structure", FIELD_SELECT, "50-50",
                options=(
                    ("50-50", "Two Columns (50/50)"),
                    ("33-33-33", "Three Columns (33/33/33)"),
                    ("66-33", "Offset Left (66/33)"),
                    ("33-66", "Offset Right (33/66)"),
                    ("100", "Full Width (100)"),
                ),
            ),
            FieldDefinition("bgColor", "Background Color", FIELD_COLOR, "transparent", group=GROUP_STYLE),
            FieldDefinition(
                "padding", "Vertical Padding", FIELD_SELECT, "py-12",
                options=(
                    ("py-0", "None"),
                    ("py-8", "Small"),
                    ("py-12", "Medium"),
                    ("py-24", "Large"),
                ),
                group=GROUP_STYLE,
            ),
        ),
    ),
}


def max_depth():
    return getattr(settings, "CONTENT_MAX_DEPTH", DEFAULT_MAX_DEPTH)


def get_definition(block_type):
    try:
        return BLOCK_DEFINITIONS[block_type]
    except KeyError:
        raise UnknownBlockType(block_type) from None


def columns_for_layout(layout_type, existing=None):
    """
    Columns for a section-layout structure.

    Blocks already placed in ``existing`` columns are kept in order; blocks
    from columns that no longer exist move into the last column.
    """
    widths = LAYOUT_COLUMNS.get(layout_type, LAYOUT_COLUMNS["50-50"])
    existing = existing or []
    columns = [
        {"width": width, "blocks": list(existing[index].get("blocks", [])) if index < len(existing) else []}
        for index, width in enumerate(widths)
    ]
    for leftover in existing[len(widths):]:
        columns[-1]["blocks"].extend(leftover.get("blocks", []))
    return columns


def instantiate_default_content(block_type):
    """Fresh content for a new block: every declared field at its default."""
    definition = get_definition(block_type)
    content = {f.name: f.default_value() for f in definition.fields}
    if block_type == SECTION_LAYOUT:
        content["columns"] = columns_for_layout(content.get("layoutType"))
    return content


def generate_block_id():
    return get_random_string(BLOCK_ID_LENGTH, allowed_chars=BLOCK_ID_CHARS)


def new_block(block_type):
    return {
        "id": generate_block_id(),
        "type": block_type,
        "content": instantiate_default_content(block_type),
    }


def decode_content(raw):
    """
    Page content as a list of blocks.

    Stored content may be a JSON-encoded string or an already decoded list.
    """
    if raw is None or raw == "":
        return []
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Page content is not valid JSON: {exc}") from exc
    if not isinstance(raw, list):
        raise ValueError("Page content must be a list of blocks")
    return raw


def iter_blocks(blocks, depth=1):
    """Yield ``(block, depth)`` for every block, descending into columns."""
    for block in blocks:
        yield block, depth
        if not isinstance(block, dict) or block.get("type") != SECTION_LAYOUT:
            continue
        content = block.get("content")
        if not isinstance(content, dict):
            continue
        for column in content.get("columns") or []:
            if isinstance(column, dict) and isinstance(column.get("blocks"), list):
                yield from iter_blocks(column["blocks"], depth + 1)


def validate_blocks(blocks, depth_limit=None):
    """
    Structural checks applied when a page is saved.

    Field values are not checked against the registry; unknown block types
    are accepted and only logged.
    """
    limit = depth_limit or max_depth()
    if not isinstance(blocks, list):
        raise ValidationError("Content must be a list of blocks.")

    errors = []
    seen = set()
    for block, depth in iter_blocks(blocks):
        if not isinstance(block, dict):
            errors.append("Every block must be an object.")
            continue
        block_id = block.get("id")
        block_type = block.get("type")
        if not isinstance(block_id, str) or not block_id:
            errors.append("Every block needs a string id.")
        elif block_id in seen:
            errors.append(f"Block id '{block_id}' is used more than once.")
        else:
            seen.add(block_id)
        if not isinstance(block_type, str) or not block_type:
            errors.append(f"Block '{block_id}' needs a type.")
        elif block_type not in BLOCK_DEFINITIONS:
            logger.warning("Saving block '%s' with unknown type '%s'", block_id, block_type)
        if not isinstance(block.get("content", {}), dict):
            errors.append(f"Block '{block_id}' content must be an object.")
        if depth > limit:
            errors.append(f"Block '{block_id}' is nested deeper than {limit} levels.")

    if errors:
        raise ValidationError(errors)
    return blocks


def group_fields(definition):
    """Fields of a block grouped into the editor's tabs, in tab order."""
    grouped = {group: [] for group in GROUPS}
    for f in definition.fields:
        grouped.setdefault(f.group or GROUP_CONTENT, []).append(f)
    return {group: fields for group, fields in grouped.items() if fields}


def describe_field(f):
    data = {
        "name": f.name,
        "label": f.label,
        "type": f.kind,
        "defaultValue": f.default_value(),
        "group": f.group,
    }
    if f.options:
        data["options"] = [{"label": label, "value": value} for value, label in f.options]
    if f.fields:
        data["fields"] = [describe_field(sub) for sub in f.fields]
    if f.description:
        data["description"] = f.description
    return data


def describe_registry():
    return [
        {
            "type": definition.type,
            "label": definition.label,
            "icon": definition.icon,
            "description": definition.description,
            "isPremium": definition.is_premium,
            "fields": [describe_field(f) for f in definition.fields],
        }
        for definition in BLOCK_DEFINITIONS.values()
    ]
