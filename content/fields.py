# backend/content/fields.py
"""
HTML form controls for block fields, and parsing of the submitted values.

Repeater items follow Django formset naming: ``<name>-TOTAL`` holds the item
count, ``<name>-<index>-<sub>`` each sub-field, ``<name>-<index>-DELETE``
marks an item for removal and ``<name>-ADD`` appends a new one.
"""
import logging

from django.utils.html import format_html, format_html_join
from django.utils.safestring import mark_safe

from . import blocks

logger = logging.getLogger(__name__)

FORM_PREFIX = "field-"


def _text(value):
    return "" if value is None else value


def _render_text(field, value, name, depth):
    return format_html(
        '<input type="text" class="vTextField" name="{}" id="id_{}" value="{}">',
        name, name, _text(value),
    )


def _render_textarea(field, value, name, depth):
    return format_html(
        '<textarea class="vLargeTextField" name="{}" id="id_{}" rows="4">{}</textarea>',
        name, name, _text(value),
    )


def _render_image(field, value, name, depth):
    control = format_html(
        '<input type="text" class="vURLField" name="{}" id="id_{}" value="{}" placeholder="https://">',
        name, name, _text(value),
    )
    if value:
        control += format_html(
            '<img class="block-field-preview" src="{}" alt="" height="48">', value
        )
    return control


def _render_color(field, value, name, depth):
    return format_html(
        '<input type="text" class="vTextField block-field-color" name="{}" id="id_{}" value="{}">'
        '<span class="block-field-swatch" style="background: {}"></span>',
        name, name, _text(value), _text(value),
    )


def _render_select(field, value, name, depth):
    options = format_html_join(
        "",
        '<option value="{}"{}>{}</option>',
        (
            (option, mark_safe(" selected") if option == value else "", label)
            for option, label in field.options
        ),
    )
    return format_html('<select name="{}" id="id_{}">{}</select>', name, name, options)


def _render_toggle(field, value, name, depth):
    return format_html(
        '<input type="checkbox" name="{}" id="id_{}" value="on"{}>',
        name, name, mark_safe(" checked") if value else "",
    )


def _render_number(field, value, name, depth):
    return format_html(
        '<input type="number" class="vIntegerField" name="{}" id="id_{}" value="{}" step="any">',
        name, name, _text(value),
    )


def _render_repeater(field, value, name, depth):
    items = value if isinstance(value, list) else []
    rendered = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            item = {}
        controls = format_html_join(
            "",
            '<div class="form-row"><label for="id_{}">{}</label>{}</div>',
            (
                (
                    f"{name}-{index}-{sub.name}",
                    sub.label,
                    render_field(sub, item.get(sub.name), f"{name}-{index}-{sub.name}", depth + 1),
                )
                for sub in field.fields
            ),
        )
        rendered.append(
            format_html(
                '<fieldset class="module block-repeater-item">'
                "<h3>{} #{}</h3>{}"
                '<label><input type="checkbox" name="{}-{}-DELETE"> Remove</label>'
                "</fieldset>",
                field.label, index + 1, controls, name, index,
            )
        )
    return format_html(
        '<div class="block-repeater">{}'
        '<input type="hidden" name="{}-TOTAL" value="{}">'
        '<button type="submit" class="button" name="{}-ADD" value="1">Add Item</button>'
        "</div>",
        mark_safe("".join(rendered)), name, len(items), name,
    )


FIELD_RENDERERS = {
    blocks.FIELD_TEXT: _render_text,
    blocks.FIELD_TEXTAREA: _render_textarea,
    blocks.FIELD_IMAGE: _render_image,
    blocks.FIELD_COLOR: _render_color,
    blocks.FIELD_SELECT: _render_select,
    blocks.FIELD_TOGGLE: _render_toggle,
    blocks.FIELD_NUMBER: _render_number,
    blocks.FIELD_REPEATER: _render_repeater,
}


def render_field(field, value, name, depth=1):
    """HTML control for one field. Unknown kinds fall back to a text input."""
    if depth > blocks.max_depth():
        logger.warning("Field '%s' is nested deeper than %s levels", name, blocks.max_depth())
        return ""
    renderer = FIELD_RENDERERS.get(field.kind, _render_text)
    return renderer(field, value, name, depth)


def _parse_number(field, raw):
    if raw in (None, ""):
        return field.default_value()
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return field.default_value()


def _parse_repeater(field, data, name, depth):
    try:
        total = int(data.get(f"{name}-TOTAL") or 0)
    except ValueError:
        total = 0

    items = []
    for index in range(total):
        if data.get(f"{name}-{index}-DELETE"):
            continue
        items.append({
            sub.name: parse_field(sub, data, f"{name}-{index}-{sub.name}", depth + 1)
            for sub in field.fields
        })
    if data.get(f"{name}-ADD"):
        items.append({sub.name: sub.default_value() for sub in field.fields})
    return items


def parse_field(field, data, name, depth=1):
    """Value of one field from submitted form ``data`` (a QueryDict or dict)."""
    if depth > blocks.max_depth():
        return field.default_value()
    if field.kind == blocks.FIELD_REPEATER:
        return _parse_repeater(field, data, name, depth)
    if field.kind == blocks.FIELD_TOGGLE:
        return bool(data.get(name))
    raw = data.get(name)
    if field.kind == blocks.FIELD_NUMBER:
        return _parse_number(field, raw)
    if field.kind == blocks.FIELD_SELECT and field.options and raw not in field.option_values():
        return field.default_value()
    return "" if raw is None else raw


def render_block_form(definition, content, prefix=FORM_PREFIX):
    """Controls for every field of a block, grouped into the editor's tabs."""
    content = content if isinstance(content, dict) else {}
    return [
        (
            group,
            [
                (f, f"{prefix}{f.name}", render_field(f, content.get(f.name), f"{prefix}{f.name}"))
                for f in fields
            ],
        )
        for group, fields in blocks.group_fields(definition).items()
    ]


def parse_block_form(definition, data, prefix=FORM_PREFIX):
    return {f.name: parse_field(f, data, f"{prefix}{f.name}") for f in definition.fields}
