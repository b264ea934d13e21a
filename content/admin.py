# backend/content/admin.py
from django.contrib import admin, messages
from django.shortcuts import get_object_or_404, redirect
from django.template.response import TemplateResponse
from django.urls import path, reverse
from django.utils.html import format_html

from . import blocks
from .editor import PageEditor, PageEditorError
from .fields import parse_block_form, render_block_form
from .models import Page

SESSION_BLOCKS_KEY = "page_blocks_{page_id}"


def _int_or_none(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@admin.register(Page)
class PageAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "slug", "block_count", "updated_at", "blocks_link")
    search_fields = ("title", "slug")
    prepopulated_fields = {"slug": ("title",)}
    readonly_fields = ("created_at", "updated_at")
    ordering = ("-updated_at",)

    @admin.display(description="Blocks")
    def blocks_link(self, obj):
        return format_html(
            '<a href="{}">Edit blocks</a>',
            reverse("admin:content_page_blocks", args=[obj.pk]),
        )

    def get_urls(self):
        urls = [
            path(
                "<int:object_id>/blocks/",
                self.admin_site.admin_view(self.blocks_view),
                name="content_page_blocks",
            ),
        ]
        return urls + super().get_urls()

    def blocks_view(self, request, object_id):
        page = get_object_or_404(Page, pk=object_id)
        session_key = SESSION_BLOCKS_KEY.format(page_id=page.pk)
        editor = PageEditor.from_session(page, request.session.get(session_key))

        if request.method == "POST":
            if not self.has_change_permission(request, page):
                messages.error(request, "You do not have permission to edit this page.")
                return redirect(request.path)

            self._apply_action(editor, request.POST)

            if editor.is_dirty:
                request.session[session_key] = editor.to_session()
            else:
                request.session.pop(session_key, None)
            for level, message in editor.notifications:
                messages.add_message(
                    request,
                    messages.ERROR if level == "error" else messages.SUCCESS,
                    message,
                )
            return redirect(request.path)

        selected = editor.selected_block
        definition = blocks.BLOCK_DEFINITIONS.get(selected.get("type")) if selected else None
        context = {
            **self.admin_site.each_context(request),
            "opts": self.model._meta,
            "original": page,
            "title": f"Edit blocks: {page.title}",
            "page": page,
            "editor": editor,
            "rows": editor.outline(),
            "selected": selected,
            "definition": definition,
            "field_groups": render_block_form(definition, selected.get("content")) if definition else [],
            "layout_choices": blocks.BLOCK_DEFINITIONS[blocks.SECTION_LAYOUT].get_field("layoutType").options,
            "block_choices": [
                (definition.type, definition.label, definition.is_premium)
                for definition in blocks.BLOCK_DEFINITIONS.values()
            ],
        }
        return TemplateResponse(request, "admin/content/page/blocks.html", context)

    def _apply_action(self, editor, data):
        action = data.get("action")
        block_id = data.get("id") or None

        if action == "add":
            editor.add_block(
                data.get("type"),
                parent_id=data.get("parent") or None,
                column=_int_or_none(data.get("column")) or 0,
            )
        elif action == "delete":
            editor.delete_block(block_id)
        elif action in ("up", "down"):
            index = editor.index_of(block_id)
            if index is not None:
                editor.move_block(block_id, index - 1 if action == "up" else index + 1)
        elif action == "select":
            editor.select(block_id)
        elif action == "update":
            block = editor.find(block_id)
            definition = blocks.BLOCK_DEFINITIONS.get(block.get("type")) if block else None
            if definition is not None:
                editor.update_block_content(block_id, parse_block_form(definition, data))
        elif action == "layout":
            try:
                editor.set_layout(block_id, data.get("layoutType"))
            except PageEditorError as exc:
                editor.notify("error", str(exc))
        elif action == "save":
            editor.save()
        elif action == "discard":
            editor.load()
