import json
from datetime import timedelta
from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import AccessLevel

from . import blocks
from .editor import PageEditor, PageEditorError
from .fields import parse_block_form, parse_field, render_field
from .models import Page
from .renderer import column_span, render_blocks

User = get_user_model()


def hero(block_id="h1", **content):
    return {"id": block_id, "type": "hero", "content": {"title": "Big Sale", **content}}


def section(block_id, *columns, layout="50-50"):
    return {
        "id": block_id,
        "type": "section-layout",
        "content": {
            "layoutType": layout,
            "columns": [{"width": width, "blocks": list(items)} for width, items in columns],
        },
    }


class BlockRegistryTests(SimpleTestCase):
    def test_hero_defaults(self):
        self.assertEqual(
            blocks.instantiate_default_content("hero"),
            {
                "title": "Welcome",
                "subtitle": "Add a description...",
                "buttonText": "Get Started",
                "bgImage": "",
                "overlayOpacity": 30,
                "textColor": "#ffffff",
            },
        )

    def test_defaults_do_not_share_lists(self):
        first = blocks.instantiate_default_content("features")
        second = blocks.instantiate_default_content("features")

        first["items"].append({"title": "Extra"})
        first["items"][0]["title"] = "Changed"

        self.assertEqual(len(second["items"]), 1)
        self.assertEqual(second["items"][0]["title"], "Fast Delivery")
        self.assertEqual(blocks.instantiate_default_content("features")["items"][0]["title"], "Fast Delivery")

    def test_section_layout_columns_follow_layout(self):
        content = blocks.instantiate_default_content("section-layout")
        self.assertEqual(content["columns"], [{"width": "1/2", "blocks": []}, {"width": "1/2", "blocks": []}])

        widths = [c["width"] for c in blocks.columns_for_layout("33-33-33")]
        self.assertEqual(widths, ["1/3", "1/3", "1/3"])

    def test_narrowing_layout_keeps_blocks(self):
        existing = [{"width": "1/2", "blocks": [hero("a")]}, {"width": "1/2", "blocks": [hero("b")]}]

        columns = blocks.columns_for_layout("100", existing)

        self.assertEqual(len(columns), 1)
        self.assertEqual([b["id"] for b in columns[0]["blocks"]], ["a", "b"])

    def test_new_block(self):
        first = blocks.new_block("text")
        second = blocks.new_block("text")

        self.assertEqual(first["type"], "text")
        self.assertEqual(len(first["id"]), blocks.BLOCK_ID_LENGTH)
        self.assertNotEqual(first["id"], second["id"])
        self.assertEqual(set(first["content"]), {"body", "maxWidth"})

    def test_unknown_type(self):
        with self.assertRaises(blocks.UnknownBlockType):
            blocks.new_block("carousel-3d")

    def test_decode_content(self):
        items = [hero()]
        self.assertEqual(blocks.decode_content(items), items)
        self.assertEqual(blocks.decode_content(json.dumps(items)), items)
        self.assertEqual(blocks.decode_content(None), [])
        self.assertEqual(blocks.decode_content(""), [])
        with self.assertRaises(ValueError):
            blocks.decode_content("{not json")
        with self.assertRaises(ValueError):
            blocks.decode_content('{"id": "x"}')

    def test_validate_accepts_unknown_types(self):
        items = [{"id": "x1", "type": "unknown-type", "content": {}}]
        self.assertEqual(blocks.validate_blocks(items), items)

    def test_validate_rejects_duplicate_ids_across_columns(self):
        items = [hero("dup"), section("s1", ("1/2", [hero("dup")]))]
        with self.assertRaises(ValidationError):
            blocks.validate_blocks(items)

    def test_validate_rejects_bad_shapes(self):
        for items in ([hero(block_id="")], [{"id": "a", "type": "hero", "content": []}], ["hero"], {"id": "a"}):
            with self.subTest(items=items), self.assertRaises(ValidationError):
                blocks.validate_blocks(items)

    def test_validate_depth(self):
        items = [section("s1", ("1/1", [section("s2", ("1/1", [hero()]))]))]
        self.assertEqual(blocks.validate_blocks(items, depth_limit=3), items)
        with self.assertRaises(ValidationError):
            blocks.validate_blocks(items, depth_limit=2)

    def test_group_fields(self):
        grouped = blocks.group_fields(blocks.get_definition("hero"))
        self.assertEqual(list(grouped), ["content", "style"])
        self.assertEqual([f.name for f in grouped["style"]], ["overlayOpacity", "textColor"])

    def test_describe_registry(self):
        described = {entry["type"]: entry for entry in blocks.describe_registry()}

        self.assertEqual(set(described), set(blocks.BLOCK_DEFINITIONS))
        max_width = described["text"]["fields"][1]
        self.assertEqual(max_width["options"][0], {"label": "Small (2xl)", "value": "2xl"})
        slides = described["hero-slider"]["fields"][0]
        self.assertEqual([f["name"] for f in slides["fields"]], ["title", "subtitle", "buttonText", "bgImage", "tag"])


class FieldFormTests(SimpleTestCase):
    def setUp(self):
        self.items = blocks.get_definition("premium-list").get_field("items")

    def test_text_is_escaped(self):
        html = render_field(blocks.get_definition("hero").get_field("title"), "<b>Hi</b>", "field-title")
        self.assertIn('name="field-title"', html)
        self.assertIn("&lt;b&gt;Hi&lt;/b&gt;", html)

    def test_select_and_toggle(self):
        html = render_field(blocks.get_definition("text").get_field("maxWidth"), "6xl", "field-maxWidth")
        self.assertIn('<option value="6xl" selected>', html)

        toggle = blocks.get_definition("content-media").get_field("swap")
        self.assertIn("checked", render_field(toggle, True, "field-swap"))
        self.assertNotIn("checked", render_field(toggle, False, "field-swap"))

    def test_repeater_uses_formset_names(self):
        html = render_field(self.items, [{"title": "One", "desc": "First"}], "items")

        self.assertIn('name="items-0-title"', html)
        self.assertIn('name="items-0-desc"', html)
        self.assertIn('name="items-0-DELETE"', html)
        self.assertIn('name="items-TOTAL" value="1"', html)
        self.assertIn('name="items-ADD"', html)

    def test_parse_repeater(self):
        data = {
            "items-TOTAL": "2",
            "items-0-title": "Kept",
            "items-0-desc": "a",
            "items-1-title": "Dropped",
            "items-1-desc": "b",
            "items-1-DELETE": "on",
            "items-ADD": "1",
        }
        self.assertEqual(
            parse_field(self.items, data, "items"),
            [{"title": "Kept", "desc": "a"}, {"title": "Feature", "desc": "Details"}],
        )

    def test_parse_scalars(self):
        hero_def = blocks.get_definition("hero")
        opacity = hero_def.get_field("overlayOpacity")
        self.assertEqual(parse_field(opacity, {"o": "45"}, "o"), 45)
        self.assertEqual(parse_field(opacity, {"o": "4.5"}, "o"), 4.5)
        self.assertEqual(parse_field(opacity, {"o": ""}, "o"), 30)
        self.assertEqual(parse_field(opacity, {"o": "lots"}, "o"), 30)

        max_width = blocks.get_definition("text").get_field("maxWidth")
        self.assertEqual(parse_field(max_width, {"m": "huge"}, "m"), "4xl")

        enabled = blocks.get_definition("parallax").get_field("enabled")
        self.assertFalse(parse_field(enabled, {}, "e"))
        self.assertTrue(parse_field(enabled, {"e": "on"}, "e"))

    def test_parse_block_form(self):
        data = {
            "field-title": "Hello",
            "field-subtitle": "There",
            "field-buttonText": "",
            "field-bgImage": "https://example.com/a.png",
            "field-overlayOpacity": "10",
            "field-textColor": "#000000",
        }
        content = parse_block_form(blocks.get_definition("hero"), data)
        self.assertEqual(content["title"], "Hello")
        self.assertEqual(content["overlayOpacity"], 10)
        self.assertEqual(set(content), set(blocks.instantiate_default_content("hero")))

    @override_settings(CONTENT_MAX_DEPTH=2)
    def test_depth_guard(self):
        self.assertEqual(render_field(self.items, [], "items", depth=3), "")
        self.assertEqual(parse_field(self.items, {"items-TOTAL": "1"}, "items", depth=3), self.items.default)


class RendererTests(SimpleTestCase):
    def test_unknown_type_renders_nothing(self):
        self.assertEqual(render_blocks([{"id": "x", "type": "unknown-type", "content": {"a": 1}}]), "")

    def test_missing_fields_render_empty(self):
        html = render_blocks([{"id": "h", "type": "hero"}])
        self.assertIn('id="block-h"', html)
        self.assertNotIn("None", html)

    def test_hero_and_text(self):
        html = render_blocks([hero(), {"id": "t", "type": "text", "content": {"body": "<p>Hi</p>"}}])
        self.assertIn("Big Sale", html)
        self.assertIn("<p>Hi</p>", html)
        self.assertLess(html.index("Big Sale"), html.index("<p>Hi</p>"))

    def test_section_layout_renders_columns(self):
        html = render_blocks([section("s", ("2/3", [hero()]), ("1/3", []))])
        self.assertIn("md:col-span-8", html)
        self.assertIn("md:col-span-4", html)
        self.assertIn("Big Sale", html)

    def test_column_span(self):
        self.assertEqual(column_span("1/2"), 6)
        self.assertEqual(column_span("1/1"), 12)
        self.assertEqual(column_span(None), 12)

    @override_settings(CONTENT_MAX_DEPTH=1)
    def test_nesting_beyond_limit_is_skipped(self):
        html = render_blocks([section("s", ("1/1", [hero()]))])
        self.assertIn('id="block-s"', html)
        self.assertNotIn("Big Sale", html)

    def test_skips_malformed_entries(self):
        self.assertEqual(render_blocks(["hero", None]), "")


class PageApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(
            email="admin@example.com", password="pass1234", access_level=AccessLevel.ADMIN
        )

    def test_round_trip_by_slug(self):
        self.client.force_authenticate(self.admin)
        content = [hero(), section("s1", ("1/2", [hero("h2")]), ("1/2", []))]

        response = self.client.post(
            reverse("content:page_list"), {"slug": "about", "title": "About", "content": content}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        self.client.force_authenticate(None)
        response = self.client.get(reverse("content:page_detail", args=["about"]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["content"], content)

    def test_content_may_be_a_json_string(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            reverse("content:page_list"),
            {"slug": "promo", "title": "Promo", "content": json.dumps([hero()])},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["content"], [hero()])

    def test_duplicate_slug(self):
        Page.objects.create(slug="about", title="About")
        self.client.force_authenticate(self.admin)

        response = self.client.post(reverse("content:page_list"), {"slug": "about", "title": "Again"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["slug"], ["A page with this slug already exists."])

    def test_invalid_content(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            reverse("content:page_list"),
            {"slug": "bad", "title": "Bad", "content": [hero("a"), hero("a")]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(
            reverse("content:page_list"), {"slug": "bad", "title": "Bad", "content": "{oops"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_missing_page(self):
        response = self.client.get(reverse("content:page_detail", args=["nope"]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["detail"], "Page not found")

    def test_list_is_newest_first(self):
        older = Page.objects.create(slug="older", title="Older")
        Page.objects.create(slug="newer", title="Newer")
        Page.objects.filter(pk=older.pk).update(updated_at=timezone.now() + timedelta(minutes=5))

        response = self.client.get(reverse("content:page_list"))

        self.assertEqual([page["slug"] for page in response.data], ["older", "newer"])

    def test_writes_require_admin(self):
        response = self.client.post(reverse("content:page_list"), {"slug": "x", "title": "X"}, format="json")
        self.assertIn(response.status_code, (401, 403))

        member = User.objects.create_user(email="member@example.com", password="x", access_level=AccessLevel.MEMBER)
        self.client.force_authenticate(member)
        response = self.client.post(reverse("content:page_list"), {"slug": "x", "title": "X"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_and_delete_by_id(self):
        page = Page.objects.create(slug="about", title="About", content=[hero()])
        self.client.force_authenticate(self.admin)
        url = reverse("content:page_detail", args=[page.pk])

        response = self.client.put(url, {"content": [hero(title="New")]}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        page.refresh_from_db()
        self.assertEqual(page.content[0]["content"]["title"], "New")
        self.assertEqual(page.title, "About")

        self.assertEqual(self.client.put(reverse("content:page_detail", args=["about"]), {}, format="json").status_code, 404)

        response = self.client.delete(url)
        self.assertEqual(response.data, {"success": True})
        self.assertFalse(Page.objects.exists())

    def test_block_registry_is_public(self):
        response = self.client.get(reverse("content:block_registry"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("hero", [entry["type"] for entry in response.data])


class PublicPageTests(TestCase):
    def test_renders_blocks(self):
        Page.objects.create(slug="about", title="About Us", content=[hero(), {"id": "u", "type": "unknown-type"}])

        response = self.client.get(reverse("public_page", args=["about"]))

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "<title>About Us</title>", html=False)
        self.assertContains(response, "Big Sale")

    def test_missing_page_uses_fallback(self):
        response = self.client.get(reverse("public_page", args=["nope"]))
        self.assertEqual(response.status_code, 404)
        self.assertContains(response, "Page not found", status_code=404)


class PageEditorTests(TestCase):
    def setUp(self):
        self.page = Page.objects.create(slug="home", title="Home", content=[hero("h1")])

    def editor(self):
        editor = PageEditor(self.page)
        editor.load()
        return editor

    def test_load(self):
        editor = self.editor()
        self.assertEqual(editor.blocks, [hero("h1")])
        self.assertEqual(editor.state, PageEditor.STATE_PERSISTED)
        self.assertIsNot(editor.blocks, self.page.content)

    def test_edits_stay_local_until_save(self):
        editor = self.editor()
        block = editor.add_block("text")

        self.assertEqual(editor.state, PageEditor.STATE_UNSAVED)
        self.assertEqual(editor.selected_id, block["id"])
        self.page.refresh_from_db()
        self.assertEqual(len(self.page.content), 1)

        self.assertTrue(editor.save())
        self.page.refresh_from_db()
        self.assertEqual([b["type"] for b in self.page.content], ["hero", "text"])
        self.assertEqual(editor.state, PageEditor.STATE_PERSISTED)
        self.assertEqual(editor.notifications[-1], ("success", "Page saved successfully!"))

    def test_failed_save_keeps_local_edits(self):
        editor = self.editor()
        editor.add_block("image")

        with mock.patch.object(Page, "save", side_effect=DatabaseError("db down")):
            self.assertFalse(editor.save())

        self.assertEqual(editor.state, PageEditor.STATE_UNSAVED)
        self.assertEqual(len(editor.blocks), 2)
        self.assertEqual(editor.notifications[-1], ("error", "db down"))
        self.assertEqual(self.page.content, [hero("h1")])

    def test_malformed_block_content_is_not_fatal(self):
        self.page.content = [
            {"id": "a", "type": "text", "content": "oops"},
            {"id": "b", "type": "hero", "content": {}},
            {"id": "c", "type": "section-layout", "content": ["not", "columns"]},
        ]
        self.page.save()
        editor = self.editor()

        self.assertEqual(editor.find("b")["type"], "hero")
        self.assertTrue(editor.select("b"))
        self.assertEqual([row["id"] for row in editor.outline()], ["a", "b", "c"])
        self.assertEqual(editor.outline()[2]["columns"], [])
        self.assertTrue(editor.move_block("b", 0))
        self.assertIsNone(editor.add_block("text", parent_id="c"))

        self.assertTrue(editor.update_block_content("a", {"body": "Fixed"}))
        self.assertEqual(editor.find("a")["content"], {"body": "Fixed"})
        self.assertTrue(editor.delete_block("c"))

    def test_invalid_blocks_are_not_saved(self):
        editor = self.editor()
        editor.blocks.append(hero("h1"))
        self.assertFalse(editor.save())
        self.assertEqual(editor.notifications[-1][0], "error")

    def test_unknown_type_is_reported(self):
        editor = self.editor()
        self.assertIsNone(editor.add_block("spinner"))
        self.assertEqual(editor.notifications, [("error", "Unknown block type 'spinner'")])
        self.assertEqual(editor.state, PageEditor.STATE_PERSISTED)

    def test_move_select_and_delete(self):
        editor = self.editor()
        text = editor.add_block("text")

        self.assertTrue(editor.move_block(text["id"], 0))
        self.assertEqual([b["id"] for b in editor.blocks], [text["id"], "h1"])
        self.assertFalse(editor.move_block(text["id"], -5))

        self.assertTrue(editor.select("h1"))
        self.assertFalse(editor.select("missing"))
        self.assertTrue(editor.delete_block("h1"))
        self.assertIsNone(editor.selected_id)
        self.assertFalse(editor.delete_block("h1"))

    def test_update_block_content_merges(self):
        editor = self.editor()
        editor.update_block_content("h1", {"subtitle": "Now on"})
        self.assertEqual(editor.find("h1")["content"], {"title": "Big Sale", "subtitle": "Now on"})

    def test_nested_blocks_and_layout_changes(self):
        editor = self.editor()
        layout = editor.add_block("section-layout")
        nested = editor.add_block("hero", parent_id=layout["id"], column=1)

        self.assertEqual(editor.find(nested["id"])["type"], "hero")
        self.assertEqual(editor.outline()[-1]["depth"], 1)

        editor.set_layout(layout["id"], "100")
        columns = editor.find(layout["id"])["content"]["columns"]
        self.assertEqual([c["width"] for c in columns], ["1/1"])
        self.assertEqual([b["id"] for b in columns[0]["blocks"]], [nested["id"]])

        with self.assertRaises(PageEditorError):
            editor.set_layout("h1", "50-50")
        with self.assertRaises(PageEditorError):
            editor.set_layout(layout["id"], "10-90")

        self.assertIsNone(editor.add_block("text", parent_id=layout["id"], column=3))

        editor.delete_block(layout["id"])
        self.assertIsNone(editor.find(nested["id"]))

    def test_session_round_trip(self):
        editor = self.editor()
        editor.add_block("text")

        restored = PageEditor.from_session(self.page, editor.to_session())

        self.assertEqual(restored.blocks, editor.blocks)
        self.assertEqual(restored.selected_id, editor.selected_id)
        self.assertTrue(restored.is_dirty)
        self.assertEqual(PageEditor.from_session(self.page, None).blocks, [hero("h1")])


class PageAdminTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_superuser(email="owner@example.com", password="pass1234")
        self.client.force_login(self.user)
        self.page = Page.objects.create(slug="home", title="Home")
        self.url = reverse("admin:content_page_blocks", args=[self.page.pk])
        self.session_key = f"page_blocks_{self.page.pk}"

    def test_add_select_and_save(self):
        self.assertEqual(self.client.get(self.url).status_code, 200)

        response = self.client.post(self.url, {"action": "add", "type": "hero"})
        self.assertEqual(response.status_code, 302)
        self.assertEqual(self.client.session[self.session_key]["state"], PageEditor.STATE_UNSAVED)

        response = self.client.get(self.url)
        self.assertContains(response, 'name="field-title"')

        self.client.post(self.url, {"action": "save"})
        self.page.refresh_from_db()
        self.assertEqual([b["type"] for b in self.page.content], ["hero"])
        self.assertNotIn(self.session_key, self.client.session)

    def test_update_from_form(self):
        self.client.post(self.url, {"action": "add", "type": "text"})
        block_id = self.client.session[self.session_key]["selected"]

        self.client.post(
            self.url,
            {"action": "update", "id": block_id, "field-body": "<p>Fresh</p>", "field-maxWidth": "2xl"},
        )

        block = self.client.session[self.session_key]["blocks"][0]
        self.assertEqual(block["content"], {"body": "<p>Fresh</p>", "maxWidth": "2xl"})

    def test_discard(self):
        self.client.post(self.url, {"action": "add", "type": "hero"})
        self.client.post(self.url, {"action": "discard"})
        self.assertNotIn(self.session_key, self.client.session)
        self.assertEqual(self.client.get(self.url).context["rows"], [])

    def test_blocks_view_survives_malformed_content(self):
        Page.objects.filter(pk=self.page.pk).update(
            content=[{"id": "a", "type": "text", "content": "oops"}, hero("b")]
        )

        self.assertEqual(self.client.get(self.url).status_code, 200)
        response = self.client.post(self.url, {"action": "select", "id": "b"})

        self.assertEqual(response.status_code, 302)
        self.assertContains(self.client.get(self.url), 'name="field-title"')

    def test_change_form_validates_blocks(self):
        url = reverse("admin:content_page_change", args=[self.page.pk])
        bad = [{"id": "a", "type": "text", "content": "oops"}, {"id": "a", "type": 5}]

        response = self.client.post(url, {"title": "Home", "slug": "home", "content": json.dumps(bad)})

        self.assertEqual(response.status_code, 200)
        self.assertIn("content", response.context["adminform"].form.errors)
        self.page.refresh_from_db()
        self.assertEqual(self.page.content, [])

        response = self.client.post(url, {"title": "Home", "slug": "home", "content": json.dumps([hero("h1")])})

        self.assertEqual(response.status_code, 302)
        self.page.refresh_from_db()
        self.assertEqual(self.page.content, [hero("h1")])


class LoadPagesCommandTests(TestCase):
    def test_loads_demo_page(self):
        out = StringIO()
        call_command("load_pages_json", stdout=out)

        page = Page.objects.get(slug="demo-elements")
        self.assertEqual(page.title, "Element Showcase")
        self.assertEqual(page.content[0]["type"], "hero-slider")
        self.assertIn("Created page: demo-elements", out.getvalue())

        call_command("load_pages_json", "--slug", "demo-elements", stdout=StringIO())
        self.assertEqual(Page.objects.count(), 1)

    def test_unknown_slug(self):
        out = StringIO()
        call_command("load_pages_json", "--slug", "missing", stdout=out)
        self.assertIn("No page found for slug 'missing'", out.getvalue())
        self.assertFalse(Page.objects.exists())
