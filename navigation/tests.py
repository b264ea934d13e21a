from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import AccessLevel

from . import services
from .editor import NavigationEditor
from .models import NavigationItem
from .tree import (
    TreeDepthError,
    build_tree,
    descendant_ids,
    find_cycles,
    find_orphans,
    flatten,
    iter_tree,
    reorder,
)

User = get_user_model()


def row(pk, parent_id=None, position=0, scope="header", **extra):
    return {"id": pk, "parent_id": parent_id, "position": position, "scope": scope, "label": f"Item {pk}", **extra}


def sample_rows():
    # roots 1, 2, 3; item 1 holds 4 and 5
    return [
        row(1, position=0),
        row(2, position=1),
        row(3, position=2),
        row(4, parent_id=1, position=0),
        row(5, parent_id=1, position=1),
    ]


class BuildTreeTests(SimpleTestCase):
    def test_roots_and_children_sorted_by_position(self):
        rows = [
            row(10, position=2),
            row(11, position=0),
            row(12, parent_id=11, position=1),
            row(13, parent_id=11, position=0),
        ]
        tree = build_tree(rows, scope="header")

        self.assertEqual([node["id"] for node in tree], [11, 10])
        self.assertEqual([child["id"] for child in tree[0]["children"]], [13, 12])
        self.assertEqual(tree[1]["children"], [])

    def test_node_count_equals_row_count(self):
        rows = sample_rows()
        tree = build_tree(rows)
        self.assertEqual(len(list(iter_tree(tree))), len(rows))

    def test_scope_filters_roots(self):
        rows = sample_rows() + [row(9, scope="footer")]
        self.assertEqual([node["id"] for node in build_tree(rows, scope="footer")], [9])
        self.assertEqual([node["id"] for node in build_tree(rows, scope="header")], [1, 2, 3])

    def test_does_not_mutate_input_rows(self):
        rows = sample_rows()
        build_tree(rows)
        self.assertNotIn("children", rows[0])

    def test_depth_guard(self):
        rows = [row(1), row(2, parent_id=1), row(3, parent_id=2)]
        self.assertEqual(len(list(iter_tree(build_tree(rows, max_depth=3)))), 3)
        with self.assertRaises(TreeDepthError):
            build_tree(rows, max_depth=2)

    @override_settings(NAVIGATION_MAX_DEPTH=1)
    def test_depth_guard_reads_setting(self):
        with self.assertRaises(TreeDepthError):
            build_tree([row(1), row(2, parent_id=1)])


class FlattenTests(SimpleTestCase):
    def test_collapsing_a_hides_its_child(self):
        rows = [row(1, position=0), row(2, parent_id=1, position=0), row(3, position=1)]

        expanded = flatten(rows, {1})
        self.assertEqual([(r["id"], r["level"]) for r in expanded], [(1, 0), (2, 1), (3, 0)])

        collapsed = flatten(rows, set())
        self.assertEqual([(r["id"], r["level"]) for r in collapsed], [(1, 0), (3, 0)])

    def test_is_idempotent(self):
        rows = sample_rows()
        first = flatten(rows, {1})
        self.assertEqual(first, flatten(rows, {1}))
        self.assertEqual(first, flatten(list(reversed(rows)), {1}))

    def test_starts_from_given_parent(self):
        rows = sample_rows()
        flat = flatten(rows, set(), parent_id=1, level=1)
        self.assertEqual([(r["id"], r["level"]) for r in flat], [(4, 1), (5, 1)])

    def test_rows_in_a_loop_are_unreachable(self):
        rows = [row(1), row(2, parent_id=1), row(3, parent_id=2)]
        rows[1]["parent_id"] = 3  # 2 and 3 now point at each other
        self.assertEqual([r["id"] for r in flatten(rows, {1, 2, 3})], [1])


class ReorderTests(SimpleTestCase):
    def positions(self, result, parent_id=None):
        group = [r for r in result.items if r["parent_id"] == parent_id]
        return [r["id"] for r in sorted(group, key=lambda r: r["position"])]

    def test_forward_move_inserts_after_target(self):
        result = reorder(1, 3, sample_rows(), set())
        self.assertEqual(self.positions(result), [2, 3, 1])
        self.assertFalse(result.parent_changed)

    def test_backward_move_inserts_before_target(self):
        result = reorder(3, 1, sample_rows(), set())
        self.assertEqual(self.positions(result), [3, 1, 2])

    def test_destination_group_is_contiguous(self):
        rows = [row(1, position=3), row(2, position=7), row(3, position=9)]
        result = reorder(3, 2, rows, set())
        positions = sorted(r["position"] for r in result.items if r["parent_id"] is None)
        self.assertEqual(positions, [0, 1, 2])

    def test_drop_on_self_is_noop(self):
        self.assertIsNone(reorder(2, 2, sample_rows(), set()))

    def test_hidden_ids_abort(self):
        # 4 sits under collapsed item 1
        self.assertIsNone(reorder(4, 2, sample_rows(), set()))
        self.assertIsNone(reorder(99, 2, sample_rows(), set()))

    def test_drop_into_own_subtree_aborts(self):
        self.assertIsNone(reorder(1, 4, sample_rows(), {1}))

    def test_move_to_another_parent_renumbers_both_groups(self):
        result = reorder(2, 4, sample_rows(), {1})

        self.assertTrue(result.parent_changed)
        self.assertEqual(self.positions(result, parent_id=1), [2, 4, 5])
        self.assertEqual(self.positions(result, parent_id=None), [1, 3])

        updates = {entry["id"]: entry for entry in result.updates}
        self.assertEqual(updates[2], {"id": 2, "position": 0, "parent_id": 1})
        self.assertEqual(updates[3]["position"], 1)

    def test_last_child_moves_out_past_expanded_subtree(self):
        # flattened: 1, 4, 5, 2, 3
        result = reorder(5, 3, sample_rows(), {1})

        self.assertTrue(result.parent_changed)
        self.assertEqual(self.positions(result, parent_id=None), [1, 2, 3, 5])
        self.assertEqual(self.positions(result, parent_id=1), [4])

        updates = {entry["id"]: entry for entry in result.updates}
        self.assertEqual(updates[5], {"id": 5, "position": 3, "parent_id": None})
        self.assertEqual(updates[4], {"id": 4, "position": 0, "parent_id": 1})

    def test_root_moves_back_into_expanded_subtree(self):
        result = reorder(3, 5, sample_rows(), {1})

        self.assertEqual(self.positions(result, parent_id=1), [4, 3, 5])
        self.assertEqual(self.positions(result, parent_id=None), [1, 2])

    def test_input_rows_are_untouched(self):
        rows = sample_rows()
        reorder(1, 3, rows, set())
        self.assertEqual(rows, sample_rows())


class IntegrityHelperTests(SimpleTestCase):
    def test_descendant_ids(self):
        rows = sample_rows() + [row(6, parent_id=4)]
        self.assertEqual(descendant_ids(rows, 1), {4, 5, 6})
        self.assertEqual(descendant_ids(rows, 3), set())

    def test_orphans_and_cycles(self):
        rows = [row(1), row(2, parent_id=42), row(3, parent_id=4), row(4, parent_id=3)]
        self.assertEqual([r["id"] for r in find_orphans(rows)], [2])
        self.assertEqual(find_cycles(rows), [[3, 4]])


class NavigationTestMixin:
    def create_item(self, label, **fields):
        fields.setdefault("type", NavigationItem.TYPE_MAIN)
        fields.setdefault("scope", NavigationItem.SCOPE_HEADER)
        return NavigationItem.objects.create(label=label, **fields)

    def create_admin(self):
        return User.objects.create_user(
            email="admin@example.com", password="pass1234", access_level=AccessLevel.ADMIN
        )


class NavigationServiceTests(NavigationTestMixin, TestCase):
    def test_deals_with_current_promotions(self):
        deals = self.create_item("Deals", position=0)
        self.create_item(
            "Current Promotions", type=NavigationItem.TYPE_MEGA_CATEGORY, parent=deals, position=0
        )

        tree = services.tree_for_scope(NavigationItem.SCOPE_HEADER)

        self.assertEqual(len(tree), 1)
        self.assertEqual(tree[0]["label"], "Deals")
        self.assertEqual([child["label"] for child in tree[0]["children"]], ["Current Promotions"])

    def test_tree_skips_inactive_items(self):
        self.create_item("Visible", position=0)
        self.create_item("Hidden", position=1, is_active=False)
        self.assertEqual([n["label"] for n in services.tree_for_scope("header")], ["Visible"])

    def test_delete_removes_subtree(self):
        root = self.create_item("Business Cards")
        category = self.create_item("By Material", type=NavigationItem.TYPE_MEGA_CATEGORY, parent=root)
        self.create_item("Matte", type=NavigationItem.TYPE_MEGA_ITEM, parent=category)
        other = self.create_item("Signs", position=1)

        removed = services.delete_item(root)

        self.assertEqual(len(removed), 2)
        self.assertEqual(list(NavigationItem.objects.values_list("id", flat=True)), [other.id])

    def test_bulk_reorder_keeps_parent_when_absent(self):
        root = self.create_item("Root")
        child = self.create_item("Child", type=NavigationItem.TYPE_MEGA_CATEGORY, parent=root)

        services.bulk_reorder([{"id": child.id, "position": 3}])

        child.refresh_from_db()
        self.assertEqual(child.position, 3)
        self.assertEqual(child.parent_id, root.id)

    def test_move_item_persists_positions(self):
        a = self.create_item("A", position=0)
        b = self.create_item("B", position=1)
        c = self.create_item("C", position=2)

        services.move_item("header", a.id, c.id)

        order = list(NavigationItem.objects.filter(scope="header").order_by("position").values_list("id", flat=True))
        self.assertEqual(order, [b.id, c.id, a.id])


class NavigationApiTests(NavigationTestMixin, TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = self.create_admin()

    def test_tree_is_public_and_nested(self):
        deals = self.create_item("Deals")
        self.create_item("Current Promotions", type=NavigationItem.TYPE_MEGA_CATEGORY, parent=deals)

        response = self.client.get(reverse("navigation:tree"), {"scope": "header"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]["label"], "Deals")
        self.assertEqual(response.data[0]["children"][0]["parentId"], deals.id)

    def test_footer_description_markers_pass_through(self):
        column = self.create_item("Contact", type="footer-column", scope="footer")
        self.create_item("510-655-3030", type="footer-link", scope="footer", parent=column, description="icon-phone")

        response = self.client.get(reverse("navigation:tree"), {"scope": "footer"})

        self.assertEqual(response.data[0]["children"][0]["description"], "icon-phone")

    def test_unknown_scope_is_rejected(self):
        response = self.client.get(reverse("navigation:tree"), {"scope": "sidebar"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_all_requires_admin(self):
        url = reverse("navigation:all")
        self.assertIn(self.client.get(url).status_code, (401, 403))

        member = User.objects.create_user(email="member@example.com", password="x", access_level=AccessLevel.MEMBER)
        self.client.force_authenticate(member)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        self.create_item("Hidden", is_active=False)
        response = self.client.get(url, {"scope": "header"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]["isActive"], False)

    def test_create_validates_type_and_parent(self):
        self.client.force_authenticate(self.admin)
        url = reverse("navigation:item_create")

        response = self.client.post(url, {"label": "Links", "type": "footer-column", "scope": "header"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        leaf = self.create_item("Leaf", type=NavigationItem.TYPE_MEGA_ITEM)
        response = self.client.post(url, {"label": "Child", "type": "mega-item", "parentId": leaf.id}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        main = self.create_item("Deals")
        response = self.client.post(
            url,
            {"label": "Current Promotions", "type": "mega-category", "parentId": main.id, "scope": "header"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["parentId"], main.id)

    def test_cannot_reparent_under_own_descendant(self):
        self.client.force_authenticate(self.admin)
        root = self.create_item("Root")
        category = self.create_item("Category", type=NavigationItem.TYPE_MEGA_CATEGORY, parent=root)

        response = self.client.patch(
            reverse("navigation:item_detail", args=[root.id]), {"parentId": category.id}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_cascades(self):
        self.client.force_authenticate(self.admin)
        root = self.create_item("Root")
        self.create_item("Category", type=NavigationItem.TYPE_MEGA_CATEGORY, parent=root)

        response = self.client.delete(reverse("navigation:item_detail", args=[root.id]))

        self.assertEqual(response.data, {"success": True})
        self.assertFalse(NavigationItem.objects.exists())

    def test_bulk_reorder(self):
        self.client.force_authenticate(self.admin)
        a = self.create_item("A", position=0)
        b = self.create_item("B", position=1)
        url = reverse("navigation:reorder_bulk")

        response = self.client.put(
            url, {"items": [{"id": a.id, "position": 1}, {"id": b.id, "position": 0, "parentId": None}]}, format="json"
        )

        self.assertEqual(response.data, {"success": True})
        a.refresh_from_db()
        b.refresh_from_db()
        self.assertEqual((a.position, b.position), (1, 0))

    def test_bulk_reorder_unknown_id_is_404(self):
        self.client.force_authenticate(self.admin)
        response = self.client.put(
            reverse("navigation:reorder_bulk"), {"items": [{"id": 999, "position": 0}]}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_bulk_reorder_rejects_loops(self):
        self.client.force_authenticate(self.admin)
        root = self.create_item("Root")
        child = self.create_item("Child", type=NavigationItem.TYPE_MEGA_CATEGORY, parent=root)

        response = self.client.put(
            reverse("navigation:reorder_bulk"),
            {"items": [{"id": root.id, "position": 0, "parentId": child.id}]},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        root.refresh_from_db()
        self.assertIsNone(root.parent_id)

    def test_move_endpoint(self):
        self.client.force_authenticate(self.admin)
        a = self.create_item("A", position=0)
        b = self.create_item("B", position=1)

        response = self.client.put(
            reverse("navigation:reorder_move"),
            {"activeId": a.id, "overId": b.id, "scope": "header"},
            format="json",
        )

        self.assertTrue(response.data["moved"])
        self.assertEqual(
            sorted((item["id"], item["position"]) for item in response.data["items"]),
            [(a.id, 1), (b.id, 0)],
        )

        response = self.client.put(
            reverse("navigation:reorder_move"),
            {"activeId": a.id, "overId": a.id, "scope": "header"},
            format="json",
        )
        self.assertFalse(response.data["moved"])


class NavigationEditorTests(NavigationTestMixin, TestCase):
    def setUp(self):
        self.root = self.create_item("Root", position=0)
        self.child = self.create_item("Child", type=NavigationItem.TYPE_MEGA_CATEGORY, parent=self.root)
        self.other = self.create_item("Other", position=1)

    def test_toggle_expands_rows(self):
        editor = NavigationEditor("header")
        editor.load()
        self.assertEqual([r["id"] for r in editor.rows()], [self.root.id, self.other.id])
        self.assertTrue(editor.rows()[0]["has_children"])

        editor.toggle(self.root.id)
        self.assertEqual([r["id"] for r in editor.rows()], [self.root.id, self.child.id, self.other.id])

        editor.toggle(self.root.id)
        self.assertNotIn(self.child.id, [r["id"] for r in editor.rows()])

    def test_move_persists(self):
        editor = NavigationEditor("header")
        editor.load()

        self.assertTrue(editor.move(self.root.id, self.other.id))

        self.root.refresh_from_db()
        self.assertEqual(self.root.position, 1)
        self.assertEqual(editor.notifications[-1][0], "success")

    def test_failed_move_notifies_and_reloads(self):
        editor = NavigationEditor("header")
        editor.load()

        with mock.patch("navigation.editor.services.bulk_reorder", side_effect=DatabaseError("down")):
            self.assertFalse(editor.move(self.root.id, self.other.id))

        self.assertEqual(editor.notifications, [("error", "Failed to reorder navigation items")])
        positions = {r["id"]: r["position"] for r in editor.items}
        self.assertEqual(positions[self.root.id], 0)
        self.assertEqual(positions[self.other.id], 1)

    def test_delete(self):
        editor = NavigationEditor("header", expanded=[self.root.id])
        editor.load()

        self.assertTrue(editor.delete(self.root.id))
        self.assertEqual([r["id"] for r in editor.items], [self.other.id])
        self.assertNotIn(self.root.id, editor.expanded)

        self.assertFalse(editor.delete(12345))
        self.assertEqual(editor.notifications[-1], ("error", "Failed to delete item"))


class NavigationAdminTests(NavigationTestMixin, TestCase):
    def setUp(self):
        self.user = User.objects.create_superuser(email="owner@example.com", password="pass1234")
        self.client.force_login(self.user)
        self.url = reverse("admin:navigation_navigationitem_tree")

    def test_tree_view_renders(self):
        self.create_item("Deals")
        response = self.client.get(self.url, {"scope": "header"})
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Deals")

    def test_toggle_is_kept_in_session(self):
        root = self.create_item("Root")
        child = self.create_item("Child", type=NavigationItem.TYPE_MEGA_CATEGORY, parent=root)

        response = self.client.post(f"{self.url}?scope=header", {"action": "toggle", "id": root.id})

        self.assertEqual(response.status_code, 302)
        self.assertEqual(self.client.session["navigation_expanded_header"], [root.id])
        self.assertContains(self.client.get(self.url), "Child")
        self.assertIn(child.id, [row["id"] for row in self.client.get(self.url).context["rows"]])

    def change_form_data(self, item, **overrides):
        data = {
            "label": item.label,
            "url": item.url or "",
            "type": item.type,
            "parent": item.parent_id or "",
            "position": item.position,
            "icon": "",
            "image_url": "",
            "description": "",
            "badge": "",
            "is_active": "on",
            "scope": item.scope,
        }
        data.update(overrides)
        return data

    def test_change_form_rejects_own_parent(self):
        deals = self.create_item("Deals")
        url = reverse("admin:navigation_navigationitem_change", args=[deals.id])

        response = self.client.post(url, self.change_form_data(deals, parent=deals.id))

        self.assertEqual(response.status_code, 200)
        deals.refresh_from_db()
        self.assertIsNone(deals.parent_id)
        self.assertEqual(len(services.tree_for_scope(NavigationItem.SCOPE_HEADER)), 1)

    def test_change_form_rejects_parent_from_other_scope(self):
        main = self.create_item("Deals")
        column = self.create_item(
            "Company", type=NavigationItem.TYPE_FOOTER_COLUMN, scope=NavigationItem.SCOPE_FOOTER
        )
        url = reverse("admin:navigation_navigationitem_change", args=[column.id])

        response = self.client.post(url, self.change_form_data(column, parent=main.id))

        self.assertEqual(response.status_code, 200)
        column.refresh_from_db()
        self.assertIsNone(column.parent_id)

    def test_change_form_rejects_type_outside_scope(self):
        deals = self.create_item("Deals")
        url = reverse("admin:navigation_navigationitem_change", args=[deals.id])

        response = self.client.post(url, self.change_form_data(deals, type=NavigationItem.TYPE_FOOTER_LINK))

        self.assertEqual(response.status_code, 200)
        self.assertIn("type", response.context["adminform"].form.errors)
        deals.refresh_from_db()
        self.assertEqual(deals.type, NavigationItem.TYPE_MAIN)

    def test_clean_shares_placement_rules(self):
        root = self.create_item("Root")
        category = self.create_item("Category", type=NavigationItem.TYPE_MEGA_CATEGORY, parent=root)
        root.parent = category

        with self.assertRaises(ValidationError) as caught:
            root.full_clean()
        self.assertIn("parent", caught.exception.message_dict)


class NavigationCommandTests(TestCase):
    def test_seed_navigation(self):
        call_command("seed_navigation", stdout=StringIO())

        deals = NavigationItem.objects.get(label="Deals", scope="header")
        self.assertTrue(deals.children.filter(label="Current Promotions").exists())
        self.assertEqual(
            set(NavigationItem.objects.filter(scope="footer", description__startswith="icon-").values_list("description", flat=True)),
            set(NavigationItem.FOOTER_ICON_MARKERS),
        )

        count = NavigationItem.objects.count()
        call_command("seed_navigation", stdout=StringIO())
        self.assertEqual(NavigationItem.objects.count(), count)

        out = StringIO()
        call_command("check_navigation", stdout=out)
        self.assertIn("consistent", out.getvalue())

    def test_check_navigation_reports_gaps(self):
        NavigationItem.objects.create(label="A", position=0)
        NavigationItem.objects.create(label="B", position=5)

        out = StringIO()
        call_command("check_navigation", stdout=out)
        self.assertIn("not contiguous", out.getvalue())

        with self.assertRaises(CommandError):
            call_command("check_navigation", "--fail", stdout=StringIO())
