# backend/navigation/services.py
import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from .models import NavigationItem
from .tree import apply_updates, build_tree, descendant_ids, find_cycles, reorder

logger = logging.getLogger(__name__)


def rows_for_scope(scope, active_only=False):
    """Flat rows for one scope, as dicts, in position order."""
    qs = NavigationItem.objects.filter(scope=scope)
    if active_only:
        qs = qs.filter(is_active=True)
    return list(qs.order_by("position", "id").values())


def tree_for_scope(scope):
    """Nested active items for the public header/footer."""
    return build_tree(rows_for_scope(scope, active_only=True), scope=scope)


@transaction.atomic
def bulk_reorder(updates):
    """
    Apply ``[{id, position, parent_id?}]`` in one transaction.

    A missing ``parent_id`` key keeps the current parent. Unknown ids raise
    ``NavigationItem.DoesNotExist``; a parent that does not exist or that
    would make the tree loop raises ``ValidationError``.
    """
    ids = {entry["id"] for entry in updates}
    items = {
        item.pk: item
        for item in NavigationItem.objects.select_for_update().filter(pk__in=ids)
    }
    missing = ids - set(items)
    if missing:
        raise NavigationItem.DoesNotExist(
            f"Unknown navigation item(s): {', '.join(str(pk) for pk in sorted(missing))}"
        )

    rows = list(NavigationItem.objects.values("id", "parent_id", "position", "scope"))
    known = {row["id"] for row in rows}
    for entry in updates:
        parent_id = entry.get("parent_id")
        if parent_id is not None and parent_id not in known:
            raise ValidationError(f"Parent {parent_id} does not exist.")

    for cycle in find_cycles(apply_updates(rows, updates)):
        if ids.intersection(cycle):
            raise ValidationError(
                f"Moving these items would create a loop: {', '.join(map(str, cycle))}"
            )

    for entry in updates:
        item = items[entry["id"]]
        item.position = entry["position"]
        update_fields = ["position", "updated_at"]
        if "parent_id" in entry:
            item.parent_id = entry["parent_id"]
            update_fields.append("parent")
        item.save(update_fields=update_fields)

    logger.info("Reordered %d navigation item(s)", len(updates))
    return list(items.values())


def move_item(scope, active_id, over_id, expanded=()):
    """Run a drag-end move for ``scope`` and persist the resulting positions."""
    result = reorder(active_id, over_id, rows_for_scope(scope), set(expanded))
    if result is None:
        return None
    bulk_reorder(result.updates)
    return result


def delete_item(item):
    """Delete an item; the database cascades to its descendants."""
    rows = list(NavigationItem.objects.filter(scope=item.scope).values("id", "parent_id"))
    item_id = item.pk
    removed = descendant_ids(rows, item_id)
    item.delete()
    logger.info(
        "Deleted navigation item %s with %d descendant(s)", item_id, len(removed)
    )
    return removed
