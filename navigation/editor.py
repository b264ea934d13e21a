# backend/navigation/editor.py
import logging

from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.db import DatabaseError

from . import services
from .models import NavigationItem
from .tree import flatten, group_by_parent, reorder

logger = logging.getLogger(__name__)


class NavigationEditor:
    """
    Admin editing session for one navigation scope.

    Keeps the flat row list and the set of expanded rows. Moves are applied
    to the local rows first and then persisted; when persisting fails the
    session reports it and reloads the authoritative rows.
    """

    def __init__(self, scope, expanded=()):
        self.scope = scope
        self.items = []
        self.expanded = set(expanded)
        self.notifications = []

    def notify(self, level, message):
        self.notifications.append((level, message))

    def load(self):
        try:
            self.items = services.rows_for_scope(self.scope)
        except DatabaseError:
            logger.exception("Failed to load %s navigation", self.scope)
            self.notify("error", "Failed to load navigation items")
            self.items = []
        return self.items

    def toggle(self, item_id):
        if item_id in self.expanded:
            self.expanded.discard(item_id)
        else:
            self.expanded.add(item_id)

    def rows(self):
        groups = group_by_parent(self.items)
        return [
            {**row, "has_children": bool(groups.get(row["id"]))}
            for row in flatten(self.items, self.expanded)
        ]

    def move(self, active_id, over_id):
        result = reorder(active_id, over_id, self.items, self.expanded)
        if result is None:
            return False

        self.items = result.items
        try:
            services.bulk_reorder(result.updates)
        except (DatabaseError, ObjectDoesNotExist, ValidationError):
            logger.warning(
                "Reorder of %s onto %s failed, reloading", active_id, over_id, exc_info=True
            )
            self.notify("error", "Failed to reorder navigation items")
            self.load()
            return False

        self.notify("success", "Navigation order updated")
        return True

    def delete(self, item_id):
        try:
            item = NavigationItem.objects.get(pk=item_id, scope=self.scope)
            services.delete_item(item)
        except (DatabaseError, NavigationItem.DoesNotExist):
            logger.warning("Failed to delete navigation item %s", item_id, exc_info=True)
            self.notify("error", "Failed to delete item")
            return False
        finally:
            self.load()
        self.expanded.discard(item_id)
        self.notify("success", "Item deleted!")
        return True
