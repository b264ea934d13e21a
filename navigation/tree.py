# backend/navigation/tree.py
"""
Tree helpers for navigation rows.

Rows are plain dicts shaped like ``NavigationItem.objects.values()``
(``id``, ``parent_id``, ``position``, ``scope`` and the display fields).
All rows live in one flat list addressed by id; nested views are derived
on demand and rows never hold references to each other.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field

from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 8


class TreeDepthError(ValueError):
    """Raised when a navigation tree nests deeper than allowed."""


@dataclass
class ReorderResult:
    items: list
    updates: list = field(default_factory=list)
    parent_changed: bool = False


def _sort_key(row):
    return (row.get("position") or 0, row["id"])


def _max_depth(max_depth):
    if max_depth is not None:
        return max_depth
    return getattr(settings, "NAVIGATION_MAX_DEPTH", DEFAULT_MAX_DEPTH)


def group_by_parent(items):
    """Map parent id -> children sorted by position."""
    groups = defaultdict(list)
    for row in items:
        groups[row.get("parent_id")].append(row)
    for rows in groups.values():
        rows.sort(key=_sort_key)
    return groups


def build_tree(items, scope=None, max_depth=None):
    """
    Nest flat rows under their parents.

    Returns the root rows (no parent, matching ``scope`` when given) sorted
    by position, each copied with a ``children`` list filled the same way.
    Nesting deeper than ``max_depth`` levels raises ``TreeDepthError``.
    """
    limit = _max_depth(max_depth)
    groups = group_by_parent(items)

    def attach(row, depth):
        if depth > limit:
            raise TreeDepthError(
                f"Navigation item {row['id']} is nested deeper than {limit} levels"
            )
        node = dict(row)
        node["children"] = [attach(child, depth + 1) for child in groups.get(row["id"], [])]
        return node

    roots = [
        row for row in groups.get(None, [])
        if scope is None or row.get("scope") == scope
    ]
    return [attach(row, 1) for row in roots]


def iter_tree(nodes):
    """Depth-first walk over nested nodes produced by ``build_tree``."""
    for node in nodes:
        yield node
        yield from iter_tree(node.get("children", []))


def flatten(items, expanded, parent_id=None, level=0):
    """
    Project rows into the indented admin list.

    Pre-order walk from the children of ``parent_id``; a row's children
    follow it only when its id is in ``expanded``. Each record is a copy
    of the row with a ``level`` key.
    """
    groups = group_by_parent(items)
    rows = []
    visited = set()

    def walk(pid, lvl):
        for row in groups.get(pid, []):
            if row["id"] in visited:
                continue
            visited.add(row["id"])
            rows.append({**row, "level": lvl})
            if row["id"] in expanded:
                walk(row["id"], lvl + 1)

    walk(parent_id, level)
    return rows


def descendant_ids(items, item_id):
    """Ids of every row below ``item_id``."""
    groups = group_by_parent(items)
    found = set()
    pending = [item_id]
    while pending:
        current = pending.pop()
        for child in groups.get(current, []):
            if child["id"] not in found and child["id"] != item_id:
                found.add(child["id"])
                pending.append(child["id"])
    return found


def find_orphans(items):
    """Rows whose parent id points at a row that is not in ``items``."""
    ids = {row["id"] for row in items}
    return [
        row for row in items
        if row.get("parent_id") is not None and row["parent_id"] not in ids
    ]


def find_cycles(items):
    """Groups of row ids whose parent chain loops back on itself."""
    parent_of = {row["id"]: row.get("parent_id") for row in items}
    in_cycle = set()
    cycles = []

    for start in parent_of:
        path = []
        on_path = set()
        node = start
        while node is not None and node in parent_of and node not in on_path:
            if node in in_cycle:
                break
            path.append(node)
            on_path.add(node)
            node = parent_of[node]
        if node is not None and node in on_path:
            cycle = path[path.index(node):]
            in_cycle.update(cycle)
            cycles.append(sorted(cycle))
    return cycles


def apply_updates(items, updates):
    """
    Copy of ``items`` with ``{id, position, parent_id?}`` updates applied.
    A missing ``parent_id`` key leaves the parent unchanged.
    """
    by_id = {entry["id"]: entry for entry in updates}
    result = []
    for row in items:
        row = dict(row)
        entry = by_id.get(row["id"])
        if entry is not None:
            row["position"] = entry["position"]
            if "parent_id" in entry:
                row["parent_id"] = entry["parent_id"]
        result.append(row)
    return result


def _renumber(group, touched):
    for position, row in enumerate(group):
        row["position"] = position
        touched[row["id"]] = row


def reorder(active_id, over_id, items, expanded=frozenset()):
    """
    Drop ``active_id`` onto ``over_id`` in the flattened admin list.

    The active row joins the sibling group of the row it was dropped on,
    after it when it moved forward in the flattened order and before it
    when it moved backward. The destination group is renumbered 0..n-1,
    and so is the group it left when the parent changed.

    Returns ``None`` when nothing should happen: dropping onto itself,
    ids missing from the flattened list, or a drop into its own subtree.
    """
    if over_id is None or active_id == over_id:
        return None

    flat_ids = [row["id"] for row in flatten(items, expanded)]
    try:
        old_index = flat_ids.index(active_id)
        new_index = flat_ids.index(over_id)
    except ValueError:
        logger.debug("Reorder aborted: %s or %s is not visible", active_id, over_id)
        return None

    rows = [dict(row) for row in items]
    by_id = {row["id"]: row for row in rows}
    active = by_id[active_id]
    over = by_id[over_id]

    old_parent_id = active.get("parent_id")
    new_parent_id = over.get("parent_id")
    if new_parent_id is not None and (
        new_parent_id == active_id or new_parent_id in descendant_ids(items, active_id)
    ):
        logger.info("Reorder aborted: %s cannot move into its own subtree", active_id)
        return None

    scope = over.get("scope")
    siblings = sorted(
        (
            row for row in rows
            if row.get("parent_id") == new_parent_id
            and row["id"] != active_id
            and row.get("scope") == scope
        ),
        key=_sort_key,
    )
    target = next(index for index, row in enumerate(siblings) if row["id"] == over_id)
    insert_at = target + 1 if new_index > old_index else target

    source = []
    parent_changed = old_parent_id != new_parent_id
    if parent_changed:
        source = sorted(
            (
                row for row in rows
                if row.get("parent_id") == old_parent_id
                and row["id"] != active_id
                and row.get("scope") == active.get("scope")
            ),
            key=_sort_key,
        )

    active["parent_id"] = new_parent_id
    siblings.insert(insert_at, active)

    touched = {}
    _renumber(siblings, touched)
    _renumber(source, touched)

    updates = [
        {"id": row["id"], "position": row["position"], "parent_id": row["parent_id"]}
        for row in touched.values()
    ]
    return ReorderResult(items=rows, updates=updates, parent_changed=parent_changed)
