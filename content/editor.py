# backend/content/editor.py
import copy
import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError

from . import blocks

logger = logging.getLogger(__name__)


class PageEditorError(ValueError):
    pass


class PageEditor:
    """
    Block editing state for one page in the admin.

    Edits stay local (``unsaved``) until ``save`` replaces the page content
    wholesale. A failed save keeps the local edits. There is no locking:
    the last save wins.
    """

    STATE_UNSAVED = "unsaved"
    STATE_PERSISTED = "persisted"

    def __init__(self, page=None, blocks=None, selected_id=None, state=STATE_PERSISTED):
        self.page = page
        self.blocks = list(blocks) if blocks is not None else []
        self.selected_id = selected_id
        self.state = state
        self.notifications = []

    @classmethod
    def from_session(cls, page, data):
        if not data:
            editor = cls(page)
            editor.load()
            return editor
        return cls(
            page,
            blocks=data.get("blocks") or [],
            selected_id=data.get("selected"),
            state=data.get("state", cls.STATE_UNSAVED),
        )

    def to_session(self):
        return {"blocks": self.blocks, "selected": self.selected_id, "state": self.state}

    @property
    def is_dirty(self):
        return self.state == self.STATE_UNSAVED

    def notify(self, level, message):
        self.notifications.append((level, message))

    def load(self):
        self.selected_id = None
        self.state = self.STATE_PERSISTED
        if self.page is None:
            self.blocks = []
            return self.blocks
        try:
            self.blocks = copy.deepcopy(blocks.decode_content(self.page.content))
        except ValueError:
            logger.exception("Page %s has unreadable content", self.page.pk)
            self.notify("error", "Failed to load page content")
            self.blocks = []
        return self.blocks

    @staticmethod
    def _columns(block):
        """Well-formed columns of a section layout; malformed content has none."""
        content = block.get("content")
        if block.get("type") != blocks.SECTION_LAYOUT or not isinstance(content, dict):
            return []
        columns = content.get("columns")
        if not isinstance(columns, list):
            return []
        return [column for column in columns if isinstance(column, dict)]

    def _locate(self, block_id, items=None):
        """``(container, index)`` of a block, searching nested columns."""
        items = self.blocks if items is None else items
        for index, block in enumerate(items):
            if not isinstance(block, dict):
                continue
            if block.get("id") == block_id:
                return items, index
            for column in self._columns(block):
                nested = column.get("blocks")
                if not isinstance(nested, list):
                    continue
                found = self._locate(block_id, nested)
                if found:
                    return found
        return None

    def find(self, block_id):
        found = self._locate(block_id)
        if not found:
            return None
        container, index = found
        return container[index]

    @property
    def selected_block(self):
        if self.selected_id is None:
            return None
        return self.find(self.selected_id)

    def _touch(self):
        self.state = self.STATE_UNSAVED

    def add_block(self, block_type, parent_id=None, column=0):
        """Append a new block, at the top level or into a section-layout column."""
        try:
            block = blocks.new_block(block_type)
        except blocks.UnknownBlockType:
            self.notify("error", f"Unknown block type '{block_type}'")
            return None

        target = self.blocks
        if parent_id is not None:
            parent = self.find(parent_id)
            columns = self._columns(parent) if parent is not None else []
            if not 0 <= column < len(columns):
                self.notify("error", "Cannot add a block there")
                return None
            if not isinstance(columns[column].get("blocks"), list):
                columns[column]["blocks"] = []
            target = columns[column]["blocks"]

        target.append(block)
        self.selected_id = block["id"]
        self._touch()
        return block

    def delete_block(self, block_id):
        found = self._locate(block_id)
        if not found:
            return False
        container, index = found
        removed = container.pop(index)
        if self.selected_id is not None and (
            self.selected_id == block_id or self._contains(removed, self.selected_id)
        ):
            self.selected_id = None
        self._touch()
        return True

    def _contains(self, block, block_id):
        return any(nested.get("id") == block_id for nested, _ in blocks.iter_blocks([block]) if isinstance(nested, dict))

    def move_block(self, block_id, to_index):
        """Move a block to ``to_index`` within its own list."""
        found = self._locate(block_id)
        if not found:
            return False
        container, index = found
        to_index = max(0, min(to_index, len(container) - 1))
        if to_index == index:
            return False
        container.insert(to_index, container.pop(index))
        self._touch()
        return True

    def index_of(self, block_id):
        found = self._locate(block_id)
        return found[1] if found else None

    def select(self, block_id):
        if block_id is not None and self.find(block_id) is None:
            return False
        self.selected_id = block_id
        return True

    def update_block_content(self, block_id, changes):
        """Merge ``changes`` into the block's content."""
        block = self.find(block_id)
        if block is None:
            return False
        content = block.get("content")
        if not isinstance(content, dict):
            content = block["content"] = {}
        layout_type = changes.get("layoutType")
        content.update({key: value for key, value in changes.items() if key != "columns"})
        if block.get("type") == blocks.SECTION_LAYOUT and layout_type is not None:
            content["columns"] = blocks.columns_for_layout(layout_type, content.get("columns"))
        self._touch()
        return True

    def set_layout(self, block_id, layout_type):
        """Re-shape a section layout's columns, keeping the blocks inside them."""
        block = self.find(block_id)
        if block is None or block.get("type") != blocks.SECTION_LAYOUT:
            raise PageEditorError(f"Block '{block_id}' is not a section layout")
        if layout_type not in blocks.LAYOUT_COLUMNS:
            raise PageEditorError(f"Unknown layout '{layout_type}'")
        return self.update_block_content(block_id, {"layoutType": layout_type})

    def outline(self):
        """Rows for the block list: every block with its depth and sibling index."""
        rows = []

        def walk(items, depth, parent_id=None, column=None):
            for index, block in enumerate(items):
                if not isinstance(block, dict):
                    continue
                definition = blocks.BLOCK_DEFINITIONS.get(block.get("type"))
                columns = self._columns(block)
                rows.append({
                    "id": block.get("id"),
                    "type": block.get("type"),
                    "label": definition.label if definition else block.get("type"),
                    "depth": depth,
                    "index": index,
                    "is_first": index == 0,
                    "is_last": index == len(items) - 1,
                    "parent_id": parent_id,
                    "column": column,
                    "columns": [column_data.get("width") for column_data in columns],
                })
                for column_index, column_data in enumerate(columns):
                    nested = column_data.get("blocks")
                    walk(nested if isinstance(nested, list) else [], depth + 1, block.get("id"), column_index)

        walk(self.blocks, 0)
        return rows

    def save(self):
        if self.page is None:
            raise PageEditorError("No page to save")
        previous = self.page.content
        try:
            blocks.validate_blocks(self.blocks)
            self.page.content = copy.deepcopy(self.blocks)
            self.page.save(update_fields=["content", "updated_at"])
        except ValidationError as exc:
            self.notify("error", "; ".join(exc.messages))
            return False
        except DatabaseError as exc:
            self.page.content = previous
            logger.exception("Failed to save page %s", self.page.pk)
            self.notify("error", str(exc) or "Failed to save page")
            return False

        logger.info("Saved page %s with %s block(s)", self.page.pk, len(self.blocks))
        self.state = self.STATE_PERSISTED
        self.notify("success", "Page saved successfully!")
        return True
