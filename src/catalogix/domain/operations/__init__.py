"""Operator-facing entry points; each commits its write, then submits recompute intents."""

from __future__ import annotations

from .attributes import (
    AttributeStats,
    ConflictSummary,
    attribute_stats,
    clear_manual_override,
    get_conflict_detail,
    list_conflicts,
    set_active_value,
    set_manual_override,
)
from .categories import (
    bind_attribute,
    create_category,
    disable_attribute,
    get_schema,
    move_category,
    override_attribute,
    reset_attribute,
)
from .dictionary import (
    add_alias,
    create_attribute,
    delete_attribute,
    mark_attribute_reviewed,
    set_preferred_source,
)
from .entries import EntryView, ResolvedValue, create_entry, find_entry, get_entry, update_entry
from .inbox import (
    DecisionOutcome,
    accept_suggestion,
    batch_link_suggested,
    create_attribute_from_inbox,
    ignore_inbox_item,
    link_inbox_item,
    list_inbox,
    refresh_inbox_suggestions,
)
from .links import confirm_link, link_entities, set_primary, unlink

__all__ = [
    "AttributeStats",
    "ConflictSummary",
    "DecisionOutcome",
    "EntryView",
    "ResolvedValue",
    "accept_suggestion",
    "add_alias",
    "attribute_stats",
    "batch_link_suggested",
    "bind_attribute",
    "clear_manual_override",
    "confirm_link",
    "create_attribute",
    "create_attribute_from_inbox",
    "create_category",
    "create_entry",
    "delete_attribute",
    "disable_attribute",
    "find_entry",
    "get_conflict_detail",
    "get_entry",
    "get_schema",
    "ignore_inbox_item",
    "link_entities",
    "link_inbox_item",
    "list_conflicts",
    "list_inbox",
    "mark_attribute_reviewed",
    "move_category",
    "override_attribute",
    "refresh_inbox_suggestions",
    "reset_attribute",
    "set_active_value",
    "set_manual_override",
    "set_preferred_source",
    "set_primary",
    "unlink",
    "update_entry",
]
