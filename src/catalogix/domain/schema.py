"""Category schema graph: tree validation and attribute inheritance resolution.

The tree is kept as a flat arena (``CategoryGraph.nodes``) indexed by id with a
parent pointer per node. Ancestor walks are bounded by the node count, so a
corrupted parent chain surfaces as ``CategoryCycleError`` instead of looping.

Resolution walks root -> target and keeps a working set keyed by attribute id:

- a disabled binding drops the attribute (even if several ancestors bound it)
- a binding for an attribute not in the set inserts it (``local`` on the target,
  ``inherited`` elsewhere) and records the originating category
- a binding for an attribute already in the set replaces only its non-null fields
  and marks the entry ``overridden``
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from catalogix.domain.errors import CategoryCycleError, NotFoundError
from catalogix.domain.model import BindingOrigin

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from uuid import UUID

    from catalogix.domain.model import (
        AttributeDefinition,
        CategoryAttributeBinding,
        CategoryNode,
    )


@dataclass(frozen=True, slots=True)
class ResolvedAttribute:
    """One active attribute of a category's effective schema."""

    attribute: AttributeDefinition
    required: bool
    visible: bool
    position: int | None
    unit: str | None
    constraints: dict[str, Any] | None
    origin: BindingOrigin
    source_category_id: UUID
    overridden_in: tuple[UUID, ...] = ()

    @property
    def attribute_id(self) -> UUID:
        return self.attribute.id

    @property
    def display_name(self) -> str:
        return self.attribute.display_name


@dataclass(slots=True)
class _WorkingEntry:
    attribute: AttributeDefinition
    source_category_id: UUID
    origin: BindingOrigin
    required: bool | None = None
    visible: bool | None = None
    position: int | None = None
    unit: str | None = None
    constraints: dict[str, Any] | None = None
    overridden_in: list[UUID] = field(default_factory=list)

    def apply(self, binding: CategoryAttributeBinding) -> None:
        if binding.required is not None:
            self.required = binding.required
        if binding.visible is not None:
            self.visible = binding.visible
        if binding.position is not None:
            self.position = binding.position
        if binding.unit_override is not None:
            self.unit = binding.unit_override
        if binding.constraints is not None:
            self.constraints = dict(binding.constraints)

    def freeze(self) -> ResolvedAttribute:
        return ResolvedAttribute(
            attribute=self.attribute,
            required=bool(self.required),
            visible=True if self.visible is None else self.visible,
            position=self.position,
            unit=self.unit if self.unit is not None else self.attribute.default_unit,
            constraints=self.constraints,
            origin=self.origin,
            source_category_id=self.source_category_id,
            overridden_in=tuple(self.overridden_in),
        )


class CategoryGraph:
    """Arena of category nodes plus their bindings, indexed for resolution."""

    def __init__(
        self,
        nodes: Iterable[CategoryNode],
        bindings: Iterable[CategoryAttributeBinding] = (),
    ) -> None:
        self.nodes: dict[UUID, CategoryNode] = {node.id: node for node in nodes}
        self._bindings: dict[UUID, dict[UUID, CategoryAttributeBinding]] = {}
        for binding in bindings:
            self._bindings.setdefault(binding.category_id, {})[binding.attribute_id] = binding

    def __contains__(self, category_id: object) -> bool:
        return category_id in self.nodes

    def get(self, category_id: UUID) -> CategoryNode:
        node = self.nodes.get(category_id)
        if node is None:
            raise NotFoundError("category", category_id)
        return node

    def bindings_at(self, category_id: UUID) -> tuple[CategoryAttributeBinding, ...]:
        return tuple(self._bindings.get(category_id, {}).values())

    def path_to(self, category_id: UUID) -> tuple[UUID, ...]:
        """Return the ancestor chain root -> ``category_id`` (inclusive)."""

        self.get(category_id)
        chain: list[UUID] = []
        current: UUID | None = category_id
        limit = len(self.nodes)
        while current is not None:
            if len(chain) >= limit:
                raise CategoryCycleError(f"parent chain of {category_id} does not terminate")
            node = self.nodes.get(current)
            if node is None:
                raise NotFoundError("category", current)
            chain.append(current)
            current = node.parent_id
        chain.reverse()
        return tuple(chain)

    def subtree(self, category_id: UUID) -> tuple[UUID, ...]:
        """Return ``category_id`` and all of its descendants."""

        self.get(category_id)
        children: dict[UUID, list[UUID]] = {}
        for node in self.nodes.values():
            if node.parent_id is not None:
                children.setdefault(node.parent_id, []).append(node.id)
        collected: list[UUID] = []
        stack = [category_id]
        seen: set[UUID] = set()
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            collected.append(current)
            stack.extend(children.get(current, ()))
        return tuple(collected)

    def validate_parent(self, category_id: UUID, parent_id: UUID | None) -> None:
        """Raise if making ``parent_id`` the parent of ``category_id`` breaks the tree."""

        if parent_id is None:
            return
        if parent_id not in self.nodes:
            raise NotFoundError("category", parent_id)
        if parent_id == category_id:
            raise CategoryCycleError("a category cannot be its own parent")
        if category_id in self.nodes and parent_id in self.subtree(category_id):
            raise CategoryCycleError(
                f"moving {category_id} under {parent_id} would create a cycle"
            )


def resolve_schema(
    graph: CategoryGraph,
    category_id: UUID,
    definitions: Mapping[UUID, AttributeDefinition],
) -> list[ResolvedAttribute]:
    """Return the effective, active-only schema of ``category_id``.

    The result depends only on the graph state: bindings within one category are
    unique per attribute, so insertion order never changes the outcome.
    """

    working: dict[UUID, _WorkingEntry] = {}
    for node_id in graph.path_to(category_id):
        origin = BindingOrigin.LOCAL if node_id == category_id else BindingOrigin.INHERITED
        for binding in graph.bindings_at(node_id):
            if binding.is_disabled:
                working.pop(binding.attribute_id, None)
                continue
            entry = working.get(binding.attribute_id)
            if entry is None:
                attribute = definitions.get(binding.attribute_id)
                if attribute is None:
                    raise NotFoundError("attribute", binding.attribute_id)
                entry = _WorkingEntry(
                    attribute=attribute,
                    source_category_id=node_id,
                    origin=origin,
                )
                working[binding.attribute_id] = entry
            else:
                entry.origin = BindingOrigin.OVERRIDDEN
                entry.overridden_in.append(node_id)
            entry.apply(binding)

    resolved = [entry.freeze() for entry in working.values()]
    resolved.sort(key=_schema_order)
    return resolved


def _schema_order(item: ResolvedAttribute) -> tuple[bool, int, str, str]:
    return (
        item.position is None,
        item.position or 0,
        item.display_name.casefold(),
        item.attribute.key,
    )
