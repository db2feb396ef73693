from __future__ import annotations

import random
from uuid import uuid4

import pytest

from catalogix.domain.errors import CategoryCycleError, NotFoundError
from catalogix.domain.model import (
    BindingOrigin,
    BindingState,
    CategoryAttributeBinding,
    CategoryNode,
    LocalizedText,
)
from catalogix.domain.schema import CategoryGraph, resolve_schema
from tests.helpers.catalog import make_definition


def _tree() -> tuple[CategoryNode, CategoryNode, CategoryNode]:
    root = CategoryNode(names=LocalizedText(uk="Інструмент"))
    child = CategoryNode(parent_id=root.id, names=LocalizedText(uk="Дрилі"))
    grandchild = CategoryNode(parent_id=child.id, names=LocalizedText(uk="Акумуляторні"))
    return root, child, grandchild


def test_child_override_replaces_only_given_fields() -> None:
    root, child, _ = _tree()
    weight = make_definition("weight", uk="Вага", default_unit="кг")
    graph = CategoryGraph(
        [root, child],
        [
            CategoryAttributeBinding(
                category_id=root.id, attribute_id=weight.id, required=False, position=3
            ),
            CategoryAttributeBinding(category_id=child.id, attribute_id=weight.id, required=True),
        ],
    )

    (resolved,) = resolve_schema(graph, child.id, {weight.id: weight})

    assert resolved.required is True
    assert resolved.position == 3
    assert resolved.unit == "кг"
    assert resolved.origin is BindingOrigin.OVERRIDDEN
    assert resolved.source_category_id == root.id
    assert resolved.overridden_in == (child.id,)


def test_inherited_and_local_origins() -> None:
    root, child, _ = _tree()
    weight = make_definition("weight")
    power = make_definition("power")
    graph = CategoryGraph(
        [root, child],
        [
            CategoryAttributeBinding(category_id=root.id, attribute_id=weight.id),
            CategoryAttributeBinding(category_id=child.id, attribute_id=power.id),
        ],
    )

    resolved = {
        item.attribute.code: item
        for item in resolve_schema(graph, child.id, {weight.id: weight, power.id: power})
    }

    assert resolved["weight"].origin is BindingOrigin.INHERITED
    assert resolved["power"].origin is BindingOrigin.LOCAL
    assert resolved["power"].visible is True
    assert resolved["power"].required is False


def test_disabled_binding_hides_attribute_below_it() -> None:
    root, child, grandchild = _tree()
    weight = make_definition("weight")
    definitions = {weight.id: weight}
    graph = CategoryGraph(
        [root, child, grandchild],
        [
            CategoryAttributeBinding(category_id=root.id, attribute_id=weight.id),
            CategoryAttributeBinding(category_id=child.id, attribute_id=weight.id, required=True),
            CategoryAttributeBinding(
                category_id=grandchild.id, attribute_id=weight.id, state=BindingState.DISABLED
            ),
        ],
    )

    assert resolve_schema(graph, grandchild.id, definitions) == []
    assert len(resolve_schema(graph, child.id, definitions)) == 1


def test_resolution_ignores_insertion_order() -> None:
    root, child, grandchild = _tree()
    definitions = {
        definition.id: definition
        for definition in (make_definition(code) for code in ("a", "b", "c", "d"))
    }
    ids = list(definitions)
    bindings = [
        CategoryAttributeBinding(category_id=root.id, attribute_id=ids[0], position=2),
        CategoryAttributeBinding(category_id=root.id, attribute_id=ids[1]),
        CategoryAttributeBinding(category_id=child.id, attribute_id=ids[2], position=1),
        CategoryAttributeBinding(category_id=child.id, attribute_id=ids[0], required=True),
        CategoryAttributeBinding(category_id=grandchild.id, attribute_id=ids[3]),
    ]
    expected = resolve_schema(CategoryGraph([root, child, grandchild], bindings), grandchild.id, definitions)

    shuffled = list(bindings)
    random.Random(7).shuffle(shuffled)
    nodes = [grandchild, root, child]
    actual = resolve_schema(CategoryGraph(nodes, shuffled), grandchild.id, definitions)

    assert actual == expected
    assert [item.attribute.code for item in actual] == ["c", "a", "b", "d"]


def test_validate_parent_rejects_cycles() -> None:
    root, child, grandchild = _tree()
    graph = CategoryGraph([root, child, grandchild])

    with pytest.raises(CategoryCycleError):
        graph.validate_parent(root.id, grandchild.id)
    with pytest.raises(CategoryCycleError):
        graph.validate_parent(child.id, child.id)
    with pytest.raises(NotFoundError):
        graph.validate_parent(child.id, uuid4())

    graph.validate_parent(grandchild.id, root.id)


def test_corrupted_parent_chain_is_reported() -> None:
    first = CategoryNode()
    second = CategoryNode(parent_id=first.id)
    first.parent_id = second.id
    graph = CategoryGraph([first, second])

    with pytest.raises(CategoryCycleError):
        graph.path_to(first.id)


def test_subtree_contains_descendants() -> None:
    root, child, grandchild = _tree()
    graph = CategoryGraph([root, child, grandchild])

    assert set(graph.subtree(child.id)) == {child.id, grandchild.id}
    assert set(graph.subtree(root.id)) == {root.id, child.id, grandchild.id}
