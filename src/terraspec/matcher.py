"""Compare assertion trees against a plan.

Only the expected tree drives the walk: keys, list positions and nested
blocks that appear solely in the plan are never visited, so unrelated
configuration changes cannot break an assertion. Every leaf comparison
yields exactly one diagnostic, an info on match and an error otherwise.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from .diagnostics import Diagnostics, error, info
from .paths import ROOT, AttributePath
from .plan import PlanAccessor
from .schema import AttributeType, BlockSchema, NestedBlock
from .spec.model import Assertion, AssertionTree
from .values import (
    NULL,
    BlockSet,
    GenericValue,
    KeyedMap,
    OrderedList,
    Scalar,
    ScalarValue,
    render,
    scalar_text,
    shape_name,
)

logger = logging.getLogger("terraspec.matcher")

SchemaNode = Union[BlockSchema, NestedBlock, AttributeType, None]

_SEQUENCES = (OrderedList, BlockSet)


def validate(tree: AssertionTree, accessor: PlanAccessor) -> Diagnostics:
    """Validate every assertion of ``tree``; duplicates are checked independently."""

    return Matcher(accessor).validate(tree)


class Matcher:
    def __init__(self, accessor: PlanAccessor) -> None:
        self.accessor = accessor

    def validate(self, tree: AssertionTree) -> Diagnostics:
        diagnostics = Diagnostics()
        for assertion in tree.assertions:
            diagnostics.extend(self.check(assertion))
        return diagnostics

    def check(self, assertion: Assertion) -> Diagnostics:
        target = assertion.target
        actual = self.accessor.resolve(assertion.address)
        out = Diagnostics()

        if assertion.expect_absent:
            if actual is None:
                out.append(info("absent from the plan", path=ROOT, target=target))
            else:
                out.append(error("expected to be absent but is present in the plan", path=ROOT, target=target))
            return out

        if actual is None:
            out.append(error(self._missing_message(assertion), path=ROOT, target=target))
            return out

        logger.debug("checking %s", target)
        schema = self.accessor.schema_for(assertion.address)
        _Walk(target, out).compare(assertion.expected, actual, schema, ROOT)
        return out

    def _missing_message(self, assertion: Assertion) -> str:
        message = "not present in the plan"
        address = assertion.address
        if address.is_output or address.index is not None:
            return message
        prefix = f"{address}["
        instances = [candidate for candidate in self.accessor.snapshot.addresses() if candidate.startswith(prefix)]
        if instances:
            message += f" (instances found: {', '.join(instances)})"
        return message


class _Walk:
    """One recursive comparison; the path is extended by copy on descent."""

    def __init__(self, target: str, out: Diagnostics) -> None:
        self.target = target
        self.out = out

    def _info(self, detail: str, path: AttributePath) -> None:
        self.out.append(info(detail, path=path, target=self.target))

    def _error(self, detail: str, path: AttributePath) -> None:
        self.out.append(error(detail, path=path, target=self.target))

    def compare(
        self,
        expected: GenericValue,
        actual: GenericValue,
        node: SchemaNode,
        path: AttributePath,
    ) -> None:
        if expected is NULL:
            if actual is NULL:
                self._info("null", path)
            else:
                self._error(f"expected null but got {render(actual)}", path)
            return
        if actual is NULL:
            self._error(f"expected {render(expected)} but the plan value is null or only known after apply", path)
            return

        if isinstance(expected, Scalar):
            if not isinstance(actual, Scalar):
                self._shape_mismatch(expected, actual, path)
                return
            self._compare_scalar(expected, actual, node, path)
        elif isinstance(expected, KeyedMap):
            if not isinstance(actual, KeyedMap):
                self._shape_mismatch(expected, actual, path)
                return
            self._compare_map(expected, actual, node, path)
        elif isinstance(expected, _SEQUENCES):
            if not isinstance(actual, _SEQUENCES):
                self._shape_mismatch(expected, actual, path)
                return
            self._compare_sequence(expected, actual, node, path)
        else:
            self._shape_mismatch(expected, actual, path)

    def _shape_mismatch(self, expected: GenericValue, actual: GenericValue, path: AttributePath) -> None:
        self._error(
            f"expected a {shape_name(expected)} value {render(expected)} but got a {shape_name(actual)} value {render(actual)}",
            path,
        )

    def _compare_scalar(self, expected: Scalar, actual: Scalar, node: SchemaNode, path: AttributePath) -> None:
        kind = node.kind if isinstance(node, AttributeType) else "dynamic"
        if scalars_equal(expected.value, actual.value, kind):
            self._info(render(actual), path)
        else:
            self._error(f"expected {render(expected)} but got {render(actual)}", path)

    def _compare_map(self, expected: KeyedMap, actual: KeyedMap, node: SchemaNode, path: AttributePath) -> None:
        if isinstance(node, NestedBlock):
            if node.nesting_mode == "map":
                self._compare_free_map(expected, actual, node.block, path, "block")
                return
            node = node.block

        if isinstance(node, BlockSchema):
            for key, expected_child in expected.items():
                child_path = path.attr(key)
                if not node.knows(key):
                    self._error(f'unknown attribute "{key}"', child_path)
                    continue
                nested = node.block_type(key)
                child_node: SchemaNode = nested if nested is not None else node.attribute(key)
                actual_child = actual.get(key)
                self.compare(expected_child, NULL if actual_child is None else actual_child, child_node, child_path)
            return

        if isinstance(node, AttributeType) and node.kind == "object":
            known = {name for name, _ in node.attributes}
            for key, expected_child in expected.items():
                child_path = path.attr(key)
                if key not in known:
                    self._error(f'unknown attribute "{key}"', child_path)
                    continue
                actual_child = actual.get(key)
                self.compare(expected_child, NULL if actual_child is None else actual_child, node.attribute(key), child_path)
            return

        element = node.element if isinstance(node, AttributeType) and node.kind == "map" else None
        self._compare_free_map(expected, actual, element, path, "key")

    def _compare_free_map(
        self,
        expected: KeyedMap,
        actual: KeyedMap,
        element: SchemaNode,
        path: AttributePath,
        noun: str,
    ) -> None:
        for key, expected_child in expected.items():
            child_path = path.attr(key)
            actual_child = actual.get(key)
            if actual_child is None:
                if expected_child is NULL:
                    self._info("null", child_path)
                else:
                    self._error(f'{noun} "{key}" is not present in the plan', child_path)
                continue
            self.compare(expected_child, actual_child, element, child_path)

    def _compare_sequence(
        self,
        expected: Union[OrderedList, BlockSet],
        actual: Union[OrderedList, BlockSet],
        node: SchemaNode,
        path: AttributePath,
    ) -> None:
        expected_items = expected.items if isinstance(expected, OrderedList) else expected.blocks
        actual_items = actual.items if isinstance(actual, OrderedList) else actual.blocks
        if len(expected_items) != len(actual_items):
            self._error(f"expected {len(expected_items)} element(s) but got {len(actual_items)}", path)
            return
        for position, (expected_item, actual_item) in enumerate(zip(expected_items, actual_items)):
            self.compare(expected_item, actual_item, _element_node(node, position), path.index(position))


def _element_node(node: SchemaNode, position: int) -> SchemaNode:
    if isinstance(node, NestedBlock):
        return node.block
    if isinstance(node, AttributeType):
        return node.element_at(position)
    return None


def _is_number(value: ScalarValue) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _to_decimal(value: ScalarValue) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    try:
        return Decimal(value.strip())
    except InvalidOperation:
        return None


def _to_bool(value: ScalarValue) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def scalars_equal(expected: ScalarValue, actual: ScalarValue, kind: str = "dynamic") -> bool:
    """Compare two scalars under the attribute's declared type.

    Numbers compare numerically after string conversion, bools accept the
    ``"true"``/``"false"`` spellings, strings compare by Terraform's string
    form with no numeric coercion. Dynamic attributes require matching
    kinds.
    """

    if kind == "number":
        left, right = _to_decimal(expected), _to_decimal(actual)
        return left is not None and right is not None and left == right
    if kind == "bool":
        left_bool, right_bool = _to_bool(expected), _to_bool(actual)
        return left_bool is not None and left_bool == right_bool
    if kind == "string":
        return scalar_text(expected) == scalar_text(actual)
    if _is_number(expected) and _is_number(actual):
        return _to_decimal(expected) == _to_decimal(actual)
    if type(expected) is not type(actual):
        return False
    return expected == actual


__all__ = ["Matcher", "validate", "scalars_equal"]
