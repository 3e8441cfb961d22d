import unittest

import pytest

from exgrid.accessor import MISSING
from exgrid.fi_op import (
    FiOp,
    FiOpRegistry,
    FilterOperator,
    filter_op_registry,
    operators_for_type,
)


def test_closed_set():
    assert [str(o) for o in FilterOperator] == [
        "eq",
        "neq",
        "gt",
        "gte",
        "lt",
        "lte",
        "contains",
        "startsWith",
        "endsWith",
        "in",
        "between",
        "isNull",
        "isNotNull",
    ]
    for op in FilterOperator:
        assert op in filter_op_registry


def test_unknown_operator():
    assert filter_op_registry.get("like") is None
    with pytest.raises(ValueError, match="Unknown filter operator"):
        filter_op_registry["like"]


def test_aliases():
    assert filter_op_registry["=="] is filter_op_registry["eq"]
    assert filter_op_registry["<="].uniq is FilterOperator.LTE


def test_labels():
    labels = filter_op_registry.labels
    assert labels[FilterOperator.EQ] == "Equals"
    assert labels[FilterOperator.STARTS_WITH] == "Starts With"
    assert labels[FilterOperator.IS_NOT_NULL] == "Is Not Empty"
    assert len(labels) == 13


@pytest.mark.parametrize(
    "op, target, value, expected",
    [
        ("eq", 3, 3, True),
        ("eq", None, None, False),
        ("neq", 3, 4, True),
        ("neq", MISSING, 4, True),
        ("gt", 5, 3, True),
        ("gt", "a", 3, False),
        ("gt", None, 3, False),
        ("gte", 3, 3, True),
        ("lt", 2, 3, True),
        ("lte", 4, 3, False),
        ("contains", "Hello World", "wor", True),
        ("startsWith", "Hello", "he", True),
        ("endsWith", "Hello", "LO", True),
        ("endsWith", None, "lo", False),
        ("in", "b", ("a", "b"), True),
        ("in", "c", ("a", "b"), False),
        ("between", 5, (1, 5), True),
        ("between", 6, (1, 5), False),
        ("isNull", None, None, True),
        ("isNull", MISSING, None, True),
        ("isNull", 0, None, False),
        ("isNotNull", "", None, True),
    ],
)
def test_matches(op, target, value, expected):
    assert filter_op_registry[op].matches(target, value) is expected


def test_operators_for_type():
    assert FilterOperator.CONTAINS in operators_for_type("string")
    assert FilterOperator.BETWEEN in operators_for_type("number")
    assert FilterOperator.CONTAINS not in operators_for_type("number")
    assert operators_for_type("boolean") == [
        FilterOperator.EQ,
        FilterOperator.NEQ,
    ]


class TestFiOp(unittest.TestCase):
    def test_default_predicate(self) -> None:
        """Test that the default predicate is equality."""
        op = FiOp(uniq=FilterOperator.EQ, label="Equals")
        self.assertEqual(op.arity, "one")
        self.assertTrue(op.needs_value)
        self.assertTrue(op.matches(1, 1))
        self.assertFalse(op.matches(1, 2))

    def test_check_value_one(self) -> None:
        """Test that a scalar operator rejects a missing value."""
        op = filter_op_registry["contains"]
        op.check_value("abc")
        with self.assertRaises(ValueError):
            op.check_value(None)

    def test_check_value_many(self) -> None:
        """Test that the in operator requires a collection."""
        op = filter_op_registry["in"]
        op.check_value([1, 2])
        op.check_value(frozenset({1}))
        with self.assertRaises(ValueError):
            op.check_value("a")

    def test_check_value_range(self) -> None:
        """Test that between requires exactly two bounds."""
        op = filter_op_registry["between"]
        op.check_value((1, 2))
        with self.assertRaises(ValueError):
            op.check_value([1, 2, 3])
        with self.assertRaises(ValueError):
            op.check_value(5)

    def test_check_value_none(self) -> None:
        """Test that null checks accept anything."""
        op = filter_op_registry["isNull"]
        self.assertFalse(op.needs_value)
        op.check_value(None)
        op.check_value("ignored")


class TestFiOpRegistry(unittest.TestCase):
    def test_independent_instances(self) -> None:
        """Test that each registry holds its own operators."""
        first = FiOpRegistry()
        second = FiOpRegistry()
        self.assertIsNot(first["eq"], second["eq"])
        self.assertEqual(first["eq"].uniq, second["eq"].uniq)

    def test_contains(self) -> None:
        """Test membership by name, alias and enum member."""
        self.assertIn("gte", filter_op_registry)
        self.assertIn(">=", filter_op_registry)
        self.assertIn(FilterOperator.BETWEEN, filter_op_registry)
        self.assertNotIn("like", filter_op_registry)
