"""
Unit tests for expectation policies and the statement model.
"""
import unittest

from merge_batcher.exceptions import (
    ExpectationViolationError,
    StaleStateError,
    TooManyRowsAffectedError,
)
from merge_batcher.expectations import (
    BasicExpectation,
    Expectations,
    NoneExpectation,
    verify_outcome_batched,
)
from merge_batcher.statements import Parameter, ParameterDirection, PendingStatement, Statement


class TestVerifyOutcomeBatched(unittest.TestCase):
    """Test cases for aggregate verification."""

    def test_match(self):
        verify_outcome_batched(2, 2)
        verify_outcome_batched(0, 0)

    def test_fewer_rows(self):
        with self.assertRaises(StaleStateError) as ctx:
            verify_outcome_batched(2, 1)
        self.assertIsInstance(ctx.exception, ExpectationViolationError)
        self.assertEqual((ctx.exception.expected, ctx.exception.actual), (2, 1))

    def test_more_rows(self):
        with self.assertRaises(TooManyRowsAffectedError):
            verify_outcome_batched(2, 3)


class TestExpectations(unittest.TestCase):
    """Test cases for expectation classes."""

    def test_basic_expectation(self):
        expectation = BasicExpectation(2)
        self.assertTrue(expectation.can_be_merged)
        self.assertEqual(expectation.expected_row_count, 2)

        statement = Statement("DELETE FROM t WHERE a = :a")
        expectation.verify_single(2, statement)
        with self.assertRaises(StaleStateError):
            expectation.verify_single(1, statement)
        with self.assertRaises(TooManyRowsAffectedError):
            expectation.verify_single(3, statement)

    def test_negative_row_count_rejected(self):
        with self.assertRaises(ValueError):
            BasicExpectation(-1)

    def test_none_expectation(self):
        expectation = NoneExpectation()
        self.assertFalse(expectation.can_be_merged)
        expectation.verify_single(42, Statement("TRUNCATE t"))

    def test_shared_instances(self):
        self.assertEqual(Expectations.BASIC.expected_row_count, 1)
        self.assertFalse(Expectations.NONE.can_be_merged)
        self.assertEqual(Expectations.rows(5).expected_row_count, 5)


class TestStatements(unittest.TestCase):
    """Test cases for the statement model."""

    def test_default_expectation(self):
        statement = PendingStatement("DELETE FROM t")
        self.assertIs(statement.expectation, Expectations.BASIC)
        self.assertTrue(statement.can_be_merged)
        self.assertEqual(statement.expected_row_count, 1)

    def test_bind_output_parameters_as_none(self):
        statement = Statement("CALL p(:a, :b, :c, :d)", [
            Parameter("a", 1),
            Parameter("b", "ignored", ParameterDirection.OUTPUT),
            Parameter("c", 3, ParameterDirection.INPUT_OUTPUT),
            Parameter("d", 4, ParameterDirection.RETURN_VALUE),
        ])
        self.assertEqual(statement.bind(), {"a": 1, "b": None, "c": 3, "d": None})

    def test_find_parameter(self):
        statement = Statement("SELECT :a", [Parameter("a", 1)])
        self.assertEqual(statement.find_parameter("a").value, 1)
        self.assertIsNone(statement.find_parameter("b"))

    def test_parameter_renamed_is_copy(self):
        source = Parameter("a", 1, db_type="int4")
        renamed = source.renamed("p0")
        self.assertEqual(renamed, Parameter("p0", 1, db_type="int4"))
        self.assertEqual(source.placeholder, ":a")


if __name__ == "__main__":
    unittest.main()
