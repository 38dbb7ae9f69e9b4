"""
Tests for parameterized statement building
"""

from unittest import TestCase

import pytest

from sql_schema_generator.exceptions import StatementBuildError
from sql_schema_generator.statements import (
    MATCH_ALL,
    UNDEFINED,
    SQLClause,
    create_delete_statement,
    create_insert_statement,
    create_select_statement,
    create_update_statement,
    remove_undefined,
    undefined_if_none,
)


class TestUndefined(TestCase):
    """Test cases for the UNDEFINED marker"""

    def test_is_singleton_and_falsy(self):
        assert type(UNDEFINED)() is UNDEFINED
        assert not UNDEFINED
        assert repr(UNDEFINED) == "UNDEFINED"

    def test_remove_undefined_keeps_order(self):
        assert remove_undefined({"b": 1, "a": UNDEFINED, "c": None}) == ["b", "c"]
        assert remove_undefined(None) == []

    def test_undefined_if_none(self):
        assert undefined_if_none(None) is UNDEFINED
        assert undefined_if_none(0) == 0
        assert undefined_if_none(False) is False


class TestSQLClause(TestCase):
    """Test cases for SQLClause"""

    def test_operator_is_normalized(self):
        assert SQLClause("not   like", "a%").operator == "NOT LIKE"
        assert SQLClause(">", 1) == SQLClause(">", 1)
        assert SQLClause(">", 1) != SQLClause("<", 1)

    def test_unsupported_operator(self):
        with pytest.raises(StatementBuildError):
            SQLClause("; DROP TABLE t", 1)


class TestInsertStatement(TestCase):
    """Test cases for create_insert_statement"""

    def test_undefined_values_are_left_out(self):
        statement = create_insert_statement("t", {"name": "a", "age": UNDEFINED})
        assert statement.text == "INSERT INTO t (name) VALUES (:name) RETURNING *"
        assert statement.params == {"name": "a"}

    def test_none_is_inserted_as_null(self):
        statement = create_insert_statement("t", {"a": 1, "b": None})
        assert statement.text == "INSERT INTO t (a,b) VALUES (:a,:b) RETURNING *"
        assert statement.params == {"a": 1, "b": None}

    def test_no_values(self):
        with pytest.raises(StatementBuildError):
            create_insert_statement("t", {"a": UNDEFINED})

    def test_invalid_identifiers(self):
        with pytest.raises(StatementBuildError):
            create_insert_statement("t; --", {"a": 1})
        with pytest.raises(StatementBuildError):
            create_insert_statement("t", {"a b": 1})


class TestUpdateStatement(TestCase):
    """Test cases for create_update_statement"""

    def test_set_and_clause_parameters_do_not_collide(self):
        statement = create_update_statement("t", {"name": "new", "age": UNDEFINED}, {"name": "old"})
        assert statement.text == "UPDATE t SET name=:name WHERE name=:_name RETURNING *"
        assert statement.params == {"name": "new", "_name": "old"}

    def test_set_column_named_like_clause_parameter(self):
        statement = create_update_statement("t", {"_name": "new", "name": "x"}, {"name": "old"})
        assert statement.text == "UPDATE t SET _name=:_name,name=:name WHERE name=:_name_1 RETURNING *"
        assert statement.params == {"_name": "new", "name": "x", "_name_1": "old"}

    def test_clause_with_operators(self):
        statement = create_update_statement(
            "t", {"active": False}, {"last_login": SQLClause("<", "2020-01-01"), "email": SQLClause("LIKE", "%@x")}
        )
        assert statement.text == (
            "UPDATE t SET active=:active WHERE last_login<:_last_login AND email LIKE :_email RETURNING *"
        )
        assert statement.params == {"active": False, "_last_login": "2020-01-01", "_email": "%@x"}

    def test_empty_clause_is_refused(self):
        with pytest.raises(StatementBuildError):
            create_update_statement("t", {"a": 1}, {})
        with pytest.raises(StatementBuildError):
            create_update_statement("t", {"a": 1}, None)
        with pytest.raises(StatementBuildError):
            create_update_statement("t", {"a": 1}, {"b": UNDEFINED})

    def test_match_all(self):
        statement = create_update_statement("t", {"a": 1}, MATCH_ALL)
        assert statement.text == "UPDATE t SET a=:a RETURNING *"
        assert statement.params == {"a": 1}

    def test_no_set_values(self):
        with pytest.raises(StatementBuildError):
            create_update_statement("t", {}, {"id": 1})


class TestDeleteStatement(TestCase):
    """Test cases for create_delete_statement"""

    def test_null_predicate_has_no_parameter(self):
        statement = create_delete_statement("t", {"id": 5, "deleted_at": None})
        assert statement.text == "DELETE FROM t WHERE id=:_id AND deleted_at IS NULL RETURNING *"
        assert statement.params == {"_id": 5}

    def test_not_null_predicate(self):
        statement = create_delete_statement("t", {"deleted_at": SQLClause("<>", None)})
        assert statement.text == "DELETE FROM t WHERE deleted_at IS NOT NULL RETURNING *"
        assert statement.params == {}

    def test_null_with_ordering_operator(self):
        with pytest.raises(StatementBuildError):
            create_delete_statement("t", {"age": SQLClause(">", None)})

    def test_empty_clause_is_refused(self):
        with pytest.raises(StatementBuildError):
            create_delete_statement("t", {})

    def test_match_all(self):
        statement = create_delete_statement("t", MATCH_ALL)
        assert statement.text == "DELETE FROM t RETURNING *"


class TestSelectStatement(TestCase):
    """Test cases for create_select_statement"""

    def test_clause_operator(self):
        statement = create_select_statement("t", {"score": SQLClause(">", 10)})
        assert statement.text == "SELECT * FROM t WHERE score>:_score"
        assert statement.params == {"_score": 10}

    def test_empty_clause_selects_all(self):
        assert create_select_statement("t").text == "SELECT * FROM t"
        assert create_select_statement("t", {}).text == "SELECT * FROM t"
        assert create_select_statement("t", MATCH_ALL).text == "SELECT * FROM t"

    def test_equality_and_null(self):
        statement = create_select_statement("t", {"a": 1, "b": SQLClause("=", None)})
        assert statement.text == "SELECT * FROM t WHERE a=:_a AND b IS NULL"
        assert statement.params == {"_a": 1}
