"""
Tests for the execution adapter
"""

from unittest import TestCase
from unittest.mock import MagicMock, patch

import psycopg2
import pytest

from conftest import FakeExecutor
from sql_schema_generator.domain.models import Table
from sql_schema_generator.exceptions import ConfigurationError, QueryParameterError, StatementBuildError
from sql_schema_generator.execution import (
    DataFactory,
    DataUtils,
    Psycopg2Executor,
    QueryResult,
    translate_named_params,
)
from sql_schema_generator.statements import MATCH_ALL, UNDEFINED, SQLClause


class TestTranslateNamedParams(TestCase):
    """Test cases for translate_named_params"""

    def test_format_style(self):
        text, values = translate_named_params("SELECT * FROM t WHERE a=:_a AND b=:_b", {"_a": 1, "_b": "x"})
        assert text == "SELECT * FROM t WHERE a=%s AND b=%s"
        assert values == [1, "x"]

    def test_repeated_name(self):
        text, values = translate_named_params("WHERE a=:x OR b=:x", {"x": 3})
        assert text == "WHERE a=%s OR b=%s"
        assert values == [3, 3]

    def test_numeric_style_reuses_positions(self):
        text, values = translate_named_params("WHERE a=:x OR b=:y OR c=:x", {"x": 1, "y": 2}, "numeric")
        assert text == "WHERE a=$1 OR b=$2 OR c=$1"
        assert values == [1, 2]

    def test_qmark_style(self):
        text, values = translate_named_params("VALUES (:a,:b)", {"a": 1, "b": 2}, "qmark")
        assert text == "VALUES (?,?)"
        assert values == [1, 2]

    def test_literals_and_casts_are_untouched(self):
        text, values = translate_named_params(
            "SELECT ':not_a_param', \"col:x\", created::date FROM t WHERE id=:id", {"id": 7}
        )
        assert text == "SELECT ':not_a_param', \"col:x\", created::date FROM t WHERE id=%s"
        assert values == [7]

    def test_comments_are_untouched(self):
        text, values = translate_named_params(
            "SELECT a -- filter on :b later\nFROM t /* :c\n:d */ WHERE id=:id", {"id": 7}
        )
        assert text == "SELECT a -- filter on :b later\nFROM t /* :c\n:d */ WHERE id=%s"
        assert values == [7]

    def test_dollar_quoted_bodies_are_untouched(self):
        text, values = translate_named_params(
            "SELECT $$a:b$$, $fn$x := :y$fn$ FROM t WHERE id=:id", {"id": 1}, "qmark"
        )
        assert text == "SELECT $$a:b$$, $fn$x := :y$fn$ FROM t WHERE id=?"
        assert values == [1]

    def test_percent_is_escaped_with_parameters(self):
        text, _ = translate_named_params("SELECT * FROM t WHERE a LIKE 'x%' AND b=:b", {"b": 1})
        assert text == "SELECT * FROM t WHERE a LIKE 'x%%' AND b=%s"

    def test_percent_is_kept_without_parameters(self):
        text, values = translate_named_params("SELECT * FROM t WHERE a LIKE 'x%'")
        assert text == "SELECT * FROM t WHERE a LIKE 'x%'"
        assert values == []

    def test_missing_parameter(self):
        with pytest.raises(QueryParameterError) as exc_info:
            translate_named_params("WHERE a=:a", {})
        assert exc_info.value.context["parameter"] == "a"

    def test_unknown_paramstyle(self):
        with pytest.raises(ConfigurationError):
            translate_named_params("SELECT 1", {}, "pyformat")


class TestPsycopg2Executor(TestCase):
    """Test cases for the psycopg2 executor, using a mocked connection"""

    def setUp(self):
        self.connection = MagicMock()
        self.cursor = self.connection.cursor.return_value.__enter__.return_value

    def test_rows_and_commit(self):
        self.cursor.description = [("id",)]
        self.cursor.fetchall.return_value = [{"id": 1}]
        self.cursor.rowcount = 1

        result = Psycopg2Executor(self.connection).execute("SELECT * FROM t WHERE id=%s", [1])

        self.cursor.execute.assert_called_once_with("SELECT * FROM t WHERE id=%s", [1])
        assert result == QueryResult(rows=[{"id": 1}], row_count=1)
        self.connection.commit.assert_called_once()

    def test_no_params_are_passed_as_none(self):
        """Without parameters the driver must not apply %-formatting"""
        self.cursor.description = None
        self.cursor.rowcount = -1
        result = Psycopg2Executor(self.connection).execute("CREATE TABLE t()", [])
        self.cursor.execute.assert_called_once_with("CREATE TABLE t()", None)
        assert result.rows == []

    def test_without_autocommit(self):
        self.cursor.description = None
        Psycopg2Executor(self.connection, autocommit=False).execute("DELETE FROM t", [])
        self.connection.commit.assert_not_called()

    def test_driver_error_rolls_back_and_propagates(self):
        error = psycopg2.Error("boom")
        self.cursor.execute.side_effect = error
        with pytest.raises(psycopg2.Error) as exc_info:
            Psycopg2Executor(self.connection).execute("SELECT 1", [])
        assert exc_info.value is error
        self.connection.rollback.assert_called_once()
        self.connection.commit.assert_not_called()

    def test_connect(self):
        with patch("sql_schema_generator.execution.psycopg2.connect") as mock_connect:
            executor = Psycopg2Executor.connect(host="db", port=5433, dbname="app")
        mock_connect.assert_called_once_with(host="db", port=5433, dbname="app")
        assert executor.connection is mock_connect.return_value


class TestDataFactory(TestCase):
    """Test cases for DataFactory with an injected fake executor"""

    def setUp(self):
        self.executor = FakeExecutor()
        self.factory = DataFactory(self.executor)

    def test_execute_query_single(self):
        self.executor.queue([{"id": 1}, {"id": 2}])
        assert self.factory.execute_query_single("SELECT * FROM t WHERE id=:id", {"id": 1}) == {"id": 1}
        assert self.executor.calls == [("SELECT * FROM t WHERE id=%s", [1])]

    def test_execute_query_single_without_rows(self):
        assert self.factory.execute_query_single("SELECT * FROM t") is None

    def test_execute_non_query(self):
        self.executor.queue([], row_count=3)
        assert self.factory.execute_non_query("UPDATE t SET a=:a", {"a": 1}) == 3

    def test_insert(self):
        self.executor.queue([{"id": 1, "name": "a"}])
        row = self.factory.insert("t", {"name": "a", "id": UNDEFINED})
        assert row == {"id": 1, "name": "a"}
        assert self.executor.calls == [("INSERT INTO t (name) VALUES (%s) RETURNING *", ["a"])]

    def test_update(self):
        self.factory.update("t", {"name": "b"}, {"id": 1})
        assert self.executor.calls == [("UPDATE t SET name=%s WHERE id=%s RETURNING *", ["b", 1])]

    def test_delete_match_all(self):
        self.factory.delete("t", MATCH_ALL)
        assert self.executor.statements == ["DELETE FROM t RETURNING *"]

    def test_select(self):
        self.executor.queue([{"score": 11}])
        assert self.factory.select("t", {"score": SQLClause(">", 10)}) == [{"score": 11}]
        assert self.executor.calls == [("SELECT * FROM t WHERE score>%s", [10])]

    def test_numeric_executor(self):
        executor = FakeExecutor(paramstyle="numeric")
        DataFactory(executor).select("t", {"a": 1, "b": 2})
        assert executor.calls == [("SELECT * FROM t WHERE a=$1 AND b=$2", [1, 2])]


class TestDataUtils(TestCase):
    """Test cases for the truncate helpers"""

    def setUp(self):
        self.executor = FakeExecutor()
        self.utils = DataUtils(self.executor)

    def test_truncate_given_tables(self):
        truncated = self.utils.truncate_tables(["sys_user", Table("sys_role")])
        assert truncated == ["sys_user", "sys_role"]
        assert self.executor.calls == [("TRUNCATE TABLE sys_user, sys_role CASCADE", [])]

    def test_truncate_owned_tables(self):
        self.executor.queue([{"tablename": "sys_role"}, {"tablename": "Audit Log"}])
        truncated = self.utils.truncate_tables(owner="app'; DROP TABLE x; --")
        assert truncated == ["sys_role", "Audit Log"]
        assert self.executor.calls == [
            (
                "SELECT tablename FROM pg_tables "
                "WHERE tableowner = %s AND schemaname = %s ORDER BY tablename",
                ["app'; DROP TABLE x; --", "public"],
            ),
            ('TRUNCATE TABLE "public"."sys_role", "public"."Audit Log" CASCADE', []),
        ]

    def test_nothing_to_truncate(self):
        assert self.utils.truncate_tables(owner="nobody") == []
        assert len(self.executor.calls) == 1

    def test_invalid_table_name(self):
        with pytest.raises(StatementBuildError):
            self.utils.truncate_tables(["sys_user; DROP TABLE x"])
        assert self.executor.calls == []

    def test_needs_tables_or_owner(self):
        with pytest.raises(StatementBuildError):
            self.utils.truncate_tables()
