# File: tests/conftest.py
# Shared schema fixtures and a fake executor, so no test needs a live database.

from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from sql_schema_generator.domain.models import Database, Table
from sql_schema_generator.execution import QueryResult
from sql_schema_generator.schemas.users_and_roles import create_users_and_roles


class FakeExecutor:
    """
    Records every executed statement and answers with canned results.

    Results are consumed in order; when none are queued an empty result is
    returned. Setting `error` makes the next execute call raise it.
    """

    def __init__(self, paramstyle: str = "format", results: Optional[List[QueryResult]] = None):
        self.paramstyle = paramstyle
        self.results = list(results or [])
        self.calls: List[Tuple[str, List[Any]]] = []
        self.error: Optional[Exception] = None

    def queue(self, rows: Sequence[Dict[str, Any]] = (), row_count: Optional[int] = None) -> "FakeExecutor":
        rows = [dict(row) for row in rows]
        self.results.append(QueryResult(rows=rows, row_count=len(rows) if row_count is None else row_count))
        return self

    def execute(self, text: str, params: Sequence[Any]) -> QueryResult:
        self.calls.append((text, list(params)))
        if self.error is not None:
            error, self.error = self.error, None
            raise error
        if self.results:
            return self.results.pop(0)
        return QueryResult()

    @property
    def statements(self) -> List[str]:
        return [text for text, _ in self.calls]


def build_seven_tables() -> Database:
    """
    Seven tables added out of dependency order:
    table2 -> table3, table6; table3 -> table5, table7; table5 -> table6.
    """
    db = Database("test")
    table1 = db.add_table("table1")
    table2 = db.add_table("table2")
    table4 = db.add_table("table4")
    table5 = db.add_table("table5")
    table3 = db.add_table("table3")
    table7 = db.add_table("table7")
    table6 = db.add_table("table6")

    table1.primary_key_column()
    (table2
        .primary_key_column()
        .reference_column("table3_id", table3)
        .reference_column("table6_id", table6))
    (table3
        .primary_key_column()
        .reference_column("table5_id", table5)
        .reference_column("table7_id", table7))
    table4.primary_key_column()
    table5.primary_key_column().reference_column("table6_id", table6)
    table6.primary_key_column()
    table7.primary_key_column()
    return db


def build_mutual_reference() -> List[Table]:
    """Two tables referencing each other plus a table depending on both."""
    author = Table("author")
    book = Table("book")
    review = Table("review")
    author.primary_key_column().reference_column("favorite_book_id", book, nullable=True)
    book.primary_key_column().reference_column("author_id", author)
    review.primary_key_column().reference_column("book_id", book).reference_column("author_id", author)
    return [review, author, book]


@pytest.fixture
def seven_tables() -> List[Table]:
    return build_seven_tables().tables


@pytest.fixture
def users_and_roles() -> List[Table]:
    return create_users_and_roles().tables


@pytest.fixture
def mutual_reference() -> List[Table]:
    return build_mutual_reference()


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()
