"""SQLite engine setup: foreign keys on, write lock taken when a transaction begins."""
from sqlalchemy import event, text
from sqlalchemy.orm import Session


def test_every_sqlite_transaction_begins_immediate(engine):
    statements = []

    def record(conn, cursor, statement, *args):
        statements.append(statement)

    event.listen(engine, "before_cursor_execute", record)
    try:
        with Session(engine) as s:
            s.execute(text("SELECT 1"))
    finally:
        event.remove(engine, "before_cursor_execute", record)

    # Read-only work takes the write lock too
    assert statements.index("BEGIN IMMEDIATE") < statements.index("SELECT 1")


def test_foreign_keys_are_enforced(engine):
    with Session(engine) as s:
        assert s.execute(text("PRAGMA foreign_keys")).scalar() == 1
