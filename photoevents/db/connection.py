"""Postgres access for the credential store.

Each store call opens its own short-lived connection; the relay holds no pool.
"""

import os
from contextlib import contextmanager
from typing import Iterator

import psycopg


@contextmanager
def get_db_cursor() -> Iterator[psycopg.Cursor]:
    """Yield a cursor inside a single transaction on `DATABASE_URL`.

    Leaving the block commits; an exception rolls back. The connection is
    closed in both cases.
    """
    with psycopg.connect(os.environ["DATABASE_URL"]) as conn:
        with conn.cursor() as cursor:
            yield cursor
