import logging
import os
import time
from contextlib import contextmanager

import pymysql

__all__ = [
    "get_conn",
    "cursor",
]


def get_conn():
    """Create and return a new PyMySQL connection (autocommit enabled).

    Pings the connection (with reconnect) before returning it and retries
    once on transient connection errors.
    """
    host = os.getenv("DB_HOST", "db")
    user = os.getenv("DB_USER", "plantcare")
    password = os.getenv("DB_PASSWORD", "plantcare")
    # When TEST_MODE=1 and DB_NAME is not explicitly set, default to the
    # isolated test database.
    test_mode = os.getenv("TEST_MODE") == "1"
    database = os.getenv("DB_NAME") or ("plantcare_test" if test_mode else "plantcare")

    last_err = None
    for attempt in range(2):
        try:
            conn = pymysql.connect(
                host=host,
                user=user,
                password=password,
                database=database,
                autocommit=True,
                connect_timeout=int(os.getenv("DB_CONNECT_TIMEOUT", "5")),
                read_timeout=int(os.getenv("DB_READ_TIMEOUT", "10")),
                write_timeout=int(os.getenv("DB_WRITE_TIMEOUT", "10")),
                charset="utf8mb4",
                use_unicode=True,
            )
            try:
                conn.ping(reconnect=True)
            except pymysql.MySQLError:
                conn.close()
                raise
            return conn
        except pymysql.MySQLError as e:
            logging.error(f"Error connecting to DB: {e}")
            last_err = e
            if attempt == 0:
                time.sleep(0.2)
                continue
            raise
    raise last_err  # type: ignore


@contextmanager
def cursor(conn):
    """Context manager that yields a DB cursor for a given connection."""
    cur = conn.cursor()
    try:
        yield cur
    finally:
        cur.close()
