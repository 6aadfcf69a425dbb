from types import SimpleNamespace

import pymysql
import pytest

from backend.plantcare.db import core as core_mod


class _FakeConn:
    def __init__(self, *, ping_raises: bool = False):
        self._ping_raises = ping_raises
        self.ping_called_with = None
        self.closed = False
        self._cursor = _FakeCursor()

    def ping(self, reconnect: bool = False):
        self.ping_called_with = reconnect
        if self._ping_raises:
            raise pymysql.OperationalError(2006, "MySQL server has gone away")

    def close(self):
        self.closed = True

    def cursor(self):
        return self._cursor


class _FakeCursor:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


@pytest.fixture
def no_sleep(monkeypatch):
    monkeypatch.setattr(core_mod, "time", SimpleNamespace(sleep=lambda _x: None))


def test_get_conn_uses_test_default_when_TEST_MODE(monkeypatch):
    calls = []

    def fake_connect(**kwargs):
        calls.append(kwargs)
        return _FakeConn()

    monkeypatch.setenv("TEST_MODE", "1")
    monkeypatch.delenv("DB_NAME", raising=False)
    monkeypatch.setattr(core_mod.pymysql, "connect", fake_connect)

    conn = core_mod.get_conn()
    assert isinstance(conn, _FakeConn)
    assert calls[-1]["database"] == "plantcare_test"
    assert calls[-1]["autocommit"] is True
    assert conn.ping_called_with is True


def test_get_conn_defaults_to_runtime_db(monkeypatch):
    calls = []

    def fake_connect(**kwargs):
        calls.append(kwargs)
        return _FakeConn()

    monkeypatch.delenv("TEST_MODE", raising=False)
    monkeypatch.delenv("DB_NAME", raising=False)
    monkeypatch.setattr(core_mod.pymysql, "connect", fake_connect)

    core_mod.get_conn()
    assert calls[-1]["database"] == "plantcare"


def test_get_conn_DB_NAME_override(monkeypatch):
    calls = []

    def fake_connect(**kwargs):
        calls.append(kwargs)
        return _FakeConn()

    monkeypatch.setenv("TEST_MODE", "1")
    monkeypatch.setenv("DB_NAME", "custom_test")
    monkeypatch.setattr(core_mod.pymysql, "connect", fake_connect)

    core_mod.get_conn()
    assert calls[-1]["database"] == "custom_test"


def test_get_conn_retries_on_ping_failure_and_closes_first(monkeypatch, no_sleep):
    first_conn = _FakeConn(ping_raises=True)
    second_conn = _FakeConn(ping_raises=False)
    seq = [first_conn, second_conn]

    monkeypatch.setattr(core_mod.pymysql, "connect", lambda **kwargs: seq.pop(0))

    conn = core_mod.get_conn()
    # first connection closed after the failed ping
    assert first_conn.closed is True
    assert conn is second_conn


def test_get_conn_gives_up_after_second_failure(monkeypatch, no_sleep):
    def fake_connect(**kwargs):
        raise pymysql.OperationalError(2003, "Can't connect")

    monkeypatch.setattr(core_mod.pymysql, "connect", fake_connect)

    with pytest.raises(pymysql.OperationalError):
        core_mod.get_conn()


def test_cursor_context_manager_closes_even_on_exception():
    fake = _FakeConn()
    cur = fake.cursor()
    with pytest.raises(ValueError):
        with core_mod.cursor(fake) as c:
            assert c is cur
            raise ValueError("err")
    assert cur.closed is True
