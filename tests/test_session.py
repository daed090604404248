import pytest

from ecolens.db.session import Database
from ecolens.errors import Unavailable


def test_connect_and_disconnect(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'lifecycle.db'}", timeout=1)
    assert not db.is_connected
    assert db.ping() is False

    db.connect()
    assert db.is_connected
    assert db.ping() is True

    db.disconnect()
    assert not db.is_connected


def test_session_before_connect_is_unavailable(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'never.db'}")

    with pytest.raises(Unavailable):
        next(db.session())


def test_sqlite_waits_are_bounded_by_busy_timeout():
    db = Database("sqlite:///ecolens.db", timeout=2.5)

    assert db.engine_options() == {"connect_args": {"check_same_thread": False, "timeout": 2.5}}


def test_server_urls_bound_connect_and_pool_waits():
    db = Database("postgresql://eco:pw@db.internal/ecolens", timeout=2.5)

    options = db.engine_options()

    assert options["pool_timeout"] == 2.5
    assert options["connect_args"] == {"connect_timeout": 2}
