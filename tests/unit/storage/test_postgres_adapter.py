from unittest.mock import MagicMock, patch

import pytest

from gallery.storage.base import transaction
from gallery.storage.postgres_adapter import PostgresAdapter, PostgresConfig


@pytest.fixture
def mock_engine():
    with patch("gallery.storage.postgres_adapter.create_engine") as mock:
        yield mock


def test_config_from_environment():
    with patch.dict("os.environ", {
        "POSTGRES_USER": "gallery",
        "POSTGRES_PASSWORD": "s3cret",
        "POSTGRES_HOST": "db",
        "POSTGRES_DB": "gallery_test",
    }):
        config = PostgresConfig()
        assert config.POSTGRES_PASSWORD.get_secret_value() == "s3cret"
        assert config.connection_string == "postgresql://gallery:s3cret@db:5432/gallery_test"


def test_connect_is_idempotent(mock_engine):
    adapter = PostgresAdapter(PostgresConfig(POSTGRES_USER="u", POSTGRES_PASSWORD="p", POSTGRES_DB="d"))
    adapter.connect()
    adapter.connect()

    mock_engine.assert_called_once()
    args, kwargs = mock_engine.call_args
    assert args[0] == "postgresql://u:p@localhost:5432/d"
    assert kwargs["pool_pre_ping"] is True


def test_session_requires_connect():
    adapter = PostgresAdapter(PostgresConfig())
    with pytest.raises(ConnectionError):
        with adapter.get_session():
            pass


def test_session_rolls_back_and_closes_on_error(mock_engine):
    adapter = PostgresAdapter(PostgresConfig())
    adapter.connect()
    mock_session = MagicMock()
    adapter._session_factory = MagicMock(return_value=mock_session)

    with pytest.raises(RuntimeError):
        with adapter.get_session():
            raise RuntimeError("boom")

    mock_session.rollback.assert_called_once()
    mock_session.commit.assert_not_called()
    mock_session.close.assert_called_once()


def test_close_disposes_engine(mock_engine):
    adapter = PostgresAdapter(PostgresConfig())
    adapter.connect()
    adapter.close()

    mock_engine.return_value.dispose.assert_called_once()
    assert adapter.health_check() is False


def test_transaction_commits_or_rolls_back():
    session = MagicMock()
    with transaction(session):
        pass
    session.commit.assert_called_once()

    session = MagicMock()
    with pytest.raises(KeyError):
        with transaction(session):
            raise KeyError("x")
    session.rollback.assert_called_once()
    session.commit.assert_not_called()
