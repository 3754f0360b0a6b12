"""
Campsite Availability Sync - Database Connection Unit Tests

Tests DatabaseConnection with SQLAlchemy mocking:
- get_engine() - lazy initialization, pooling configuration
- test_connection() - connectivity validation
- close() - connection pool disposal
- get_db_session() - commit/rollback/close
"""

import pytest
from unittest.mock import Mock, MagicMock, patch
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool

from database import connection
from database.connection import DatabaseConnection, DatabaseConnectionError, get_db_session


class TestGetEngine:
    """Test get_engine() method."""

    @patch('database.connection.create_engine')
    def test_get_engine_creates_pooled_engine_once(self, mock_create_engine):
        db_conn = DatabaseConnection()
        mock_engine = Mock(spec=Engine)
        mock_create_engine.return_value = mock_engine

        engine1 = db_conn.get_engine()
        engine2 = db_conn.get_engine()

        assert engine1 is engine2 is mock_engine
        assert mock_create_engine.call_count == 1

        url = mock_create_engine.call_args[0][0]
        kwargs = mock_create_engine.call_args[1]
        assert url.drivername == "mysql+pymysql"
        assert url.query["charset"] == "utf8mb4"
        assert kwargs['poolclass'] is QueuePool
        assert kwargs['pool_pre_ping'] is True
        assert kwargs['hide_parameters'] is True

    @patch('database.connection.create_engine', side_effect=Exception("Invalid connection string"))
    def test_get_engine_wraps_failure(self, mock_create_engine):
        with pytest.raises(DatabaseConnectionError) as exc_info:
            DatabaseConnection().get_engine()

        assert "Invalid connection string" in str(exc_info.value)


class TestTestConnection:
    """Test test_connection() method."""

    def test_success(self):
        db_conn = DatabaseConnection()
        mock_engine = MagicMock()
        db_conn._engine = mock_engine

        assert db_conn.test_connection() is True
        mock_engine.connect.assert_called_once()

    def test_failure_returns_false(self):
        db_conn = DatabaseConnection()
        mock_engine = MagicMock()
        mock_engine.connect.side_effect = Exception("Can't connect to MySQL server")
        db_conn._engine = mock_engine

        assert db_conn.test_connection() is False

    def test_module_helper_uses_global_instance(self):
        with patch.object(connection.db, 'test_connection', return_value=True) as mock_test:
            assert connection.test_database_connection() is True

        mock_test.assert_called_once()


class TestClose:

    def test_close_disposes_engine(self):
        db_conn = DatabaseConnection()
        mock_engine = Mock(spec=Engine)
        db_conn._engine = mock_engine

        db_conn.close()

        mock_engine.dispose.assert_called_once()
        assert db_conn._engine is None

    def test_close_without_engine(self):
        DatabaseConnection().close()


class TestGetDbSession:

    def test_commits_and_closes_on_success(self):
        session = Mock()

        with patch('models.base.create_session', return_value=session):
            with get_db_session() as yielded:
                assert yielded is session

        session.commit.assert_called_once()
        session.rollback.assert_not_called()
        session.close.assert_called_once()

    def test_rolls_back_and_reraises_on_error(self):
        session = Mock()

        with patch('models.base.create_session', return_value=session):
            with pytest.raises(ValueError):
                with get_db_session():
                    raise ValueError("bad row")

        session.commit.assert_not_called()
        session.rollback.assert_called_once()
        session.close.assert_called_once()
