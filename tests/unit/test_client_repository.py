from contextlib import contextmanager
from datetime import date
from unittest.mock import MagicMock, patch

import psycopg
import pytest

from labintake.config.settings import Settings
from labintake.database.connection import build_conninfo, get_connection
from labintake.database.exceptions import ClientRegistryError
from labintake.database.repositories.client_repository import ClientRepository
from labintake.main import load_registry


def _make_connection(rows: list[dict[str, object]]) -> MagicMock:
    conn = MagicMock()
    cursor = conn.cursor.return_value.__enter__.return_value
    cursor.fetchall.return_value = rows
    return conn


def _patch_connection(conn: MagicMock):  # type: ignore[no-untyped-def]
    @contextmanager
    def fake_get_connection():  # type: ignore[no-untyped-def]
        yield conn

    return patch(
        "labintake.database.repositories.client_repository.get_connection",
        fake_get_connection,
    )


class TestConnection:
    def test_conninfo(self) -> None:
        settings = Settings(_env_file=None, db_host="db", db_database="registry")  # type: ignore[call-arg]
        conninfo = build_conninfo(settings)
        assert "host=db" in conninfo
        assert "dbname=registry" in conninfo
        assert "application_name=labintake" in conninfo

    def test_get_connection_requires_pool(self) -> None:
        with pytest.raises(RuntimeError, match="not initialized"):
            with get_connection():
                pass


class TestClientRepository:
    def test_maps_rows_to_records(self) -> None:
        conn = _make_connection(
            [
                {
                    "id": 7,
                    "full_name": "Jane Doe",
                    "date_of_birth": date(1985, 3, 12),
                    "gender": "female",
                    "user_id": 3,
                    "created_at": None,
                },
                {"id": 8, "full_name": "John Smith", "date_of_birth": None, "gender": None},
            ]
        )
        with _patch_connection(conn):
            clients = ClientRepository().list_clients()

        assert clients[0].client_id == "7"
        assert clients[0].date_of_birth == "1985-03-12"
        assert clients[1].date_of_birth is None
        assert clients[1].gender is None

    def test_filters_by_user(self) -> None:
        conn = _make_connection([])
        with _patch_connection(conn):
            ClientRepository().list_clients("42")
        cursor = conn.cursor.return_value.__enter__.return_value
        query, params = cursor.execute.call_args.args
        assert "WHERE user_id = %s" in query
        assert params == ("42",)

    def test_database_errors_are_wrapped(self) -> None:
        conn = _make_connection([])
        cursor = conn.cursor.return_value.__enter__.return_value
        cursor.execute.side_effect = psycopg.OperationalError("relation does not exist")
        with _patch_connection(conn), pytest.raises(ClientRegistryError):
            ClientRepository().list_clients()


class TestLoadRegistry:
    @patch("labintake.main.close_pool")
    @patch("labintake.main.init_pool")
    @patch("labintake.main.ClientRepository")
    def test_registry_failure_continues_without_matching(
        self, mock_repo_cls: MagicMock, mock_init: MagicMock, mock_close: MagicMock
    ) -> None:
        mock_repo_cls.return_value.list_clients.side_effect = ClientRegistryError("down")
        assert load_registry(Settings(_env_file=None), None) == []  # type: ignore[call-arg]
        mock_close.assert_called_once()
