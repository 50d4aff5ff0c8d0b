import psycopg
from psycopg.rows import dict_row

from labintake.database.connection import get_connection
from labintake.database.exceptions import ClientRegistryError
from labintake.database.models import ClientRow
from labintake.matching.models import ClientRecord


class ClientRepository:
    """Read-only access to the clients table."""

    def list_clients(self, user_id: str | None = None) -> list[ClientRecord]:
        """Return every client, optionally only those owned by *user_id*.

        Raises:
            ClientRegistryError: if the query fails.
        """
        query = """
            SELECT id, full_name, date_of_birth, gender, user_id, created_at
            FROM clients
        """
        params: tuple[object, ...] = ()
        if user_id is not None:
            query += " WHERE user_id = %s"
            params = (user_id,)
        query += " ORDER BY full_name"

        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(query, params)
                    rows = cur.fetchall()
        except psycopg.Error as exc:
            raise ClientRegistryError(f"Failed to load client registry: {exc}") from exc

        return [self.to_record(self._to_row(row)) for row in rows]

    @staticmethod
    def to_record(row: ClientRow) -> ClientRecord:
        return ClientRecord(
            client_id=row.id,
            full_name=row.full_name,
            date_of_birth=row.date_of_birth.isoformat() if row.date_of_birth else None,
            gender=row.gender,
        )

    @staticmethod
    def _to_row(row: dict[str, object]) -> ClientRow:
        return ClientRow(
            id=str(row["id"]),
            full_name=str(row["full_name"] or ""),
            date_of_birth=row.get("date_of_birth"),  # type: ignore[arg-type]
            gender=row.get("gender"),  # type: ignore[arg-type]
            user_id=str(row["user_id"]) if row.get("user_id") is not None else None,
            created_at=row.get("created_at"),  # type: ignore[arg-type]
        )
