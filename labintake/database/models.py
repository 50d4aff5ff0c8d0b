from dataclasses import dataclass
from datetime import date, datetime


@dataclass
class ClientRow:
    """Represents a row from the clients table (columns used for matching)."""

    id: str
    full_name: str
    date_of_birth: date | None = None
    gender: str | None = None
    user_id: str | None = None
    created_at: datetime | None = None
