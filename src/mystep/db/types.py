"""Column types shared by the models."""

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator

from mystep.clock import as_utc


class UTCDateTime(TypeDecorator):
    """Timezone-aware timestamp that always loads as UTC, SQLite included."""

    impl = DateTime
    cache_ok = True

    def __init__(self):
        super().__init__(timezone=True)

    def process_result_value(self, value, dialect):
        return as_utc(value)
