"""
Column types shared by the models
"""
from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator
from app.utils.datetime_utils import ensure_utc


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware UTC datetime on both sides of the store.

    SQLite drops tzinfo on the way back; values are re-tagged as UTC so core
    logic only ever sees aware datetimes.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return ensure_utc(value)

    def process_result_value(self, value, dialect):
        return ensure_utc(value)
