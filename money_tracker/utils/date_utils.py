"""
Date utilities for the ledger's fixed timezone.

The ledger records every timestamp in UTC+7 regardless of where the process
runs.
"""

from datetime import datetime, timedelta, timezone

LEDGER_TZ = timezone(timedelta(hours=7), name="UTC+07")

DATE_FORMAT = "%Y-%m-%d"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def ledger_now() -> datetime:
    """Current time in the ledger timezone"""
    return datetime.now(LEDGER_TZ)


class DateFormatter:
    """Utility class for ledger date formatting"""

    @staticmethod
    def _in_ledger_tz(moment: datetime) -> datetime:
        # naive datetimes are taken to be ledger-local already
        if moment.tzinfo is None:
            return moment.replace(tzinfo=LEDGER_TZ)
        return moment.astimezone(LEDGER_TZ)

    @staticmethod
    def format_date(moment: datetime) -> str:
        """
        Format a moment as the ledger date it falls on, ``YYYY-MM-DD``
        """
        return DateFormatter._in_ledger_tz(moment).strftime(DATE_FORMAT)

    @staticmethod
    def format_timestamp(moment: datetime) -> str:
        """
        Format a moment as a ledger timestamp, ``YYYY-MM-DD HH:MM:SS``
        """
        return DateFormatter._in_ledger_tz(moment).strftime(TIMESTAMP_FORMAT)
