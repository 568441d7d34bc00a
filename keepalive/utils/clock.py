"""
Wall-clock helpers. Services take `today` / `now` as arguments; today_local()
is called by the API layer and scripts only.
"""
from datetime import date, datetime
from zoneinfo import ZoneInfo

from keepalive.config import get_settings


def today_local() -> date:
    """Calendar date in the configured TIMEZONE."""
    return datetime.now(ZoneInfo(get_settings().TIMEZONE)).date()

