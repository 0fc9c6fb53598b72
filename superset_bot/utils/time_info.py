"""
TIME INFORMATION UTILITY
========================

Timestamps shown to the outside world: the `time` field of GET /api/health
and the first column of every exchange-log line.
"""

import datetime


def utc_timestamp() -> str:
    """Current time as ISO-8601 in UTC with millisecond precision, e.g. 2026-10-19T08:15:02.123Z."""
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
