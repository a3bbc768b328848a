###########EXTERNAL IMPORTS############

from datetime import datetime, timezone

#######################################

#############LOCAL IMPORTS#############

#######################################


def get_current_utc_datetime() -> datetime:
    return datetime.now(tz=timezone.utc)


def get_timestamp(date: datetime) -> int:
    """
    Returns the Unix timestamp of a datetime, in milliseconds.
    """

    return int(date.timestamp() * 1000)


def get_current_timestamp() -> int:
    """
    Returns the current Unix timestamp in milliseconds.

    Snapshots, session starts and persisted histories are all stamped with it.
    """

    return get_timestamp(get_current_utc_datetime())


def to_clock_label(timestamp: int) -> str:
    """
    Formats a Unix timestamp in milliseconds as a local wall clock label.

    Args:
        timestamp: Unix timestamp in milliseconds.

    Returns:
        str: Label formatted as HH:MM:SS, used on chart axes.
    """

    return datetime.fromtimestamp(timestamp / 1000).strftime("%H:%M:%S")


def format_minutes_seconds(seconds: float) -> str:
    """
    Formats a duration in seconds as MM:SS, truncating fractional seconds.
    """

    total = max(0, int(seconds))
    return f"{total // 60:02d}:{total % 60:02d}"
