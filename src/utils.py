from datetime import datetime, timedelta

PACKET_TIME_FORMAT = "%Y-%m-%d %H:%M:%S.%f"
SUMMARY_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def separator(width: int) -> str:
    return "=" * width


def format_timestamp(moment: datetime, millis: bool = True) -> str:
    if millis:
        # strftime only knows microseconds, cut to milliseconds
        return moment.strftime(PACKET_TIME_FORMAT)[:-3]
    return moment.strftime(SUMMARY_TIME_FORMAT)


def format_duration(delta: timedelta) -> str:
    """
    Round a duration to the millisecond and render it compactly, e.g.
    "0s", "250ms", "1.5s", "2m3.004s" or "1h0m0s".
    """
    total_ms = round(delta.total_seconds() * 1000)
    if total_ms == 0:
        return "0s"

    if total_ms < 1000:
        return f"{total_ms}ms"

    hours, rest = divmod(total_ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    seconds = f"{rest / 1000:.3f}".rstrip("0").rstrip(".")

    result = ""
    if hours:
        result += f"{hours}h"
    if hours or minutes:
        result += f"{minutes}m"
    return f"{result}{seconds}s"
