"""Formatting utilities for dockerstamp."""

import shlex


def format_time(seconds: float) -> str:
    """Format time duration in human-readable format.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., "2m 15s", "45s", "1h 23m")

    Examples:
        >>> format_time(45)
        '45s'
        >>> format_time(135)
        '2m 15s'
        >>> format_time(3723)
        '1h 2m'
    """
    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds}s"
    elif seconds < 3600:
        minutes = seconds // 60
        secs = seconds % 60
        if secs > 0:
            return f"{minutes}m {secs}s"
        return f"{minutes}m"
    else:
        hours = seconds // 3600
        minutes = (seconds % 3600) // 60
        if minutes > 0:
            return f"{hours}h {minutes}m"
        return f"{hours}h"


def format_command(cmd: list[str]) -> str:
    """Render an argument vector as a copy-pasteable shell line.

    Examples:
        >>> format_command(["docker", "build", "--build-arg", "NAME=a b", "."])
        "docker build --build-arg 'NAME=a b' ."
    """
    return shlex.join(cmd)


def format_mapping(values: dict[str, str]) -> str:
    """Align ``key = value`` pairs in a column.

    Examples:
        >>> print(format_mapping({"a": "1", "bcd": "2"}))
        a   = 1
        bcd = 2
    """
    if not values:
        return ""
    width = max(len(key) for key in values)
    return "\n".join(f"{key.ljust(width)} = {value}" for key, value in values.items())
