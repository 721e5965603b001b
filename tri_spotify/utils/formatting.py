"""
Human-readable sizes and uptimes for log lines and the CLI panels.
"""

_SIZE_UNITS = ("B", "KiB", "MiB", "GiB")


def format_size(num_bytes: int) -> str:
    """Formats a byte count with binary units, e.g. '1 B' or '3.5 MiB'."""
    if num_bytes < 1024:
        return f"{max(num_bytes, 0)} B"
    size = float(num_bytes)
    for unit in _SIZE_UNITS[1:]:
        size /= 1024
        if size < 1024:
            break
    return f"{size:.1f} {unit}"


def format_uptime(seconds: float) -> str:
    """Formats a service uptime as 'HH:MM:SS', prefixed by days once past one."""
    days, rest = divmod(int(seconds), 86400)
    hours, rest = divmod(rest, 3600)
    minutes, secs = divmod(rest, 60)
    clock = f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{days}d {clock}" if days else clock
