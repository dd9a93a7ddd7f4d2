"""Human-readable formatting for the stats panel."""


def format_bytes(num_bytes: int) -> str:
    """
    Format a byte count the way the stats line shows it.

    Examples:
        >>> format_bytes(512)
        '512 B'
        >>> format_bytes(2048)
        '2.0 KB'
        >>> format_bytes(5 * 1048576)
        '5.0 MB'
    """
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1048576:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / 1048576:.1f} MB"


def format_count(count: int) -> str:
    """Format an integer with thousands separators (``1234567`` -> ``1,234,567``)."""
    return f"{count:,}"
