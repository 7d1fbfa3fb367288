"""Byte size formatting."""

KB = 1024
MB = KB * 1024
GB = MB * 1024


def format_size(size: int) -> str:
    """
    Format a byte count with binary units.

    Args:
        size: Number of bytes

    Returns:
        "N B" below 1024, otherwise one decimal in KB, MB or GB
    """
    if size >= GB:
        return f"{size / GB:.1f} GB"
    if size >= MB:
        return f"{size / MB:.1f} MB"
    if size >= KB:
        return f"{size / KB:.1f} KB"
    return f"{size} B"
