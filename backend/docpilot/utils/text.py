from typing import Optional


def truncate(text: Optional[str], limit: int) -> str:
    """Cut text to at most ``limit`` characters. No attempt to respect line boundaries."""
    if not text:
        return ""
    return text[:limit]
