"""Text helpers shared by ingestion and query."""


def normalize_text(text: str) -> str:
    """Trim and lowercase, so stored and queried text compare case-insensitively."""
    return text.strip().lower()
