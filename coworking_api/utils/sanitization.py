import html
import re
import unicodedata
from typing import Any, Optional


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Sanitize a string by escaping HTML special characters to prevent XSS.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(value.strip(), quote=True)


def sanitize_dict(data: dict[str, Any], fields: Optional[list[str]] = None) -> dict[str, Any]:
    """
    Escape HTML in string values of a dictionary.

    Args:
        data: Dictionary to sanitize
        fields: Field names to sanitize. If None, sanitizes all strings.

    Returns:
        New dictionary with sanitized values
    """
    if not data:
        return data

    sanitized = {}
    for key, value in data.items():
        if fields is not None and key not in fields:
            sanitized[key] = value
        elif isinstance(value, str):
            sanitized[key] = sanitize_string(value)
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value)
        elif isinstance(value, list):
            sanitized[key] = [
                sanitize_dict(item) if isinstance(item, dict) else sanitize_string(item) if isinstance(item, str) else item
                for item in value
            ]
        else:
            sanitized[key] = value
    return sanitized


def slugify(value: str, max_length: int = 250) -> str:
    """
    Build a URL slug: accents folded to ASCII, lowercase, dashes between words.

    "Les bienfaits du café !" -> "les-bienfaits-du-cafe"
    """
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")
    return slug[:max_length].rstrip("-")
