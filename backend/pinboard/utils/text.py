"""String normalisation shared by the API layer and the services."""
import re
from typing import Optional

_WHITESPACE = re.compile(r"\s+")


def normalize_email(value: Optional[str]) -> str:
    """Lower-case and trim an email; None becomes ''."""
    if value is None:
        return ""
    return value.strip().lower()


def normalize_token(value: Optional[str]) -> str:
    """APNs tokens are hex: drop all whitespace and lower-case."""
    if value is None:
        return ""
    return _WHITESPACE.sub("", value).lower()


def normalize_optional(value: Optional[str]) -> Optional[str]:
    """Trim a string, mapping blank values to None."""
    if value is None:
        return None
    trimmed = str(value).strip()
    return trimmed or None


def truncate(text: str, max_length: int) -> str:
    """Trim and cut to max_length characters, ending with an ellipsis when cut."""
    trimmed = text.strip()
    if len(trimmed) <= max_length:
        return trimmed
    return trimmed[: max_length - 1] + "…"


def display_name_for_email(email: str) -> str:
    """Turn ``jane.doe@x.com`` into ``Jane Doe``."""
    normalized = normalize_email(email)
    if not normalized:
        return "Someone"

    local = normalized.split("@", 1)[0]
    for separator in (".", "_", "-"):
        local = local.replace(separator, " ")
    # ucwords semantics: capitalise the first letter of each word only
    local = " ".join(word[:1].upper() + word[1:] for word in local.split(" "))

    return local if local.strip() else normalized
