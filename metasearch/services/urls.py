import re

DOMAIN_PATTERN = re.compile(r"^[a-zA-Z0-9-]+(\.[a-zA-Z0-9-]+)+")


def _has_scheme(text: str) -> bool:
    return text.startswith("http://") or text.startswith("https://")


def is_url(text: str) -> bool:
    """Decides whether top-bar input should be opened as a page instead of searched."""
    if _has_scheme(text):
        return True
    return bool(DOMAIN_PATTERN.match(text))


def normalize_url(text: str) -> str:
    if _has_scheme(text):
        return text
    return f"https://{text}"
