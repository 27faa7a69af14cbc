from typing import Any, List, Optional
from metasearch.api.schemas import SearchImage, SearchResult


def _first_str(raw: dict, *keys: str) -> Optional[str]:
    """Returns the first value among `keys` that is present and a string."""
    for key in keys:
        value = raw.get(key)
        if isinstance(value, str):
            return value
    return None


def _required_str(raw: dict, key: str) -> Optional[str]:
    value = raw.get(key)
    if isinstance(value, str) and value:
        return value
    return None


def validate_result(raw: Any) -> Optional[SearchResult]:
    """
    Turns one untrusted upstream entry into a SearchResult, or None.
    Title and url must be non-empty strings; they are never coerced.
    """
    if not isinstance(raw, dict):
        return None

    title = _required_str(raw, "title")
    url = _required_str(raw, "url")
    if title is None or url is None:
        return None

    snippet = _first_str(raw, "snippet", "description")
    return SearchResult(title=title, url=url, snippet=snippet if snippet is not None else "")


def validate_image(raw: Any) -> Optional[SearchImage]:
    if not isinstance(raw, dict):
        return None

    title = _required_str(raw, "title")
    url = _required_str(raw, "url")
    if title is None or url is None:
        return None

    # camelCase from our relay, snake_case from upstreams that pass through unchanged
    return SearchImage(title=title, url=url, source_url=_first_str(raw, "sourceUrl", "source_url"))


def validate_results(raw: Any) -> List[SearchResult]:
    if not isinstance(raw, list):
        return []
    return [result for result in map(validate_result, raw) if result is not None]


def validate_images(raw: Any) -> List[SearchImage]:
    if not isinstance(raw, list):
        return []
    return [image for image in map(validate_image, raw) if image is not None]
