"""Tag input normalisation."""

from collections.abc import Iterable

TAG_DELIMITER = ","


def parse_tags(raw: str | Iterable[str] | None) -> list[str] | None:
    """Turn tag input into an ordered list of trimmed, non-empty tags.

    ``None`` means "no tag input" and is passed through so callers can leave
    existing tags untouched. A delimited string is split on commas; an iterable
    is taken item by item. Order of first appearance is kept.
    """
    if raw is None:
        return None
    items = raw.split(TAG_DELIMITER) if isinstance(raw, str) else raw
    return [tag.strip() for tag in items if tag and tag.strip()]
