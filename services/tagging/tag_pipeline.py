"""Merge -> expand -> cap pipeline for product tags.

The expander is passed in, so the pipeline can run against a stub with fixed
vectors in tests.
"""

from typing import Protocol


class TagExpanding(Protocol):
    async def expand(self, tags: list[str]) -> list[str]: ...


def normalize_tags(tags: list[str] | None) -> list[str]:
    """Lower-case and trim tags, drop empties and duplicates, keep first-seen order."""
    if not tags:
        return []
    return list(dict.fromkeys(tag.strip().lower() for tag in tags if tag and tag.strip()))


def merge_tags(*tag_lists: list[str] | None) -> list[str]:
    """Union of several tag lists in argument order, normalized."""
    merged: list[str] = []
    for tags in tag_lists:
        merged.extend(tags or [])
    return normalize_tags(merged)


def cap_tags(tags: list[str], max_tags: int) -> list[str]:
    return tags[:max_tags]


async def merge_expand_cap(
    manual_tags: list[str] | None,
    auto_tags: list[str] | None,
    expander: TagExpanding,
    max_tags: int,
) -> list[str]:
    """Build the final tag list of a document.

    Manual tags come first, then extractor tags, then the expansions the
    expander proposes; the result is cut to max_tags.

    Args:
        manual_tags (list[str] | None): Tags supplied by the caller.
        auto_tags (list[str] | None): Tags derived from the page.
        expander (TagExpanding): Anything with an async expand(tags) method.
        max_tags (int): Maximum number of tags a document may carry.

    Returns:
        list[str]: Deduplicated, lower-case tags, at most max_tags long.
    """
    merged = merge_tags(manual_tags, auto_tags)
    if not merged:
        return []
    expanded = await expander.expand(merged)
    # the expander returns its input first, re-normalize in case it did not
    return cap_tags(merge_tags(merged, expanded), max_tags)
