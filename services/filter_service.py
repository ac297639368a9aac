"""
services/filter_service.py – In-memory filtering of a section's entries.

Pure functions only: no state, no I/O. The result always preserves the
relative order of the input.
"""

from typing import Iterable, List, Sequence

from models.entry import Entry


def matches(entry: Entry, search_text: str = "", selected_tags: Iterable[str] = ()) -> bool:
    """
    True when *entry* passes both the name search and the tag filter.

    Name search is a case-insensitive substring match; only the empty string
    matches everything. Every selected tag must be present on the entry.
    """
    q = search_text.casefold()
    if q and q not in entry.name.casefold():
        return False
    entry_tags = set(entry.tags)
    return all(tag in entry_tags for tag in selected_tags)


def filter_entries(
    entries: Sequence[Entry],
    search_text: str = "",
    selected_tags: Iterable[str] = (),
) -> List[Entry]:
    """
    Case-insensitive name search combined with AND tag filtering.

    Parameters
    ----------
    entries       : The active section's entries, in catalogue order.
    search_text   : User-supplied search string.
    selected_tags : Tags that every visible entry must carry.

    Returns
    -------
    A new list; all entries when both filters are empty.
    """
    tags = tuple(selected_tags)
    return [e for e in entries if matches(e, search_text, tags)]
