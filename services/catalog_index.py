"""
services/catalog_index.py – The single owned store of loaded catalogue entries.

One CatalogIndex lives for the lifetime of the application. Other components
read it through ``entries`` / ``tags_of`` / ``find`` and mutate it only via
``load`` (catalogue fetch) and ``upsert`` (editor write-back).
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from models.entry import Entry, Section, entry_identity

logger = logging.getLogger(__name__)


class CatalogIndex:
    """Per-section entry lists plus derived tag universes."""

    def __init__(self) -> None:
        self._entries: Dict[Section, List[Entry]] = {s: [] for s in Section}

    def load(self, section: Section, entries: Iterable[Entry]) -> None:
        """Replace the whole entry set of *section*."""
        self._entries[section] = list(entries)
        logger.debug("Loaded %d entries into %s", len(self._entries[section]), section.name)

    def entries(self, section: Section) -> Tuple[Entry, ...]:
        return tuple(self._entries.get(section, ()))

    def tags_of(self, section: Section) -> List[str]:
        """Sorted distinct tags across the section's entries."""
        return sorted({tag for e in self._entries.get(section, ()) for tag in e.tags})

    def find(self, section: Section, identity: str) -> Optional[Entry]:
        for e in self._entries.get(section, ()):
            if entry_identity(e) == identity:
                return e
        return None

    def upsert(self, section: Section, entry: Entry, replacing: Optional[str] = None) -> None:
        """
        Replace the entry whose identity is *replacing* (default: the entry's
        own identity) or append when no entry matches.
        """
        target = replacing if replacing is not None else entry_identity(entry)
        items = self._entries.setdefault(section, [])
        for i, existing in enumerate(items):
            if entry_identity(existing) == target:
                items[i] = entry
                break
        else:
            items.append(entry)
