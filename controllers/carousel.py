"""
controllers/carousel.py – Media carousel state for one detail page.

The media sequence is the optional trailer (always at index 0) followed by
the screenshots in catalogue order. Navigation wraps around in both
directions; with an empty sequence next/prev do nothing.
"""

import logging
from typing import Optional, Tuple

from PySide6.QtCore import QObject, Signal
from PySide6.QtWidgets import QScrollArea

from models.entry import Entry, MediaItem

logger = logging.getLogger(__name__)


def build_media(entry: Optional[Entry]) -> Tuple[MediaItem, ...]:
    """Trailer first when present, then every screenshot."""
    if entry is None:
        return ()
    items = []
    if entry.has_trailer:
        items.append(MediaItem(kind="trailer", ref=entry.trailer))
    items.extend(
        MediaItem(kind="screenshot", ref=ref, screenshot_index=i)
        for i, ref in enumerate(entry.screenshots)
    )
    return tuple(items)


class CarouselController(QObject):
    """
    Owns the active media index of the open entry.

    Signals
    -------
    indexChanged(int) : active index after any change.
    mediaChanged()    : a new entry (or none) was set.
    """

    indexChanged = Signal(int)
    mediaChanged = Signal()

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._entry: Optional[Entry] = None
        self._media: Tuple[MediaItem, ...] = ()
        self._index = 0
        self._strip: Optional[QScrollArea] = None

    # ── State ─────────────────────────────────────────────────────────────────

    @property
    def entry(self) -> Optional[Entry]:
        return self._entry

    @property
    def active_index(self) -> int:
        return self._index

    @property
    def count(self) -> int:
        return len(self._media)

    def media(self) -> Tuple[MediaItem, ...]:
        return self._media

    def current(self) -> Optional[MediaItem]:
        if not self._media:
            return None
        return self._media[self._index]

    def is_trailer_active(self) -> bool:
        item = self.current()
        return item is not None and item.is_trailer

    def screenshot_for(self, index: int) -> int:
        """Screenshot position shown at media *index* (shifted when a trailer leads)."""
        if self._entry is not None and self._entry.has_trailer:
            return index - 1
        return index

    # ── Transitions ───────────────────────────────────────────────────────────

    def set_entry(self, entry: Optional[Entry]) -> None:
        self._entry = entry
        self._media = build_media(entry)
        self._index = 0
        self.mediaChanged.emit()
        self._set_index(0)

    def clear(self) -> None:
        self.set_entry(None)

    def next(self) -> None:
        n = len(self._media)
        if n == 0:
            return
        self._set_index((self._index + 1) % n)

    def prev(self) -> None:
        n = len(self._media)
        if n == 0:
            return
        self._set_index((self._index - 1 + n) % n)

    def jump_to(self, index: int) -> None:
        """Select a thumbnail. *index* must lie within the current sequence."""
        if not 0 <= index < len(self._media):
            raise IndexError(f"Media index {index} outside 0..{len(self._media) - 1}.")
        self._set_index(index)

    # ── Thumbnail strip ───────────────────────────────────────────────────────

    def attach_strip(self, strip: Optional[QScrollArea]) -> None:
        """Register the scrollable thumbnail strip kept centered on the active item."""
        self._strip = strip

    def _set_index(self, index: int) -> None:
        self._index = index
        self.indexChanged.emit(index)
        self._center_thumbnail()

    def _center_thumbnail(self) -> None:
        strip = self._strip
        if strip is None:
            return
        container = strip.widget()
        layout = container.layout() if container is not None else None
        if layout is None or self._index >= layout.count():
            return
        thumb = layout.itemAt(self._index).widget()
        if thumb is None:
            return
        bar = strip.horizontalScrollBar()
        target = thumb.x() + thumb.width() // 2 - strip.viewport().width() // 2
        bar.setValue(max(bar.minimum(), min(bar.maximum(), target)))
