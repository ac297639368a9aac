"""
controllers/navigation.py – Section / detail navigation state machine.

States
------
  IDLE                     no section chosen yet (only left by a restart)
  BROWSING(section)        grid of the section's filtered entries
  VIEWING(section, entry)  detail page of one entry

Every transition is two-phase: the phase becomes FADING_OUT, and after
TRANSITION_DELAY_MS the state is swapped and the phase becomes FADING_IN;
after another TRANSITION_DELAY_MS it settles back to IDLE. A request that
arrives while a swap is pending replaces the pending target, so the last
request wins and a superseded target is never applied.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import FrozenSet, List, Optional

from PySide6.QtCore import QObject, QTimer, Signal

from controllers.carousel import CarouselController
from controllers.intercept import BackIntercept
from models.entry import Entry, Section, entry_identity
from services.catalog_index import CatalogIndex
from services.filter_service import filter_entries

logger = logging.getLogger(__name__)

# ── Configuration ────────────────────────────────────────────────────────────

# Duration of each half of a transition (fade-out, then fade-in).
TRANSITION_DELAY_MS: int = 300

# ── Types ────────────────────────────────────────────────────────────────────


class NavState(Enum):
    IDLE = "idle"
    BROWSING = "browsing"
    VIEWING = "viewing"


class TransitionPhase(Enum):
    IDLE = "idle"
    FADING_OUT = "fade-out"
    FADING_IN = "fade-in"


class PanelState(Enum):
    CLOSED = "closed"
    OPEN = "open"

    def toggled(self) -> "PanelState":
        return PanelState.CLOSED if self is PanelState.OPEN else PanelState.OPEN


@dataclass(frozen=True)
class FilterState:
    search_text: str = ""
    selected_tags: FrozenSet[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class _Target:
    state: NavState
    section: Optional[Section]
    entry: Optional[Entry] = None
    reset_filters: bool = False


class NavigationController(QObject):
    """
    Owns the current section, the open entry, the section's filter state and
    the menu / filter panel toggles.

    Signals
    -------
    stateChanged()               : section or open entry swapped.
    phaseChanged(object)         : new TransitionPhase.
    filtersChanged()             : search text or tag selection changed.
    panelsChanged()              : menu or filter panel toggled.
    scrollToTopRequested(bool)   : True for a smooth scroll, False for a jump.
    """

    stateChanged = Signal()
    phaseChanged = Signal(object)
    filtersChanged = Signal()
    panelsChanged = Signal()
    scrollToTopRequested = Signal(bool)

    def __init__(
        self,
        index: CatalogIndex,
        carousel: CarouselController,
        intercept: Optional[BackIntercept] = None,
        delay_ms: int = TRANSITION_DELAY_MS,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._index = index
        self._carousel = carousel
        self._intercept = intercept or BackIntercept()
        self._delay_ms = delay_ms

        self._state = NavState.IDLE
        self._section: Optional[Section] = None
        self._entry: Optional[Entry] = None
        self._filters = FilterState()
        self._phase = TransitionPhase.IDLE
        self._menu = PanelState.CLOSED
        self._filter_panel = PanelState.CLOSED
        self._pending: Optional[_Target] = None

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._on_timer)

    # ── Read-only state ───────────────────────────────────────────────────────

    @property
    def state(self) -> NavState:
        return self._state

    @property
    def section(self) -> Optional[Section]:
        return self._section

    @property
    def entry(self) -> Optional[Entry]:
        return self._entry

    @property
    def phase(self) -> TransitionPhase:
        return self._phase

    @property
    def menu(self) -> PanelState:
        return self._menu

    @property
    def filter_panel(self) -> PanelState:
        return self._filter_panel

    @property
    def intercept(self) -> BackIntercept:
        return self._intercept

    @property
    def is_transitioning(self) -> bool:
        return self._pending is not None

    @property
    def filters(self) -> FilterState:
        """Current filter state, with selections outside the tag universe dropped."""
        universe = set(self.available_tags())
        return replace(
            self._filters,
            selected_tags=frozenset(t for t in self._filters.selected_tags if t in universe),
        )

    # ── Navigation ────────────────────────────────────────────────────────────

    def select_section(self, section: Section) -> None:
        """Browse *section* with empty filters and no open entry."""
        logger.debug("select_section(%s)", section.name)
        self._request(_Target(NavState.BROWSING, section, reset_filters=True))

    def open_entry(self, entry: Entry) -> None:
        if self._effective_state() is not NavState.BROWSING:
            logger.debug("open_entry ignored outside BROWSING.")
            return
        self._request(_Target(NavState.VIEWING, self._effective_section(), entry))

    def close_entry(self) -> None:
        if self._effective_state() is not NavState.VIEWING:
            logger.debug("close_entry ignored outside VIEWING.")
            return
        self._intercept.release()
        self._request(_Target(NavState.BROWSING, self._effective_section()))

    def sync_entry(self, identity: str, entry: Entry) -> None:
        """Show the saved version of the open entry; never a navigation change."""
        if self._state is not NavState.VIEWING or self._entry is None:
            return
        if entry_identity(self._entry) != identity:
            return
        self._entry = entry
        self._carousel.set_entry(entry)
        self.stateChanged.emit()

    # ── Filters ───────────────────────────────────────────────────────────────

    def available_tags(self) -> List[str]:
        if self._section is None:
            return []
        return self._index.tags_of(self._section)

    def set_search_text(self, text: str) -> None:
        if text == self._filters.search_text:
            return
        self._filters = replace(self._filters, search_text=text)
        self.filtersChanged.emit()

    def set_tag_selected(self, tag: str, selected: bool) -> None:
        if tag not in self.available_tags():
            logger.debug("Ignoring unknown tag %r.", tag)
            return
        tags = set(self._filters.selected_tags)
        if selected:
            tags.add(tag)
        else:
            tags.discard(tag)
        self._filters = replace(self._filters, selected_tags=frozenset(tags))
        self.filtersChanged.emit()

    def clear_filters(self) -> None:
        self._filters = FilterState()
        self.filtersChanged.emit()

    def visible_entries(self) -> List[Entry]:
        if self._section is None:
            return []
        current = self.filters
        return filter_entries(
            self._index.entries(self._section),
            current.search_text,
            current.selected_tags,
        )

    # ── Panels ────────────────────────────────────────────────────────────────

    def toggle_menu(self) -> None:
        self._menu = self._menu.toggled()
        self.panelsChanged.emit()

    def toggle_filter_panel(self) -> None:
        self._filter_panel = self._filter_panel.toggled()
        self.panelsChanged.emit()

    def close_panels(self) -> None:
        if self._menu is PanelState.CLOSED and self._filter_panel is PanelState.CLOSED:
            return
        self._menu = PanelState.CLOSED
        self._filter_panel = PanelState.CLOSED
        self.panelsChanged.emit()

    # ── Transition machinery ──────────────────────────────────────────────────

    def _effective_state(self) -> NavState:
        return self._pending.state if self._pending is not None else self._state

    def _effective_section(self) -> Optional[Section]:
        return self._pending.section if self._pending is not None else self._section

    def _request(self, target: _Target) -> None:
        self._pending = target
        self._set_phase(TransitionPhase.FADING_OUT)
        self._timer.start(self._delay_ms)

    def _on_timer(self) -> None:
        if self._pending is not None:
            target, self._pending = self._pending, None
            self._swap(target)
            self._set_phase(TransitionPhase.FADING_IN)
            self._timer.start(self._delay_ms)
        else:
            self._set_phase(TransitionPhase.IDLE)

    def _swap(self, target: _Target) -> None:
        leaving_detail = self._state is NavState.VIEWING
        self._state = target.state
        self._section = target.section
        self._entry = target.entry

        if target.reset_filters:
            self._filters = FilterState()
            self.filtersChanged.emit()
        self.close_panels()

        if target.state is NavState.VIEWING:
            self._carousel.set_entry(target.entry)
            self._intercept.register(self.close_entry)
            self.scrollToTopRequested.emit(True)
        else:
            self._intercept.release()
            self._carousel.clear()
            if leaving_detail:
                self.scrollToTopRequested.emit(False)
        self.stateChanged.emit()

    def _set_phase(self, phase: TransitionPhase) -> None:
        if phase is self._phase:
            return
        self._phase = phase
        self.phaseChanged.emit(phase)
