"""
workers/catalog_worker.py – Background QThread workers for collaborator calls.

Signal contract
---------------
SectionLoader
  loaded(object, object) : (Section, List[Entry]); a failed section arrives
                           as an empty list.
SaveWorker
  saved(object, object)  : (PendingSave, canonical Entry returned by the server)
  error(object, str)     : (PendingSave, user-friendly error message)

Workers never touch the CatalogIndex. Their signals are delivered to the GUI
thread through queued connections, and the receiving slots apply the results.
"""

import logging
from typing import Callable, Optional

from PySide6.QtCore import QThread, Signal

from controllers.editor import PendingSave
from models.entry import Entry, Section
from services import catalog_service, persistence_service
from services.exceptions import CatalogError, SaveError

logger = logging.getLogger(__name__)


class SectionLoader(QThread):
    """Loads one section's catalogue on a background thread."""

    loaded = Signal(object, object)  # (Section, List[Entry])

    def __init__(
        self,
        section: Section,
        load: Callable[[Section], list] = catalog_service.load_section,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self._section = section
        self._load = load

    @property
    def section(self) -> Section:
        return self._section

    def run(self) -> None:
        try:
            entries = self._load(self._section)
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected error loading %s", self._section.name)
            entries = []
        self.loaded.emit(self._section, entries)


class SaveWorker(QThread):
    """
    Sends one prepared entry to the persistence collaborator. The PendingSave
    travels with both signals so the receiver knows where the result belongs.

    Instantiate, connect signals, then call start().
    """

    saved = Signal(object, object)  # (PendingSave, canonical Entry)
    error = Signal(object, str)     # (PendingSave, user-facing error message)

    def __init__(
        self,
        pending: PendingSave,
        persist: Optional[Callable[[Entry], Entry]] = None,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self._pending = pending
        self._persist = persist or persistence_service.save_entry

    def run(self) -> None:
        try:
            result = self._persist(self._pending.payload)
        except SaveError as exc:
            self.error.emit(self._pending, f"Save failed:\n{exc}")
        except CatalogError as exc:
            self.error.emit(self._pending, f"Error:\n{exc}")
        except Exception as exc:  # noqa: BLE001
            # Catch-all so the worker thread never silently dies.
            self.error.emit(self._pending, f"Unexpected error:\n{type(exc).__name__}: {exc}")
        else:
            self.saved.emit(self._pending, result)
