"""
controllers/editor.py – Draft, validation and save flow for one catalogue entry.

The save path is split so the window can run the network call on a worker
thread while all index mutations stay on the GUI thread:

    pending = editor.begin_save(draft)                # validation + merge, no write
    saved   = persistence.save_entry(pending.payload) # worker thread
    editor.apply_saved(pending, saved)                # back on the GUI thread

A PendingSave remembers the section and record it was prepared for, so a
result that arrives after the dialog was cancelled or another entry was
opened still lands on the right record. ``save()`` chains the three
synchronously.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from models.entry import (
    AgeCategory,
    Entry,
    MIN_DIFFICULTY,
    RussianSupport,
    Section,
    Submode,
    entry_identity,
    unique_strings,
)
from services import persistence_service
from services.catalog_index import CatalogIndex
from services.exceptions import DuplicateNameError, SaveError, ValidationError

logger = logging.getLogger(__name__)

# ── Fixed options ────────────────────────────────────────────────────────────

FIXED_CONTROLS: Tuple[str, ...] = ("Сидя", "Стоя", "Телепорт", "Отклонение стиков")

FIXED_HAZARDS: Tuple[str, ...] = (
    "Жестокость",
    "Много крови",
    "Взрослый юмор",
    "Распитие алкогольных напитков",
    "Курение",
    "Ненормативная лексика",
)

SaveCallable = Callable[[Entry], Entry]


@dataclass(frozen=True)
class PendingSave:
    """A validated payload plus where its result must be written."""

    section: Section
    replacing: Optional[str]
    payload: Entry
    session: int


@dataclass
class OptionGroup:
    """Fixed toggles plus the free-text "other" field of one multi-choice question."""

    selected: List[str] = field(default_factory=list)
    other_active: bool = False
    other_text: str = ""

    def toggle(self, option: str, checked: bool) -> None:
        if checked and option not in self.selected:
            self.selected.append(option)
        elif not checked and option in self.selected:
            self.selected.remove(option)


@dataclass
class EntryDraft:
    """Mutable editor state for one entry."""

    name: str = ""
    russian_support: RussianSupport = RussianSupport.ABSENT
    controls: OptionGroup = field(default_factory=OptionGroup)
    hazards: OptionGroup = field(default_factory=OptionGroup)
    age_category: AgeCategory = AgeCategory.ADULT
    difficulty: int = MIN_DIFFICULTY
    tags: List[str] = field(default_factory=list)
    screenshots: List[str] = field(default_factory=list)
    description: str = ""
    trailer: str = ""
    card_header: str = ""
    mobile_card_header: str = ""
    submodes: List[Submode] = field(default_factory=list)
    id: Optional[str] = None
    # Identity of the record being edited; None for a new entry.
    identity: Optional[str] = None


def split_options(values: Iterable[str], fixed: Sequence[str]) -> OptionGroup:
    """Known options become toggles; everything else is joined into "other"."""
    values = list(values)
    other = ", ".join(v for v in values if v not in fixed)
    return OptionGroup(
        selected=[v for v in values if v in fixed],
        other_active=bool(other),
        other_text=other,
    )


def merge_options(group: OptionGroup) -> Tuple[str, ...]:
    """Selected toggles plus the comma-separated "other" values, blanks dropped."""
    values = list(group.selected)
    if group.other_active and group.other_text.strip():
        values.extend(s.strip() for s in group.other_text.split(","))
    return unique_strings(v.strip() for v in values)


class EntryEditor:
    """
    Edits one entry at a time against a CatalogIndex.

    Parameters
    ----------
    index          : The application's catalogue index.
    persist        : Create-or-update callable; defaults to the REST collaborator.
    fixed_controls : Control modes offered as toggles.
    fixed_hazards  : Hazards offered as toggles.
    """

    def __init__(
        self,
        index: CatalogIndex,
        persist: Optional[SaveCallable] = None,
        fixed_controls: Sequence[str] = FIXED_CONTROLS,
        fixed_hazards: Sequence[str] = FIXED_HAZARDS,
    ) -> None:
        self._index = index
        self.fixed_controls = tuple(fixed_controls)
        self.fixed_hazards = tuple(fixed_hazards)
        self._persist: SaveCallable = persist or persistence_service.save_entry
        self._section: Optional[Section] = None
        self._draft: Optional[EntryDraft] = None
        self._last_error: Optional[Exception] = None
        self._session = 0

    @property
    def is_open(self) -> bool:
        return self._draft is not None

    @property
    def draft(self) -> Optional[EntryDraft]:
        return self._draft

    @property
    def section(self) -> Optional[Section]:
        return self._section

    @property
    def last_error(self) -> Optional[Exception]:
        return self._last_error

    def open(self, section: Section, entry: Optional[Entry] = None) -> EntryDraft:
        """Start editing *entry* in *section*, or a blank new entry."""
        self._session += 1
        self._section = section
        self._last_error = None
        if entry is None:
            self._draft = EntryDraft()
        else:
            self._draft = EntryDraft(
                name=entry.name,
                russian_support=entry.russian_support,
                controls=split_options(entry.control_modes, self.fixed_controls),
                hazards=split_options(entry.hazards, self.fixed_hazards),
                age_category=entry.age_category,
                difficulty=entry.difficulty,
                tags=list(entry.tags),
                screenshots=list(entry.screenshots),
                description=entry.description,
                trailer=entry.trailer,
                card_header=entry.card_header,
                mobile_card_header=entry.mobile_card_header,
                submodes=list(entry.submodes),
                id=entry.id,
                identity=entry_identity(entry),
            )
        return self._draft

    def close(self) -> None:
        self._draft = None
        self._section = None
        self._last_error = None

    def build_entry(self, draft: EntryDraft) -> Entry:
        return Entry(
            name=draft.name.strip(),
            russian_support=draft.russian_support,
            control_modes=merge_options(draft.controls),
            hazards=merge_options(draft.hazards),
            age_category=draft.age_category,
            difficulty=draft.difficulty,
            tags=unique_strings(t.strip() for t in draft.tags),
            screenshots=tuple(s.strip() for s in draft.screenshots if s.strip()),
            description=draft.description,
            trailer=draft.trailer.strip(),
            card_header=draft.card_header.strip(),
            mobile_card_header=draft.mobile_card_header.strip(),
            submodes=tuple(draft.submodes),
            id=draft.id,
        )

    def validate_uniqueness(self, section: Section, name: str, identity: Optional[str]) -> None:
        """
        Raise DuplicateNameError when a different entry of *section* already
        has exactly *name*. The entry identified by *identity* may keep its name.
        """
        for other in self._index.entries(section):
            if identity is not None and entry_identity(other) == identity:
                continue
            if other.name == name:
                raise DuplicateNameError(name)

    def prepare_save(self, draft: Optional[EntryDraft] = None) -> Entry:
        """Validate the draft and build the payload; nothing is written."""
        if draft is not None and self._section is not None:
            self._draft = draft
        draft = self._draft
        if draft is None or self._section is None:
            raise ValidationError("The editor is not open.")
        payload = self.build_entry(draft)
        try:
            if not payload.name:
                raise ValidationError("The name must not be empty.")
            self.validate_uniqueness(self._section, payload.name, draft.identity)
        except ValidationError as exc:
            self._last_error = exc
            raise
        return payload

    def begin_save(self, draft: Optional[EntryDraft] = None) -> PendingSave:
        """Validate the draft and capture the section and record the result belongs to."""
        payload = self.prepare_save(draft)
        return PendingSave(self._section, self._draft.identity, payload, self._session)

    def owns(self, pending: PendingSave) -> bool:
        """True while the editing session that started *pending* is still open."""
        return self.is_open and pending.session == self._session

    def apply_saved(self, pending: PendingSave, saved: Entry) -> bool:
        """
        Write the server's canonical entry into the section the save was
        prepared for. Closes the editor only when it still shows that session;
        returns whether it did.
        """
        self._index.upsert(pending.section, saved, replacing=pending.replacing)
        logger.info("Saved '%s' into %s.", saved.name, pending.section.name)
        if not self.owns(pending):
            return False
        self.close()
        return True

    def fail(self, exc: Exception, pending: Optional[PendingSave] = None) -> None:
        """Record a failed save; the draft stays open for another attempt."""
        logger.warning("Save failed: %s", exc)
        if pending is None or self.owns(pending):
            self._last_error = exc

    def save(self, draft: Optional[EntryDraft] = None) -> Entry:
        """
        Validate, persist and write back.

        Raises
        ------
        ValidationError
            Duplicate or empty name; nothing is sent.
        SaveError
            The collaborator failed; the editor stays open.
        """
        pending = self.begin_save(draft)
        try:
            saved = self._persist(pending.payload)
        except SaveError as exc:
            self.fail(exc, pending)
            raise
        self.apply_saved(pending, saved)
        return saved
