"""
models/entry.py – Data model for a single VR catalogue entry and its section.

Wire format
-----------
Catalogue JSON uses the keys of the hall's existing data files:

    name, russian, control, violation, age, difficulty, tags, screenshots,
    description, trailer, cardHeader, mobileCardHeader, submodes, id

``Entry.from_dict`` / ``Entry.to_dict`` convert between that shape and the
Python model.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)


class RussianSupport(Enum):
    PRESENT = "Присутствует"
    ABSENT = "Отсутствует"
    SUBTITLES_ONLY = "Есть субтитры"


class AgeCategory(Enum):
    CHILDREN = "Дети (6-12 лет)"
    TEENS = "Подростки (12-16 лет)"
    YOUTH = "Юноши (16-18 лет)"
    ADULT = "Взрослые (18 и более лет)"


class Section(Enum):
    """
    Top-level partition of the catalogue.

    Each member's value is a tuple of (display label, resource file name).
    """

    ZONE = ("VR-Зона", "games.json")
    ARENA = ("VR-Арена", "arena.json")
    AUTOSIM = ("Автосимулятор", "autosim.json")
    PS = ("PS игры", "ps.json")

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def resource(self) -> str:
        return self.value[1]


MIN_DIFFICULTY: int = 1
MAX_DIFFICULTY: int = 5


@dataclass(frozen=True)
class Submode:
    """A named game mode shown on arena detail pages."""

    name: str
    description: str = ""
    header: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Submode":
        return cls(
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            header=str(data.get("header") or ""),
        )

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "description": self.description, "header": self.header}


@dataclass(frozen=True)
class Entry:
    """
    Represents one title in a section of the catalogue.

    Attributes
    ----------
    name               : Display title, unique within its section.
    russian_support    : Russian language availability.
    control_modes      : Free-form control schemes ("Сидя", "Стоя", …).
    hazards            : Free-form content warnings.
    age_category       : Target age group.
    difficulty         : Control difficulty, 1–5.
    tags               : Free-form labels used for AND-filtering.
    screenshots        : Ordered screenshot references.
    description        : Long description text.
    trailer            : Trailer reference; empty when the title has none.
    card_header        : Image reference used on grid cards.
    mobile_card_header : Alternate header, used as the trailer poster.
    submodes           : Arena sub-modes (empty for other sections).
    id                 : Server-assigned identity, ``None`` until persisted.
    """

    name: str
    russian_support: RussianSupport = RussianSupport.ABSENT
    control_modes: Tuple[str, ...] = ()
    hazards: Tuple[str, ...] = ()
    age_category: AgeCategory = AgeCategory.ADULT
    difficulty: int = MIN_DIFFICULTY
    tags: Tuple[str, ...] = ()
    screenshots: Tuple[str, ...] = ()
    description: str = ""
    trailer: str = ""
    card_header: str = ""
    mobile_card_header: str = ""
    submodes: Tuple[Submode, ...] = field(default_factory=tuple)
    id: Optional[str] = None

    def __str__(self) -> str:
        return self.name

    @property
    def has_trailer(self) -> bool:
        return bool(self.trailer)

    def with_id(self, entry_id: Optional[str]) -> "Entry":
        return replace(self, id=entry_id)

    # ── Wire conversion ──────────────────────────────────────────────────────

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entry":
        """Build an Entry from a catalogue JSON object, tolerating gaps."""
        if not isinstance(data, dict):
            raise ValueError(f"Catalogue entry must be an object, got {type(data).__name__}.")
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError("Catalogue entry is missing its name.")

        raw_id = data.get("id", data.get("_id"))
        return cls(
            name=name,
            russian_support=_enum_value(RussianSupport, data.get("russian"), RussianSupport.ABSENT),
            control_modes=_str_tuple(data.get("control")),
            hazards=_str_tuple(data.get("violation")),
            age_category=_enum_value(AgeCategory, data.get("age"), AgeCategory.ADULT),
            difficulty=_clamp_difficulty(data.get("difficulty")),
            tags=_str_tuple(data.get("tags")),
            screenshots=_str_tuple(data.get("screenshots")),
            description=str(data.get("description") or ""),
            trailer=str(data.get("trailer") or ""),
            card_header=str(data.get("cardHeader") or ""),
            mobile_card_header=str(data.get("mobileCardHeader") or ""),
            submodes=tuple(
                Submode.from_dict(s) for s in (data.get("submodes") or []) if isinstance(s, dict)
            ),
            id=str(raw_id) if raw_id not in (None, "") else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "name": self.name,
            "russian": self.russian_support.value,
            "control": list(self.control_modes),
            "violation": list(self.hazards),
            "age": self.age_category.value,
            "difficulty": self.difficulty,
            "tags": list(self.tags),
            "screenshots": list(self.screenshots),
            "description": self.description,
            "trailer": self.trailer,
            "cardHeader": self.card_header,
            "mobileCardHeader": self.mobile_card_header,
        }
        if self.submodes:
            body["submodes"] = [s.to_dict() for s in self.submodes]
        if self.id is not None:
            body["id"] = self.id
        return body


@dataclass(frozen=True)
class MediaItem:
    """
    One slot of a detail page carousel.

    Attributes
    ----------
    kind             : "trailer" or "screenshot".
    ref              : Media reference (path or URL).
    screenshot_index : Position in ``Entry.screenshots``; ``None`` for the trailer.
    """

    kind: str
    ref: str
    screenshot_index: Optional[int] = None

    @property
    def is_trailer(self) -> bool:
        return self.kind == "trailer"


def entry_identity(entry: Entry) -> str:
    """Stable key for upserts and uniqueness checks; name-based until persisted."""
    if entry.id is not None:
        return entry.id
    return f"name:{entry.name}"


def unique_strings(values: Iterable[str]) -> Tuple[str, ...]:
    """Drop blanks and duplicates while preserving first-seen order."""
    seen = set()
    out = []
    for v in values:
        if not v or v in seen:
            continue
        seen.add(v)
        out.append(v)
    return tuple(out)


# ── Private helpers ───────────────────────────────────────────────────────────


def _str_tuple(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(v) for v in value if v is not None)


def _enum_value(enum_cls, raw: Any, default):
    try:
        return enum_cls(raw)
    except ValueError:
        logger.debug("Unknown %s value %r, using %s", enum_cls.__name__, raw, default.name)
        return default


def _clamp_difficulty(raw: Any) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return MIN_DIFFICULTY
    return max(MIN_DIFFICULTY, min(MAX_DIFFICULTY, value))
