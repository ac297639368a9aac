import pytest

from controllers.editor import (
    FIXED_CONTROLS,
    EntryEditor,
    OptionGroup,
    merge_options,
    split_options,
)
from models.entry import AgeCategory, Entry, RussianSupport, Section
from services.catalog_index import CatalogIndex
from services.exceptions import DuplicateNameError, SaveError, ValidationError


class FakeBackend:
    """Stands in for the REST collaborator; assigns ids on create."""

    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []
        self._next_id = 100

    def __call__(self, entry):
        self.calls.append(entry)
        if self.fail:
            raise SaveError("server unavailable")
        if entry.id is None:
            self._next_id += 1
            return entry.with_id(str(self._next_id))
        return entry


@pytest.fixture
def catalog():
    idx = CatalogIndex()
    idx.load(Section.ZONE, [Entry(name="Alpha", id="1"), Entry(name="Beta", id="2")])
    return idx


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def editor(catalog, backend):
    return EntryEditor(catalog, backend)


def test_new_draft_defaults(editor):
    draft = editor.open(Section.ZONE)
    assert draft.russian_support is RussianSupport.ABSENT
    assert draft.age_category is AgeCategory.ADULT
    assert draft.difficulty == 1
    assert draft.controls == OptionGroup()
    assert draft.hazards == OptionGroup()
    assert draft.tags == [] and draft.screenshots == []
    assert draft.name == "" and draft.description == ""
    assert draft.identity is None


def test_split_and_merge_round_trip(catalog, backend):
    editor = EntryEditor(catalog, backend, fixed_controls=("Sitting", "Standing"))
    entry = Entry(name="Alpha", id="1", control_modes=("Sitting", "Custom Wand"))
    draft = editor.open(Section.ZONE, entry)
    assert draft.controls.selected == ["Sitting"]
    assert draft.controls.other_active
    assert draft.controls.other_text == "Custom Wand"

    saved = editor.save()
    assert saved.control_modes == ("Sitting", "Custom Wand")


def test_merge_trims_and_drops_blanks():
    group = OptionGroup(selected=["Сидя"], other_active=True, other_text=" Руль ,, , Педали ,")
    assert merge_options(group) == ("Сидя", "Руль", "Педали")


def test_inactive_other_is_ignored():
    group = OptionGroup(selected=["Сидя"], other_active=False, other_text="Руль")
    assert merge_options(group) == ("Сидя",)


def test_blank_other_is_ignored():
    group = OptionGroup(selected=[], other_active=True, other_text="   ")
    assert merge_options(group) == ()


def test_merge_never_duplicates():
    group = OptionGroup(selected=["Стоя"], other_active=True, other_text="Стоя, Стоя")
    assert merge_options(group) == ("Стоя",)


def test_split_without_unknown_values():
    group = split_options(["Стоя"], FIXED_CONTROLS)
    assert group == OptionGroup(selected=["Стоя"], other_active=False, other_text="")


def test_option_toggle():
    group = OptionGroup()
    group.toggle("Сидя", True)
    group.toggle("Сидя", True)
    assert group.selected == ["Сидя"]
    group.toggle("Сидя", False)
    assert group.selected == []


def test_rename_onto_other_entry_fails(editor, catalog, backend):
    draft = editor.open(Section.ZONE, catalog.find(Section.ZONE, "1"))
    draft.name = "Beta"
    with pytest.raises(DuplicateNameError):
        editor.save()
    assert backend.calls == []
    assert editor.is_open
    assert editor.draft.name == "Beta"
    assert isinstance(editor.last_error, DuplicateNameError)


def test_keeping_own_name_succeeds(editor, catalog):
    editor.open(Section.ZONE, catalog.find(Section.ZONE, "1"))
    saved = editor.save()
    assert saved.name == "Alpha"
    assert not editor.is_open


def test_new_entry_with_taken_name_fails(editor):
    draft = editor.open(Section.ZONE)
    draft.name = "Alpha"
    with pytest.raises(DuplicateNameError):
        editor.save()


def test_uniqueness_is_case_sensitive(editor):
    editor.validate_uniqueness(Section.ZONE, "alpha", None)
    with pytest.raises(DuplicateNameError):
        editor.validate_uniqueness(Section.ZONE, "Alpha", None)


def test_uniqueness_is_scoped_to_section(editor):
    editor.validate_uniqueness(Section.ARENA, "Alpha", None)


def test_empty_name_is_rejected(editor, backend):
    editor.open(Section.ZONE)
    with pytest.raises(ValidationError):
        editor.save()
    assert backend.calls == []


def test_create_appends_canonical_entry(editor, catalog):
    draft = editor.open(Section.ZONE)
    draft.name = "Gamma"
    draft.tags = ["Новое", " ", "Новое"]
    saved = editor.save()
    assert saved.id == "101"
    assert saved.tags == ("Новое",)
    assert catalog.entries(Section.ZONE)[-1] == saved
    assert not editor.is_open


def test_update_replaces_in_place(editor, catalog):
    draft = editor.open(Section.ZONE, catalog.find(Section.ZONE, "2"))
    draft.name = "Beta Prime"
    editor.save()
    assert [e.name for e in catalog.entries(Section.ZONE)] == ["Alpha", "Beta Prime"]


def test_renaming_unpersisted_entry_replaces_it(catalog, backend):
    catalog.load(Section.PS, [Entry(name="Draft Game")])
    editor = EntryEditor(catalog, backend)
    draft = editor.open(Section.PS, catalog.entries(Section.PS)[0])
    draft.name = "Final Game"
    editor.save()
    assert [(e.name, e.id) for e in catalog.entries(Section.PS)] == [("Final Game", "101")]


def test_collaborator_failure_keeps_draft(catalog):
    editor = EntryEditor(catalog, FakeBackend(fail=True))
    draft = editor.open(Section.ZONE)
    draft.name = "Gamma"
    with pytest.raises(SaveError):
        editor.save()
    assert editor.is_open
    assert editor.draft is draft
    assert isinstance(editor.last_error, SaveError)
    assert [e.name for e in catalog.entries(Section.ZONE)] == ["Alpha", "Beta"]


def test_split_save_path_writes_to_session_section(editor, catalog, backend):
    draft = editor.open(Section.ZONE)
    draft.name = "Gamma"
    pending = editor.begin_save()
    assert pending.section is Section.ZONE
    assert pending.replacing is None
    assert [e.name for e in catalog.entries(Section.ZONE)] == ["Alpha", "Beta"]

    assert editor.apply_saved(pending, backend(pending.payload))
    assert catalog.entries(Section.ZONE)[-1].name == "Gamma"
    assert catalog.entries(Section.ARENA) == ()
    assert not editor.is_open


def test_result_after_cancel_still_lands(editor, catalog, backend):
    draft = editor.open(Section.ZONE, catalog.find(Section.ZONE, "1"))
    draft.name = "Alpha 2"
    pending = editor.begin_save()
    editor.close()

    assert not editor.apply_saved(pending, backend(pending.payload))
    assert [e.name for e in catalog.entries(Section.ZONE)] == ["Alpha 2", "Beta"]


def test_late_result_does_not_touch_newer_session(editor, catalog, backend):
    first = editor.open(Section.ZONE, catalog.find(Section.ZONE, "1"))
    first.name = "Alpha 2"
    pending = editor.begin_save()

    second = editor.open(Section.ZONE, catalog.find(Section.ZONE, "2"))
    assert not editor.owns(pending)
    assert not editor.apply_saved(pending, backend(pending.payload))

    assert [(e.id, e.name) for e in catalog.entries(Section.ZONE)] == [("1", "Alpha 2"), ("2", "Beta")]
    assert editor.is_open
    assert editor.draft is second


def test_late_failure_does_not_mark_newer_session(editor, catalog):
    editor.open(Section.ZONE, catalog.find(Section.ZONE, "1"))
    pending = editor.begin_save()
    editor.open(Section.ZONE, catalog.find(Section.ZONE, "2"))
    editor.fail(SaveError("timeout"), pending)
    assert editor.last_error is None


def test_prepare_save_requires_open_editor(editor):
    with pytest.raises(ValidationError):
        editor.prepare_save()
