import threading

import pytest
from PySide6.QtCore import Qt

from controllers.navigation import NavState, TransitionPhase
from main_window import MainWindow
from models.entry import Entry, Section

ZONE = [
    Entry(name="Moss", tags=("Головоломка",), id="1"),
    Entry(name="Saints & Sinners", tags=("Хоррор",), trailer="t.mp4", screenshots=("1.jpg", "2.jpg"), id="2"),
    Entry(name="Myst", tags=("Головоломка",), id="3"),
]


def fake_load(section):
    return list(ZONE) if section is Section.ZONE else []


class GatedPersist:
    """Holds every save on the worker thread until the test opens the gate."""

    def __init__(self):
        self.gate = threading.Event()
        self.started = threading.Event()

    def __call__(self, entry):
        self.started.set()
        self.gate.wait(5)
        return entry.with_id(entry.id or "new")


@pytest.fixture
def gated():
    return GatedPersist()


def _make_window(qtbot, persist):
    w = MainWindow(editor_enabled=True, load=fake_load, persist=persist)
    qtbot.addWidget(w)
    qtbot.waitUntil(lambda: not w._loaders, timeout=3000)
    return w


@pytest.fixture
def window(qtbot):
    w = _make_window(qtbot, lambda e: e.with_id(e.id or "new"))
    yield w
    qtbot.waitUntil(lambda: not w._save_workers, timeout=3000)


@pytest.fixture
def gated_window(qtbot, gated):
    w = _make_window(qtbot, gated)
    yield w
    gated.gate.set()
    qtbot.waitUntil(lambda: not w._save_workers, timeout=6000)


def settle(qtbot, window):
    nav = window.navigation
    qtbot.waitUntil(lambda: not nav.is_transitioning and nav.phase is TransitionPhase.IDLE, timeout=3000)


def test_sections_load_in_background(window):
    assert [e.name for e in window.index.entries(Section.ZONE)] == ["Moss", "Saints & Sinners", "Myst"]
    assert window.index.entries(Section.ARENA) == ()
    assert window.navigation.state is NavState.IDLE


def test_browse_search_and_open(qtbot, window):
    window._section_buttons[Section.ZONE].click()
    settle(qtbot, window)
    assert window._grid.count() == 3

    window._search_bar.setText("sa")
    assert window._grid.count() == 1
    item = window._grid.item(0)
    assert item.data(Qt.ItemDataRole.UserRole).name == "Saints & Sinners"

    window._on_entry_clicked(item)
    settle(qtbot, window)
    assert window.navigation.state is NavState.VIEWING
    assert window.carousel.count == 3
    for _ in range(3):
        window._next_btn.click()
    assert window.carousel.active_index == 0

    window._back_btn.click()
    settle(qtbot, window)
    assert window.navigation.state is NavState.BROWSING
    assert window._search_bar.text() == "sa"


def test_tag_checkbox_filters_grid(qtbot, window):
    window._section_buttons[Section.ZONE].click()
    settle(qtbot, window)
    window._tag_boxes["Хоррор"].setChecked(True)
    assert window._grid.count() == 1

    window._section_buttons[Section.ARENA].click()
    settle(qtbot, window)
    assert window.navigation.filters.selected_tags == frozenset()
    assert window._search_bar.text() == ""


def test_editor_save_writes_back(qtbot, window):
    window._section_buttons[Section.ZONE].click()
    settle(qtbot, window)
    window._on_add_entry()
    dialog = window._dialog
    assert dialog is not None
    dialog._name.setText("Vacation Simulator")
    dialog._save_btn.click()
    qtbot.waitUntil(lambda: not window.editor.is_open, timeout=3000)
    assert window.index.entries(Section.ZONE)[-1].name == "Vacation Simulator"
    assert window._grid.count() == 4


def _open_detail(qtbot, window, name):
    for i in range(window._grid.count()):
        item = window._grid.item(i)
        if item.data(Qt.ItemDataRole.UserRole).name == name:
            window._on_entry_clicked(item)
            settle(qtbot, window)
            return
    raise AssertionError(f"{name} is not in the grid")


def test_cancelled_save_still_lands_and_spares_the_next_edit(qtbot, gated_window, gated):
    window = gated_window
    window._section_buttons[Section.ZONE].click()
    settle(qtbot, window)
    _open_detail(qtbot, window, "Moss")

    window._on_edit_entry()
    first = window._dialog
    first._name.setText("Moss 2")
    first._save_btn.click()
    qtbot.waitUntil(gated.started.is_set, timeout=3000)
    first.reject()

    window._back_btn.click()
    settle(qtbot, window)
    _open_detail(qtbot, window, "Myst")
    window._on_edit_entry()
    second = window._dialog

    gated.gate.set()
    qtbot.waitUntil(lambda: not window._save_workers, timeout=3000)

    assert [(e.id, e.name) for e in window.index.entries(Section.ZONE)] == [
        ("1", "Moss 2"),
        ("2", "Saints & Sinners"),
        ("3", "Myst"),
    ]
    assert window.editor.is_open
    assert window.editor.draft.name == "Myst"
    assert window._dialog is second
    assert second.isVisible()


def test_section_switch_during_save(qtbot, gated_window, gated):
    window = gated_window
    window._section_buttons[Section.ZONE].click()
    settle(qtbot, window)
    window._on_add_entry()
    dialog = window._dialog
    assert not dialog.isModal()
    dialog._name.setText("Vacation Simulator")
    dialog._save_btn.click()
    qtbot.waitUntil(gated.started.is_set, timeout=3000)

    window._section_buttons[Section.ARENA].click()
    settle(qtbot, window)
    assert window.navigation.section is Section.ARENA

    gated.gate.set()
    qtbot.waitUntil(lambda: not window._save_workers, timeout=3000)

    assert window.index.entries(Section.ZONE)[-1].name == "Vacation Simulator"
    assert window.index.entries(Section.ARENA) == ()
    assert window.navigation.section is Section.ARENA
    assert window.navigation.state is NavState.BROWSING
    assert not window.editor.is_open
    assert window._dialog is None
