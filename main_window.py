"""
main_window.py – VR Catalog main window.

Layout
------
  ┌──────────────────────────────────────────────────────┐
  │  [☰] VR Каталог   [Зона] [Арена] [Авто] [PS]  [Ред.] │  ← HEADER / MENU
  ├──────────────────────────────────────────────────────┤
  │  intro page                                          │
  │  ── or ──                                            │
  │  [Search bar]  [Фильтры]  [+ Добавить]               │  ← BROWSE
  │  tag filter panel (toggleable)                       │
  │  grid of entry cards (QListWidget, icon mode)        │
  │  ── or ──                                            │
  │  ← Назад, title, header, description                 │  ← DETAIL
  │  carousel  ❮ [ trailer / screenshot ] ❯              │
  │  thumbnail strip                                     │
  │  info block, submodes, [Редактировать]               │
  ├──────────────────────────────────────────────────────┤
  │  Status bar                                          │
  └──────────────────────────────────────────────────────┘

All behaviour lives in the controllers; this module renders their state and
forwards user input to them.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Dict, List, Optional

from PySide6.QtCore import QEasingCurve, QPropertyAnimation, QSize, Qt, QUrl, Slot
from PySide6.QtGui import QDesktopServices, QFont, QIcon, QPixmap
from PySide6.QtWidgets import (
    QApplication,
    QCheckBox,
    QFrame,
    QGraphicsOpacityEffect,
    QGridLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListView,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QScrollArea,
    QSizePolicy,
    QStackedWidget,
    QStatusBar,
    QVBoxLayout,
    QWidget,
)

from controllers.carousel import CarouselController
from controllers.editor import EntryDraft, EntryEditor, PendingSave
from controllers.intercept import QtBackIntercept
from controllers.navigation import (
    TRANSITION_DELAY_MS,
    NavigationController,
    NavState,
    PanelState,
    TransitionPhase,
)
from editor_dialog import EntryEditorDialog
from models.entry import Entry, Section
from services import catalog_service
from services.catalog_index import CatalogIndex
from services.exceptions import SaveError, ValidationError
from workers.catalog_worker import SaveWorker, SectionLoader

logger = logging.getLogger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────────

# "1" turns on the create / edit controls.
EDITOR_ENABLED: bool = os.environ.get("VRCATALOG_EDITOR", "0") == "1"

# External editing deployment, opened in the browser from the header.
EXTERNAL_EDITOR_URL: str = os.environ.get("VRCATALOG_EDITOR_URL", "http://192.168.93.254:5173/")

_PAGE_INTRO, _PAGE_BROWSE, _PAGE_DETAIL = range(3)

# Opacity of the content area while a transition fades out.
_FADED_OPACITY: float = 0.25

# Entry card geometry in the browse grid.
_CARD_ICON_SIZE = QSize(240, 135)
_CARD_GRID_SIZE = QSize(260, 185)
_TAG_COLUMNS: int = 4

# ── Colour palette ────────────────────────────────────────────────────────────
_BG         = "#0f1117"
_BG2        = "#1a1d27"
_BG3        = "#22263a"
_ACCENT     = "#4f8ef7"
_ACCENT2    = "#7c5af0"
_TEXT       = "#e2e8f0"
_TEXT_DIM   = "#718096"
_BORDER     = "#2d3748"

_STYLESHEET = f"""
QMainWindow, QWidget {{
    background-color: {_BG};
    color: {_TEXT};
    font-family: 'Segoe UI', sans-serif;
    font-size: 13px;
}}

/* ── Header ─────────────────────────────────────────────────────────────── */
QLabel#brand {{
    font-size: 18px;
    font-weight: bold;
    color: {_TEXT};
}}
QPushButton#sectionBtn:checked {{
    background-color: {_ACCENT};
    border-color: {_ACCENT};
    color: white;
}}

/* ── Search bar ─────────────────────────────────────────────────────────── */
QLineEdit#searchBar {{
    background-color: {_BG2};
    border: 1px solid {_BORDER};
    border-radius: 6px;
    padding: 8px 14px;
    font-size: 14px;
    selection-background-color: {_ACCENT};
}}
QLineEdit#searchBar:focus {{
    border-color: {_ACCENT};
}}

/* ── Entry grid ─────────────────────────────────────────────────────────── */
QListWidget#entryGrid {{
    background-color: {_BG2};
    border: 1px solid {_BORDER};
    border-radius: 6px;
    outline: none;
    padding: 8px;
}}
QListWidget#entryGrid::item {{
    padding: 8px;
    border-radius: 6px;
}}
QListWidget#entryGrid::item:hover {{
    background-color: {_BG3};
}}

/* ── Detail page ────────────────────────────────────────────────────────── */
QLabel#detailTitle {{
    font-size: 22px;
    font-weight: bold;
}}
QLabel#mediaView {{
    background-color: {_BG2};
    border: 1px solid {_BORDER};
    border-radius: 8px;
    color: {_TEXT_DIM};
}}
QPushButton#thumb:checked {{
    border: 2px solid {_ACCENT};
}}

/* ── Group boxes ────────────────────────────────────────────────────────── */
QGroupBox {{
    background-color: {_BG2};
    border: 1px solid {_BORDER};
    border-radius: 8px;
    margin-top: 18px;
    padding: 12px 10px 10px 10px;
    font-weight: bold;
    color: {_TEXT_DIM};
}}
QGroupBox::title {{
    subcontrol-origin: margin;
    subcontrol-position: top left;
    padding: 0 6px;
    left: 10px;
}}

/* ── Buttons ────────────────────────────────────────────────────────────── */
QPushButton {{
    background-color: {_BG3};
    border: 1px solid {_BORDER};
    border-radius: 5px;
    padding: 7px 14px;
}}
QPushButton:hover {{
    background-color: {_ACCENT};
    border-color: {_ACCENT};
    color: white;
}}
QPushButton:pressed {{
    background-color: {_ACCENT2};
}}
QPushButton#primaryBtn {{
    background: qlineargradient(x1:0, y1:0, x2:1, y2:0,
        stop:0 {_ACCENT}, stop:1 {_ACCENT2});
    color: white;
    font-weight: bold;
    border: none;
    border-radius: 8px;
}}
QPushButton#primaryBtn:disabled {{
    background: {_BG3};
    color: {_TEXT_DIM};
}}

/* ── Status bar ─────────────────────────────────────────────────────────── */
QStatusBar {{
    background: {_BG2};
    color: {_TEXT_DIM};
    border-top: 1px solid {_BORDER};
    font-size: 11px;
}}
"""


class MainWindow(QMainWindow):
    """Primary application window."""

    def __init__(
        self,
        *,
        editor_enabled: bool = EDITOR_ENABLED,
        load: Callable[[Section], List[Entry]] = catalog_service.load_section,
        persist: Optional[Callable[[Entry], Entry]] = None,
        autoload: bool = True,
    ) -> None:
        super().__init__()
        self.setWindowTitle("VR Каталог")
        self.setMinimumSize(1020, 700)
        self.resize(1200, 800)
        self.setStyleSheet(_STYLESHEET)

        # State
        self._editor_enabled = editor_enabled
        self._load = load
        self._persist = persist
        self._index = CatalogIndex()
        self._carousel = CarouselController(self)
        self._intercept = QtBackIntercept(QApplication.instance(), self, self)
        self._nav = NavigationController(self._index, self._carousel, self._intercept, parent=self)
        self._editor = EntryEditor(self._index, persist)
        self._loaders: List[SectionLoader] = []
        self._save_workers: List[SaveWorker] = []
        self._dialog: Optional[EntryEditorDialog] = None
        self._section_buttons: Dict[Section, QPushButton] = {}
        self._tag_boxes: Dict[str, QCheckBox] = {}
        self._scroll_anim: Optional[QPropertyAnimation] = None

        self._build_ui()
        self._connect_signals()
        self._render_state()
        if autoload:
            self._set_status("Загрузка каталогов…")
            self._on_load_catalogues()

    # ── Accessors (tests, scripting) ──────────────────────────────────────────

    @property
    def index(self) -> CatalogIndex:
        return self._index

    @property
    def navigation(self) -> NavigationController:
        return self._nav

    @property
    def carousel(self) -> CarouselController:
        return self._carousel

    @property
    def editor(self) -> EntryEditor:
        return self._editor

    # ── UI construction ───────────────────────────────────────────────────────

    def _build_ui(self) -> None:
        root = QWidget()
        self.setCentralWidget(root)
        root_layout = QVBoxLayout(root)
        root_layout.setContentsMargins(24, 16, 24, 12)
        root_layout.setSpacing(12)

        root_layout.addLayout(self._build_header())

        self._stack = QStackedWidget()
        self._fade = QGraphicsOpacityEffect(self._stack)
        self._fade.setOpacity(1.0)
        self._stack.setGraphicsEffect(self._fade)
        self._stack.addWidget(self._build_intro())
        self._stack.addWidget(self._build_browse())
        self._stack.addWidget(self._build_detail())
        root_layout.addWidget(self._stack, stretch=1)

        self._status_bar = QStatusBar()
        self.setStatusBar(self._status_bar)

    def _build_header(self) -> QHBoxLayout:
        top = QHBoxLayout()
        top.setSpacing(10)

        self._menu_btn = QPushButton("☰")
        self._menu_btn.setFixedWidth(44)
        brand = QLabel("VR Каталог")
        brand.setObjectName("brand")
        top.addWidget(self._menu_btn)
        top.addWidget(brand)

        self._menu = QWidget()
        menu_layout = QHBoxLayout(self._menu)
        menu_layout.setContentsMargins(0, 0, 0, 0)
        for section in Section:
            btn = QPushButton(section.label)
            btn.setObjectName("sectionBtn")
            btn.setCheckable(True)
            btn.clicked.connect(lambda _checked=False, s=section: self._on_section_clicked(s))
            self._section_buttons[section] = btn
            menu_layout.addWidget(btn)
        self._external_btn = QPushButton("Редактирование ↗")
        menu_layout.addWidget(self._external_btn)
        top.addWidget(self._menu, stretch=1)
        return top

    def _build_intro(self) -> QWidget:
        w = QWidget()
        layout = QVBoxLayout(w)
        layout.addStretch()
        title = QLabel("Список игр VR для ознакомления")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        title.setFont(QFont("Segoe UI", 24, QFont.Bold))
        hint = QLabel("Выберите раздел в меню сверху")
        hint.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(title)
        layout.addWidget(hint)
        layout.addStretch()
        return w

    def _build_browse(self) -> QWidget:
        w = QWidget()
        layout = QVBoxLayout(w)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(10)

        row = QHBoxLayout()
        self._search_bar = QLineEdit()
        self._search_bar.setObjectName("searchBar")
        self._search_bar.setPlaceholderText("Поиск по названию...")
        self._search_bar.setClearButtonEnabled(True)
        self._search_bar.setMinimumHeight(38)
        self._filter_btn = QPushButton("Фильтры")
        self._filter_btn.setCheckable(True)
        self._add_btn = QPushButton("+ Добавить")
        self._add_btn.setVisible(self._editor_enabled)
        row.addWidget(self._search_bar, 1)
        row.addWidget(self._filter_btn)
        row.addWidget(self._add_btn)
        layout.addLayout(row)

        self._tag_panel = QGroupBox("Фильтр по тегам")
        self._tag_layout = QGridLayout(self._tag_panel)
        self._tag_layout.setHorizontalSpacing(16)
        self._tag_panel.setVisible(False)
        layout.addWidget(self._tag_panel)

        self._grid = QListWidget()
        self._grid.setObjectName("entryGrid")
        self._grid.setViewMode(QListView.ViewMode.IconMode)
        self._grid.setResizeMode(QListView.ResizeMode.Adjust)
        self._grid.setMovement(QListView.Movement.Static)
        self._grid.setIconSize(_CARD_ICON_SIZE)
        self._grid.setGridSize(_CARD_GRID_SIZE)
        self._grid.setWordWrap(True)
        layout.addWidget(self._grid, stretch=1)

        self._empty_label = QLabel("Ничего не найдено")
        self._empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._empty_label.setVisible(False)
        layout.addWidget(self._empty_label)
        return w

    def _build_detail(self) -> QWidget:
        self._detail_scroll = QScrollArea()
        self._detail_scroll.setWidgetResizable(True)
        self._detail_scroll.setFrameShape(QFrame.Shape.NoFrame)

        page = QWidget()
        layout = QVBoxLayout(page)
        layout.setSpacing(12)

        top = QHBoxLayout()
        self._back_btn = QPushButton("← Назад")
        self._edit_btn = QPushButton("Редактировать")
        self._edit_btn.setObjectName("primaryBtn")
        self._edit_btn.setVisible(self._editor_enabled)
        top.addWidget(self._back_btn)
        top.addStretch()
        top.addWidget(self._edit_btn)
        layout.addLayout(top)

        self._detail_title = QLabel()
        self._detail_title.setObjectName("detailTitle")
        layout.addWidget(self._detail_title)

        self._detail_header = QLabel()
        self._detail_header.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self._detail_header)

        self._detail_description = QLabel()
        self._detail_description.setWordWrap(True)
        layout.addWidget(self._detail_description)

        # ── Carousel ───────────────────────────────────────────────────────
        self._carousel_box = QWidget()
        carousel_layout = QVBoxLayout(self._carousel_box)
        carousel_layout.setContentsMargins(0, 0, 0, 0)
        view_row = QHBoxLayout()
        self._prev_btn = QPushButton("❮")
        self._next_btn = QPushButton("❯")
        self._media_view = QLabel()
        self._media_view.setObjectName("mediaView")
        self._media_view.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._media_view.setMinimumHeight(360)
        self._media_view.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        view_row.addWidget(self._prev_btn)
        view_row.addWidget(self._media_view, 1)
        view_row.addWidget(self._next_btn)
        carousel_layout.addLayout(view_row)

        self._trailer_btn = QPushButton("▶  Смотреть трейлер")
        self._trailer_btn.setVisible(False)
        carousel_layout.addWidget(self._trailer_btn, alignment=Qt.AlignmentFlag.AlignHCenter)

        self._thumb_strip = QScrollArea()
        self._thumb_strip.setWidgetResizable(True)
        self._thumb_strip.setFixedHeight(96)
        self._thumb_strip.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self._thumb_container = QWidget()
        self._thumb_layout = QHBoxLayout(self._thumb_container)
        self._thumb_layout.setContentsMargins(4, 4, 4, 4)
        self._thumb_strip.setWidget(self._thumb_container)
        carousel_layout.addWidget(self._thumb_strip)
        layout.addWidget(self._carousel_box)

        # ── Info block ─────────────────────────────────────────────────────
        info = QGroupBox("Информация")
        info_layout = QVBoxLayout(info)
        self._info_label = QLabel()
        self._info_label.setWordWrap(True)
        self._info_label.setTextFormat(Qt.TextFormat.RichText)
        info_layout.addWidget(self._info_label)
        layout.addWidget(info)

        self._submodes_box = QGroupBox("Подрежимы")
        self._submodes_layout = QGridLayout(self._submodes_box)
        layout.addWidget(self._submodes_box)

        layout.addStretch()
        self._detail_scroll.setWidget(page)
        return self._detail_scroll

    # ── Signal wiring ─────────────────────────────────────────────────────────

    def _connect_signals(self) -> None:
        self._menu_btn.clicked.connect(self._nav.toggle_menu)
        self._external_btn.clicked.connect(self._on_external_editor)
        self._search_bar.textChanged.connect(self._nav.set_search_text)
        self._filter_btn.clicked.connect(self._nav.toggle_filter_panel)
        self._add_btn.clicked.connect(self._on_add_entry)
        self._grid.itemClicked.connect(self._on_entry_clicked)
        self._grid.itemActivated.connect(self._on_entry_clicked)
        self._back_btn.clicked.connect(self._nav.close_entry)
        self._edit_btn.clicked.connect(self._on_edit_entry)
        self._prev_btn.clicked.connect(self._carousel.prev)
        self._next_btn.clicked.connect(self._carousel.next)
        self._trailer_btn.clicked.connect(self._on_play_trailer)

        self._nav.stateChanged.connect(self._render_state)
        self._nav.phaseChanged.connect(self._on_phase_changed)
        self._nav.filtersChanged.connect(self._on_filters_changed)
        self._nav.panelsChanged.connect(self._render_panels)
        self._nav.scrollToTopRequested.connect(self._scroll_to_top)
        self._carousel.mediaChanged.connect(self._rebuild_thumbnails)
        self._carousel.indexChanged.connect(self._render_media)
        self._carousel.attach_strip(self._thumb_strip)

    # ── Slots: loading ────────────────────────────────────────────────────────

    @Slot()
    def _on_load_catalogues(self) -> None:
        for section in Section:
            loader = SectionLoader(section, self._load, self)
            loader.loaded.connect(self._on_section_loaded)
            loader.finished.connect(self._on_loader_finished)
            loader.finished.connect(loader.deleteLater)
            self._loaders.append(loader)
            loader.start()

    @Slot(object, object)
    def _on_section_loaded(self, section: Section, entries: List[Entry]) -> None:
        # Applied whatever is on screen; never changes navigation.
        self._index.load(section, entries)
        self._log(f"{section.label}: {len(entries)} игр загружено.")
        if section is self._nav.section:
            self._render_tags()
            self._render_grid()

    @Slot()
    def _on_loader_finished(self) -> None:
        self._loaders = [w for w in self._loaders if w is not self.sender()]

    # ── Slots: navigation ─────────────────────────────────────────────────────

    def _on_section_clicked(self, section: Section) -> None:
        self._nav.select_section(section)

    @Slot(QListWidgetItem)
    def _on_entry_clicked(self, item: QListWidgetItem) -> None:
        entry: Entry = item.data(Qt.ItemDataRole.UserRole)
        if entry is not None:
            self._nav.open_entry(entry)

    @Slot()
    def _render_state(self) -> None:
        state = self._nav.state
        section = self._nav.section
        for s, btn in self._section_buttons.items():
            btn.setChecked(s is section)

        if state is NavState.IDLE:
            self._stack.setCurrentIndex(_PAGE_INTRO)
            self._set_status("Выберите раздел.")
        elif state is NavState.BROWSING:
            self._stack.setCurrentIndex(_PAGE_BROWSE)
            self._sync_search_bar()
            self._render_tags()
            self._render_grid()
        else:
            self._stack.setCurrentIndex(_PAGE_DETAIL)
            self._render_detail()
        self._render_panels()

    @Slot(object)
    def _on_phase_changed(self, phase: TransitionPhase) -> None:
        self._fade.setOpacity(_FADED_OPACITY if phase is TransitionPhase.FADING_OUT else 1.0)

    @Slot()
    def _on_filters_changed(self) -> None:
        self._sync_search_bar()
        self._sync_tag_boxes()
        self._render_grid()

    @Slot()
    def _render_panels(self) -> None:
        menu_open = self._nav.menu is PanelState.OPEN or self._nav.state is NavState.IDLE
        self._menu.setVisible(menu_open)
        filters_open = self._nav.filter_panel is PanelState.OPEN
        self._tag_panel.setVisible(filters_open and bool(self._tag_boxes))
        self._filter_btn.setChecked(filters_open)

    @Slot(bool)
    def _scroll_to_top(self, smooth: bool) -> None:
        bar = self._detail_scroll.verticalScrollBar()
        if self._scroll_anim is not None:
            self._scroll_anim.stop()
        if not smooth:
            bar.setValue(0)
            return
        anim = QPropertyAnimation(bar, b"value", self)
        anim.setDuration(TRANSITION_DELAY_MS)
        anim.setStartValue(bar.value())
        anim.setEndValue(0)
        anim.setEasingCurve(QEasingCurve.Type.OutCubic)
        anim.start()
        self._scroll_anim = anim

    @Slot()
    def _on_external_editor(self) -> None:
        QDesktopServices.openUrl(QUrl(EXTERNAL_EDITOR_URL))

    # ── Slots: carousel ───────────────────────────────────────────────────────

    @Slot()
    def _rebuild_thumbnails(self) -> None:
        while self._thumb_layout.count():
            item = self._thumb_layout.takeAt(0)
            if item.widget() is not None:
                item.widget().deleteLater()
        media = self._carousel.media()
        for i, item in enumerate(media):
            thumb = QPushButton()
            thumb.setObjectName("thumb")
            thumb.setCheckable(True)
            thumb.setFixedSize(120, 72)
            pixmap = self._pixmap(item.ref)
            if item.is_trailer or pixmap is None:
                thumb.setText("▶ Трейлер" if item.is_trailer else str(i + 1))
            else:
                thumb.setIcon(QIcon(pixmap))
                thumb.setIconSize(thumb.size())
            thumb.clicked.connect(lambda _checked=False, idx=i: self._carousel.jump_to(idx))
            self._thumb_layout.addWidget(thumb)
        self._thumb_layout.addStretch()
        self._carousel_box.setVisible(bool(media))
        has_many = len(media) > 1
        self._prev_btn.setEnabled(has_many)
        self._next_btn.setEnabled(has_many)

    @Slot(int)
    def _render_media(self, index: int) -> None:
        for i in range(self._thumb_layout.count()):
            w = self._thumb_layout.itemAt(i).widget()
            if isinstance(w, QPushButton):
                w.setChecked(i == index)

        item = self._carousel.current()
        entry = self._carousel.entry
        if item is None or entry is None:
            self._media_view.clear()
            self._trailer_btn.setVisible(False)
            return
        if item.is_trailer:
            poster = self._pixmap(entry.mobile_card_header or entry.card_header)
            self._show_pixmap(self._media_view, poster, "▶ Трейлер")
            self._trailer_btn.setVisible(True)
        else:
            shot = entry.screenshots[self._carousel.screenshot_for(index)]
            self._show_pixmap(self._media_view, self._pixmap(shot), f"Скриншот {item.screenshot_index + 1}")
            self._trailer_btn.setVisible(False)

    @Slot()
    def _on_play_trailer(self) -> None:
        entry = self._carousel.entry
        if entry is not None and entry.has_trailer:
            QDesktopServices.openUrl(self._media_url(entry.trailer))

    # ── Slots: editing ────────────────────────────────────────────────────────

    @Slot()
    def _on_add_entry(self) -> None:
        if self._nav.section is None:
            return
        self._open_editor(self._nav.section, None)

    @Slot()
    def _on_edit_entry(self) -> None:
        if self._nav.section is None or self._nav.entry is None:
            return
        self._open_editor(self._nav.section, self._nav.entry)

    def _open_editor(self, section: Section, entry: Optional[Entry]) -> None:
        # One dialog at a time; an unsaved one is discarded.
        if self._dialog is not None:
            self._dialog.reject()
        draft = self._editor.open(section, entry)
        dialog = EntryEditorDialog(
            draft, self._editor.fixed_controls, self._editor.fixed_hazards, self
        )
        dialog.setModal(False)
        dialog.save_requested.connect(self._on_save_requested)
        dialog.rejected.connect(self._on_editor_cancelled)
        self._dialog = dialog
        dialog.show()

    @Slot(object)
    def _on_save_requested(self, draft: EntryDraft) -> None:
        try:
            pending = self._editor.begin_save(draft)
        except ValidationError as exc:
            QMessageBox.warning(self._dialog or self, "Ошибка", str(exc))
            return
        if self._dialog is not None:
            self._dialog.set_busy(True)
        worker = SaveWorker(pending, self._persist, self)
        worker.saved.connect(self._on_entry_saved)
        worker.error.connect(self._on_save_error)
        worker.finished.connect(self._on_save_worker_finished)
        worker.finished.connect(worker.deleteLater)
        self._save_workers.append(worker)
        worker.start()
        self._set_status(f"Сохранение: {pending.payload.name}…")

    @Slot(object, object)
    def _on_entry_saved(self, pending: PendingSave, saved: Entry) -> None:
        # Lands in the section and record the save was prepared for, whatever is on screen.
        closed = self._editor.apply_saved(pending, saved)
        self._log(f"Сохранено: {saved.name}")
        if pending.replacing is not None:
            self._nav.sync_entry(pending.replacing, saved)
        if pending.section is self._nav.section and self._nav.state is NavState.BROWSING:
            self._render_tags()
            self._render_grid()
        if closed and self._dialog is not None:
            dialog, self._dialog = self._dialog, None
            dialog.rejected.disconnect(self._on_editor_cancelled)
            dialog.accept()

    @Slot(object, str)
    def _on_save_error(self, pending: PendingSave, msg: str) -> None:
        self._log(msg.replace("\n", " "), error=True)
        if not self._editor.owns(pending):
            return
        self._editor.fail(SaveError(msg), pending)
        if self._dialog is not None:
            self._dialog.set_busy(False)
        QMessageBox.critical(self._dialog or self, "Ошибка сохранения", msg)

    @Slot()
    def _on_save_worker_finished(self) -> None:
        self._save_workers = [w for w in self._save_workers if w is not self.sender()]

    @Slot()
    def _on_editor_cancelled(self) -> None:
        # A save already sent keeps running and still reaches the index.
        self._editor.close()
        self._dialog = None

    # ── UI helpers ────────────────────────────────────────────────────────────

    def _render_grid(self) -> None:
        self._grid.clear()
        entries = self._nav.visible_entries()
        for entry in entries:
            item = QListWidgetItem(entry.name)
            pixmap = self._pixmap(entry.card_header)
            if pixmap is not None:
                item.setIcon(QIcon(pixmap))
            item.setData(Qt.ItemDataRole.UserRole, entry)
            self._grid.addItem(item)
        self._empty_label.setVisible(not entries and self._nav.section is not None)
        if self._nav.section is not None:
            self._set_status(f"{self._nav.section.label}: {len(entries)} игр.")

    def _render_tags(self) -> None:
        while self._tag_layout.count():
            item = self._tag_layout.takeAt(0)
            if item.widget() is not None:
                item.widget().deleteLater()
        self._tag_boxes = {}
        selected = self._nav.filters.selected_tags
        for i, tag in enumerate(self._nav.available_tags()):
            box = QCheckBox(tag)
            box.setChecked(tag in selected)
            box.toggled.connect(lambda checked, t=tag: self._nav.set_tag_selected(t, checked))
            self._tag_boxes[tag] = box
            self._tag_layout.addWidget(box, i // _TAG_COLUMNS, i % _TAG_COLUMNS)
        self._render_panels()

    def _sync_tag_boxes(self) -> None:
        selected = self._nav.filters.selected_tags
        for tag, box in self._tag_boxes.items():
            if box.isChecked() != (tag in selected):
                box.blockSignals(True)
                box.setChecked(tag in selected)
                box.blockSignals(False)

    def _sync_search_bar(self) -> None:
        text = self._nav.filters.search_text
        if self._search_bar.text() != text:
            self._search_bar.blockSignals(True)
            self._search_bar.setText(text)
            self._search_bar.blockSignals(False)

    def _render_detail(self) -> None:
        entry = self._nav.entry
        if entry is None:
            return
        self._detail_title.setText(entry.name)
        self._show_pixmap(self._detail_header, self._pixmap(entry.card_header), "")
        self._detail_description.setText(entry.description)
        self._info_label.setText(
            f"<p><b>Русский язык:</b> {entry.russian_support.value}</p>"
            f"<p><b>Управление:</b> {', '.join(entry.control_modes) or '—'}</p>"
            f"<p><b>Опасности:</b> {', '.join(entry.hazards) or '—'}</p>"
            f"<p><b>Возраст:</b> {entry.age_category.value}</p>"
            f"<p><b>Сложность:</b> {entry.difficulty}</p>"
            f"<p><b>Теги:</b> {', '.join(entry.tags) or '—'}</p>"
        )

        while self._submodes_layout.count():
            item = self._submodes_layout.takeAt(0)
            if item.widget() is not None:
                item.widget().deleteLater()
        for i, submode in enumerate(entry.submodes):
            card = QLabel(f"<b>{submode.name}</b><br>{submode.description}")
            card.setWordWrap(True)
            card.setTextFormat(Qt.TextFormat.RichText)
            self._submodes_layout.addWidget(card, i // 2, i % 2)
        self._submodes_box.setVisible(bool(entry.submodes))
        self._set_status(entry.name)

    def _media_url(self, ref: str) -> QUrl:
        if ref.startswith(("http://", "https://")):
            return QUrl(ref)
        return QUrl.fromLocalFile(str(self._local_path(ref)))

    def _local_path(self, ref: str) -> Path:
        base = catalog_service.DATA_SOURCE
        path = Path(ref.lstrip("/"))
        if path.is_absolute() or base.startswith(("http://", "https://")):
            return path
        return Path(base) / path

    def _pixmap(self, ref: str) -> Optional[QPixmap]:
        """Local images only; remote references render as text."""
        if not ref or ref.startswith(("http://", "https://")):
            return None
        pixmap = QPixmap(str(self._local_path(ref)))
        return None if pixmap.isNull() else pixmap

    @staticmethod
    def _show_pixmap(label: QLabel, pixmap: Optional[QPixmap], fallback: str) -> None:
        if pixmap is None:
            label.setPixmap(QPixmap())
            label.setText(fallback)
            return
        target = label.size() if label.width() > 50 else pixmap.size()
        label.setPixmap(
            pixmap.scaled(target, Qt.AspectRatioMode.KeepAspectRatio, Qt.TransformationMode.SmoothTransformation)
        )

    def _set_status(self, msg: str) -> None:
        self._status_bar.showMessage(msg)

    def _log(self, msg: str, *, error: bool = False) -> None:
        if error:
            logger.error(msg)
        else:
            logger.info(msg)
        self._set_status(msg)

