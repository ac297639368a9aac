"""
editor_dialog.py – Form for creating / updating one catalogue entry.

The dialog only mirrors an EntryDraft into widgets and back; validation and
saving stay in controllers.editor.EntryEditor. Pressing Save emits
``save_requested`` with the refreshed draft and leaves the dialog open until
the window reports success. Cancel stays available while a save runs.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from PySide6.QtCore import Qt, Signal, Slot
from PySide6.QtWidgets import (
    QButtonGroup,
    QCheckBox,
    QDialog,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLineEdit,
    QPlainTextEdit,
    QPushButton,
    QRadioButton,
    QScrollArea,
    QVBoxLayout,
    QWidget,
)

from controllers.editor import EntryDraft, OptionGroup
from models.entry import MAX_DIFFICULTY, MIN_DIFFICULTY, AgeCategory, RussianSupport


class _OptionBox(QGroupBox):
    """Fixed-option checkboxes plus an "other" checkbox with its text field."""

    def __init__(self, title: str, options: Sequence[str], other_label: str, placeholder: str) -> None:
        super().__init__(title)
        layout = QVBoxLayout(self)
        layout.setSpacing(4)
        self._checks: Dict[str, QCheckBox] = {}
        for opt in options:
            box = QCheckBox(opt)
            self._checks[opt] = box
            layout.addWidget(box)
        self._other_check = QCheckBox(other_label)
        self._other_text = QLineEdit()
        self._other_text.setPlaceholderText(placeholder)
        self._other_text.setVisible(False)
        self._other_check.toggled.connect(self._other_text.setVisible)
        layout.addWidget(self._other_check)
        layout.addWidget(self._other_text)

    def load(self, group: OptionGroup) -> None:
        for opt, box in self._checks.items():
            box.setChecked(opt in group.selected)
        self._other_check.setChecked(group.other_active)
        self._other_text.setVisible(group.other_active)
        self._other_text.setText(group.other_text)

    def store(self, group: OptionGroup) -> None:
        for opt, box in self._checks.items():
            group.toggle(opt, box.isChecked())
        group.other_active = self._other_check.isChecked()
        group.other_text = self._other_text.text()


class EntryEditorDialog(QDialog):
    """Non-modal editing form bound to one EntryDraft."""

    save_requested = Signal(object)  # EntryDraft

    def __init__(
        self,
        draft: EntryDraft,
        fixed_controls: Sequence[str],
        fixed_hazards: Sequence[str],
        parent=None,
    ) -> None:
        super().__init__(parent)
        self._draft = draft
        self.setWindowTitle(f"Редактирование: {draft.name}" if draft.name else "Новая игра")
        self.setMinimumSize(560, 640)

        body = QWidget()
        form = QVBoxLayout(body)
        form.setSpacing(10)

        fields = QFormLayout()
        self._name = QLineEdit(draft.name)
        fields.addRow("Название", self._name)
        form.addLayout(fields)

        self._russian_group, russian_box = self._radio_box(
            "Наличие русского языка", [(m.value, m) for m in RussianSupport], draft.russian_support
        )
        form.addWidget(russian_box)

        self._controls = _OptionBox("Способы игры", fixed_controls, "Иной способ", "Укажите иной способ")
        self._controls.load(draft.controls)
        form.addWidget(self._controls)

        self._hazards = _OptionBox("Опасности", fixed_hazards, "Иное", "Укажите иное")
        self._hazards.load(draft.hazards)
        form.addWidget(self._hazards)

        self._age_group, age_box = self._radio_box(
            "Возрастная категория", [(m.value, m) for m in AgeCategory], draft.age_category
        )
        form.addWidget(age_box)

        self._difficulty_group, difficulty_box = self._radio_box(
            "Сложность управления",
            [(str(n), n) for n in range(MIN_DIFFICULTY, MAX_DIFFICULTY + 1)],
            draft.difficulty,
            horizontal=True,
        )
        form.addWidget(difficulty_box)

        media = QFormLayout()
        self._tags = QLineEdit(", ".join(draft.tags))
        self._tags.setPlaceholderText("Теги через запятую")
        self._screenshots = QPlainTextEdit("\n".join(draft.screenshots))
        self._screenshots.setPlaceholderText("Один скриншот на строку")
        self._screenshots.setFixedHeight(90)
        self._description = QPlainTextEdit(draft.description)
        self._description.setFixedHeight(110)
        self._trailer = QLineEdit(draft.trailer)
        self._card_header = QLineEdit(draft.card_header)
        self._mobile_card_header = QLineEdit(draft.mobile_card_header)
        media.addRow("Теги", self._tags)
        media.addRow("Скриншоты", self._screenshots)
        media.addRow("Описание", self._description)
        media.addRow("Трейлер", self._trailer)
        media.addRow("Шапка карточки", self._card_header)
        media.addRow("Шапка (мобильная)", self._mobile_card_header)
        form.addLayout(media)
        form.addStretch()

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(body)

        self._save_btn = QPushButton("Сохранить")
        self._save_btn.setObjectName("primaryBtn")
        self._save_btn.setDefault(True)
        cancel_btn = QPushButton("Отмена")
        buttons = QHBoxLayout()
        buttons.addStretch()
        buttons.addWidget(cancel_btn)
        buttons.addWidget(self._save_btn)

        root = QVBoxLayout(self)
        root.addWidget(scroll, stretch=1)
        root.addLayout(buttons)

        self._save_btn.clicked.connect(self._on_save)
        cancel_btn.clicked.connect(self.reject)

    # ── Public API ────────────────────────────────────────────────────────────

    def collect_draft(self) -> EntryDraft:
        """Copy widget values into the bound draft and return it."""
        d = self._draft
        d.name = self._name.text()
        d.russian_support = _checked_value(self._russian_group, list(RussianSupport))
        self._controls.store(d.controls)
        self._hazards.store(d.hazards)
        d.age_category = _checked_value(self._age_group, list(AgeCategory))
        d.difficulty = _checked_value(self._difficulty_group, list(range(MIN_DIFFICULTY, MAX_DIFFICULTY + 1)))
        d.tags = [t.strip() for t in self._tags.text().split(",") if t.strip()]
        d.screenshots = [s.strip() for s in self._screenshots.toPlainText().splitlines() if s.strip()]
        d.description = self._description.toPlainText()
        d.trailer = self._trailer.text()
        d.card_header = self._card_header.text()
        d.mobile_card_header = self._mobile_card_header.text()
        return d

    def set_busy(self, busy: bool) -> None:
        self._save_btn.setEnabled(not busy)
        self._save_btn.setText("Сохранение…" if busy else "Сохранить")

    # ── Slots / helpers ───────────────────────────────────────────────────────

    @Slot()
    def _on_save(self) -> None:
        self.save_requested.emit(self.collect_draft())

    def _radio_box(self, title: str, options: List[tuple], current, *, horizontal: bool = False):
        box = QGroupBox(title)
        layout = QHBoxLayout(box) if horizontal else QVBoxLayout(box)
        group = QButtonGroup(self)
        for i, (label, value) in enumerate(options):
            radio = QRadioButton(label)
            radio.setChecked(value == current)
            group.addButton(radio, i)
            layout.addWidget(radio)
        if group.checkedButton() is None and group.buttons():
            group.buttons()[0].setChecked(True)
        layout.setAlignment(Qt.AlignmentFlag.AlignLeft)
        return group, box


def _checked_value(group: QButtonGroup, values: list):
    """Value behind the checked radio; buttons are registered with their list index as id."""
    checked = group.checkedId()
    return values[checked] if 0 <= checked < len(values) else values[0]
