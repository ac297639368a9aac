import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest  # noqa: E402

from models.entry import Entry, Section  # noqa: E402
from services.catalog_index import CatalogIndex  # noqa: E402


@pytest.fixture
def zone_entries():
    return [
        Entry(name="Half-Life: Alyx", tags=("Шутер", "Хоррор"), screenshots=("a1.jpg", "a2.jpg")),
        Entry(name="Beat Saber", tags=("Ритм", "Детские")),
        Entry(name="Job Simulator", tags=("Симулятор", "Детские"), trailer="job.mp4"),
    ]


@pytest.fixture
def index(zone_entries):
    idx = CatalogIndex()
    idx.load(Section.ZONE, zone_entries)
    idx.load(Section.ARENA, [Entry(name="Arena Tag", tags=("Командная",))])
    return idx
