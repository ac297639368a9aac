import json

import httpx
import pytest

from models.entry import Section
from services import catalog_service
from services.exceptions import LoadError


def _write(path, payload):
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")


def test_fetch_section_reads_games_wrapper(tmp_path):
    _write(tmp_path / "games.json", {"games": [{"name": "Moss"}, {"name": "Myst"}]})
    entries = catalog_service.fetch_section(Section.ZONE, str(tmp_path))
    assert [e.name for e in entries] == ["Moss", "Myst"]


def test_fetch_section_skips_bad_records(tmp_path):
    _write(tmp_path / "arena.json", {"games": [{"name": "Ok"}, {"title": "no name"}, 5]})
    entries = catalog_service.fetch_section(Section.ARENA, str(tmp_path))
    assert [e.name for e in entries] == ["Ok"]


def test_fetch_section_skips_records_with_wrong_value_types(tmp_path):
    records = [{"name": "Ok"}, {"name": "Bad", "submodes": 5}, {"name": "Huge", "difficulty": float("inf")}]
    _write(tmp_path / "arena.json", {"games": records})
    entries = catalog_service.fetch_section(Section.ARENA, str(tmp_path))
    assert [e.name for e in entries] == ["Ok"]


def test_missing_file_raises_load_error(tmp_path):
    with pytest.raises(LoadError) as info:
        catalog_service.fetch_section(Section.PS, str(tmp_path))
    assert info.value.section is Section.PS


def test_malformed_file_raises_load_error(tmp_path):
    (tmp_path / "autosim.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(LoadError):
        catalog_service.fetch_section(Section.AUTOSIM, str(tmp_path))


def test_missing_games_key_raises_load_error(tmp_path):
    _write(tmp_path / "games.json", [{"name": "bare list"}])
    with pytest.raises(LoadError):
        catalog_service.fetch_section(Section.ZONE, str(tmp_path))


def test_load_section_degrades_only_the_broken_section(tmp_path, monkeypatch):
    _write(tmp_path / "games.json", {"games": [{"name": "Moss"}]})
    (tmp_path / "arena.json").write_text("garbage", encoding="utf-8")
    monkeypatch.setattr(catalog_service, "DATA_SOURCE", str(tmp_path))
    monkeypatch.setattr(catalog_service, "CATALOG_MODE", "files")

    assert [e.name for e in catalog_service.load_section(Section.ZONE)] == ["Moss"]
    assert catalog_service.load_section(Section.ARENA) == []
    assert catalog_service.load_section(Section.PS) == []


def test_fetch_section_over_http():
    def handler(request):
        assert request.url.path == "/catalog/ps.json"
        return httpx.Response(200, json={"games": [{"name": "Astro Bot"}]})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    entries = catalog_service.fetch_section(Section.PS, "http://hall.local/catalog/", client=client)
    assert [e.name for e in entries] == ["Astro Bot"]


def test_http_error_becomes_load_error():
    client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(404)))
    with pytest.raises(LoadError, match="404"):
        catalog_service.fetch_section(Section.ZONE, "http://hall.local", client=client)


def test_fetch_listing_accepts_bare_array():
    def handler(request):
        return httpx.Response(200, json=[{"name": "Moss", "id": "1"}, {"name": "Myst", "id": "2"}])

    client = httpx.Client(transport=httpx.MockTransport(handler))
    entries = catalog_service.fetch_listing("http://api.local/api/games", client=client)
    assert [(e.name, e.id) for e in entries] == [("Moss", "1"), ("Myst", "2")]


def test_fetch_listing_rejects_wrapped_object():
    client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"games": []})))
    with pytest.raises(LoadError):
        catalog_service.fetch_listing("http://api.local/api/games", client=client)


def test_network_failure_becomes_load_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    with pytest.raises(LoadError, match="Network error"):
        catalog_service.fetch_listing("http://api.local/api/games", client=client)
