"""
services/catalog_service.py – Fetching and parsing the per-section catalogues.

Two interchangeable sources:

* JSON files, one per section, shaped ``{"games": [...]}``. The base location
  is either a local directory or an http(s) URL.
* A REST listing endpoint returning the entry array directly.

``load_section`` is what the UI calls: it never raises, a failed section
degrades to an empty list and the failure is logged.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, List, Optional

import httpx

from models.entry import Entry, Section
from services.exceptions import LoadError

logger = logging.getLogger(__name__)

# ── Configuration ────────────────────────────────────────────────────────────

BASE_PATH: str = os.environ.get("VRCATALOG_BASE", os.path.abspath("."))

# Directory or URL holding games.json / arena.json / autosim.json / ps.json.
DATA_SOURCE: str = os.environ.get("VRCATALOG_DATA", os.path.join(BASE_PATH, "data"))

# REST collection endpoint (listing, create, update).
API_URL: str = os.environ.get("VRCATALOG_API", "http://localhost:3000/api/games")

# "files" reads DATA_SOURCE for every section; "api" feeds the zone from API_URL.
CATALOG_MODE: str = os.environ.get("VRCATALOG_MODE", "files")

# HTTP timeout (seconds)
HTTP_TIMEOUT: float = 15.0

# ── Public API ───────────────────────────────────────────────────────────────


def fetch_section(section: Section, base: Optional[str] = None, *, client: Optional[httpx.Client] = None) -> List[Entry]:
    """
    Read and parse the catalogue file of *section*.

    Parameters
    ----------
    section : Section whose resource is read.
    base    : Directory or http(s) URL; defaults to DATA_SOURCE.
    client  : Optional httpx client (tests inject a mock transport).

    Raises
    ------
    LoadError
        On any I/O, network or parse failure.
    """
    base = base or DATA_SOURCE
    if _is_url(base):
        url = base.rstrip("/") + "/" + section.resource
        payload = _http_get_json(url, client=client, section=section)
    else:
        path = Path(base) / section.resource
        try:
            with path.open("r", encoding="utf-8") as fh:
                payload = json.load(fh)
        except OSError as exc:
            raise LoadError(f"Cannot read catalogue file '{path}': {exc}", section) from exc
        except json.JSONDecodeError as exc:
            raise LoadError(f"Catalogue file '{path}' is not valid JSON: {exc}", section) from exc

    if not isinstance(payload, dict) or not isinstance(payload.get("games"), list):
        raise LoadError(f"Catalogue for {section.name} has no 'games' list.", section)
    return _parse_entries(payload["games"], section)


def fetch_listing(api_url: Optional[str] = None, *, client: Optional[httpx.Client] = None) -> List[Entry]:
    """
    Fetch the REST listing, an array of entries with no wrapper object.

    Raises
    ------
    LoadError
        On network failure, non-2xx status or malformed body.
    """
    payload = _http_get_json(api_url or API_URL, client=client)
    if not isinstance(payload, list):
        raise LoadError("Catalogue listing did not return an array.")
    return _parse_entries(payload, None)


def load_section(section: Section) -> List[Entry]:
    """
    Load one section from the configured source; never raises.

    A failure affects only *section*: it is logged and an empty list is
    returned so other sections keep loading.
    """
    try:
        if CATALOG_MODE == "api" and section is Section.ZONE:
            entries = fetch_listing()
        else:
            entries = fetch_section(section)
    except LoadError as exc:
        logger.warning("Could not load %s catalogue: %s", section.name, exc)
        return []
    logger.info("Loaded %d %s entries.", len(entries), section.name)
    return entries


# ── Private helpers ───────────────────────────────────────────────────────────


def _is_url(base: str) -> bool:
    return base.startswith(("http://", "https://"))


def _http_get_json(url: str, *, client: Optional[httpx.Client] = None, section: Optional[Section] = None) -> Any:
    try:
        if client is not None:
            response = client.get(url)
        else:
            response = httpx.get(url, timeout=HTTP_TIMEOUT, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise LoadError(
            f"Catalogue server returned HTTP {exc.response.status_code} for {url}.", section
        ) from exc
    except httpx.RequestError as exc:
        raise LoadError(f"Network error while fetching catalogue: {exc}", section) from exc

    try:
        return response.json()
    except ValueError as exc:
        raise LoadError(f"Catalogue at {url} is not valid JSON.", section) from exc


def _parse_entries(items: list, section: Optional[Section]) -> List[Entry]:
    entries: List[Entry] = []
    for i, raw in enumerate(items):
        try:
            entries.append(Entry.from_dict(raw))
        except (ValueError, TypeError, OverflowError) as exc:
            # One bad record should not cost the whole section.
            logger.warning("Skipping catalogue record %d of %s: %s", i, getattr(section, "name", "listing"), exc)
    return entries
