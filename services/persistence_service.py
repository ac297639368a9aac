"""
services/persistence_service.py – REST create/update of catalogue entries.

Endpoints
---------
  POST {API_URL}          body: entry without id   → canonical created entry
  PUT  {API_URL}/{id}     body: full entry         → canonical updated entry

Entries are never deleted from here.
"""

import logging
from typing import Optional

import httpx

from models.entry import Entry
from services import catalog_service
from services.exceptions import SaveError

logger = logging.getLogger(__name__)


def create_entry(entry: Entry, *, api_url: Optional[str] = None, client: Optional[httpx.Client] = None) -> Entry:
    """
    Create *entry* on the server.

    Returns
    -------
    Entry
        The server's canonical record, carrying the assigned identity.

    Raises
    ------
    SaveError
        On network failure, non-2xx status or malformed response.
    """
    body = entry.with_id(None).to_dict()
    url = api_url or catalog_service.API_URL
    return _send("POST", url, body, client=client)


def update_entry(entry: Entry, *, api_url: Optional[str] = None, client: Optional[httpx.Client] = None) -> Entry:
    """
    Update an existing entry addressed by its identity.

    Raises
    ------
    SaveError
        When *entry* has no identity, or on any request failure.
    """
    if entry.id is None:
        raise SaveError(f"Cannot update '{entry.name}': it has no server identity.")
    url = (api_url or catalog_service.API_URL).rstrip("/") + "/" + entry.id
    return _send("PUT", url, entry.to_dict(), client=client)


def save_entry(entry: Entry, *, api_url: Optional[str] = None, client: Optional[httpx.Client] = None) -> Entry:
    """Create or update depending on whether *entry* has an identity."""
    if entry.id is None:
        return create_entry(entry, api_url=api_url, client=client)
    return update_entry(entry, api_url=api_url, client=client)


# ── Private helpers ───────────────────────────────────────────────────────────


def _send(method: str, url: str, body: dict, *, client: Optional[httpx.Client] = None) -> Entry:
    logger.info("%s %s (%s)", method, url, body.get("name"))
    try:
        if client is not None:
            response = client.request(method, url, json=body)
        else:
            response = httpx.request(
                method, url, json=body, timeout=catalog_service.HTTP_TIMEOUT, follow_redirects=True
            )
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SaveError(
            f"Server returned HTTP {exc.response.status_code} while saving '{body.get('name')}'."
        ) from exc
    except httpx.RequestError as exc:
        raise SaveError(f"Network error while saving: {exc}") from exc

    try:
        return Entry.from_dict(response.json())
    except ValueError as exc:
        raise SaveError(f"Server response is not a valid entry: {exc}") from exc
