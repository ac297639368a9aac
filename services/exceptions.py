"""
services/exceptions.py – Structured custom exception hierarchy for VR Catalog.

All service-level errors derive from CatalogError so callers can catch broadly
or specifically depending on context.
"""

from typing import Optional


class CatalogError(Exception):
    """Base class for all VR Catalog exceptions."""


class LoadError(CatalogError):
    """
    Raised when a catalogue resource cannot be fetched or parsed.

    Attributes
    ----------
    section : Section the failed resource belongs to (None for the REST listing).
    """

    def __init__(self, message: str, section: Optional[object] = None) -> None:
        self.section = section
        super().__init__(message)


class SaveError(CatalogError):
    """Raised when the persistence endpoint rejects or fails a create/update."""


class ValidationError(CatalogError):
    """Raised when an editor draft cannot be saved as-is."""


class DuplicateNameError(ValidationError):
    """
    Raised when another entry in the same section already uses the name.

    Attributes
    ----------
    name : The conflicting name.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"An entry named '{name}' already exists.")
