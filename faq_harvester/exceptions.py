"""
Custom exceptions for the FAQ harvester.

Error philosophy:
  - FetchError  → NON-FATAL: the loader turns it into a failed LoadResult,
                  the page contributes no entities, the run continues.
  - PayloadError → FAIL HARD: the structured payload does not have the shape
                  we read from it. Nothing is guessed; the run stops before
                  any file is written.
  - OutputError → FAIL HARD: the dataset could not be rotated or written.

A candidate whose question text fails validation is not an error at all:
the entity constructor returns None and the candidate is dropped.
"""

from typing import Optional


class HarvesterError(Exception):
    """Base exception for all FAQ harvester errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- NON-FATAL: isolated to one page ---

class FetchError(HarvesterError):
    """
    Raised when a page cannot be fetched, read or parsed.

    Never escapes the loader: DocumentLoader.load() catches it and returns
    a failed LoadResult instead.
    """

    def __init__(self, message: str, url: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.url = url


# --- FAIL HARD: stops the run ---

class PayloadError(HarvesterError):
    """Raised when an embedded structured payload is missing or malformed."""

    def __init__(self, message: str, source: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.source = source


class OutputError(HarvesterError):
    """Raised when the output directory cannot be rotated or written."""

    def __init__(self, message: str, path: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.path = path
