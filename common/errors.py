# common/errors.py
from __future__ import annotations


class PipelineError(Exception):
    """Base class for errors raised inside the enrichment pipeline."""


class FetchError(PipelineError):
    """A source could not be fetched or parsed. Always handled per source."""

    def __init__(self, source_name: str, message: str) -> None:
        super().__init__(f"{source_name}: {message}")
        self.source_name = source_name
        self.message = message


class ClassificationError(PipelineError):
    """The optional AI classifier failed; callers fall back to the rule engine."""


class MalformedItemError(PipelineError):
    """An ingested item is missing its title or link."""
