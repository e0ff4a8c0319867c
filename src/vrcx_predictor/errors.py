"""Error types raised by the analysis pipeline."""

from __future__ import annotations


class MalformedTimestamp(ValueError):
    """A single timestamp string could not be parsed."""


class AnalysisError(Exception):
    """Base class for failures that abort a whole analysis run."""


class NoUserRecords(AnalysisError):
    """The event source returned no rows for the requested user."""


class EmptyAfterFilter(AnalysisError):
    """Every event was dropped by cleaning or the history window."""


class AnalysisCancelled(AnalysisError):
    """The caller asked for the run to stop."""
