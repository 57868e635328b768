"""
Error taxonomy for the extraction pipeline.

ParseFailure and DelegateUnavailable are always recovered inside the builder.
RuleStoreUnavailable degrades to the last-good rule snapshot.
ContextUnavailable reaches the caller only for a call with no text and no node.
"""
from __future__ import annotations


class ChronoClipError(Exception):
    """Base class for all extraction errors."""


class ParseFailure(ChronoClipError):
    """No date strategy matched, or every candidate failed validation."""


class ContextUnavailable(ChronoClipError):
    """The document accessor or the node handle is missing."""


class RuleStoreUnavailable(ChronoClipError):
    """The site-rule persistence store could not be read or written."""


class DelegateUnavailable(ChronoClipError):
    """The site-aware field extractor is missing or raised."""
