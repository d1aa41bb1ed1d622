"""
Exception types raised by the consultation pipeline and its collaborators.
"""

from __future__ import annotations


class KuralConsultError(Exception):
    """Base class for all KuralConsult errors."""


class ProviderError(KuralConsultError):
    """An embedding or chat provider call failed, timed out, or returned garbage."""


class DimensionMismatch(KuralConsultError, ValueError):
    """Two vectors of different lengths were compared."""


class EmptyCorpus(KuralConsultError):
    """The corpus has no entries, so no answer can ever be selected."""


class CorpusLoadError(KuralConsultError):
    """The corpus could not be fetched or parsed."""


class ValidationError(KuralConsultError, ValueError):
    """Caller supplied an empty question or empty text."""
