"""Failure kinds raised by the keystroke-dynamics adapter.

All are :class:`ValueError` subclasses: callers are expected to catch
:class:`KeystrokeDynamicsError`, log, and skip the sample.
"""

from __future__ import annotations


class KeystrokeDynamicsError(ValueError):
    """Base class for samples that cannot produce a timing record."""


class InsufficientDataError(KeystrokeDynamicsError):
    """The sample has fewer typed characters than the target phrase."""


class SequenceNotFoundError(KeystrokeDynamicsError):
    """The target phrase does not occur as an in-order subsequence."""


class UnsupportedCharacterError(KeystrokeDynamicsError):
    """A matched character has no benchmark label."""


class LabelMismatchError(KeystrokeDynamicsError):
    """Matched characters map to labels other than the expected sequence."""
