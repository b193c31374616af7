"""Exception types raised by rvtext."""

from __future__ import annotations


class RvTextError(Exception):
    """Base class for all rvtext errors."""


class DocumentError(RvTextError):
    """A data file could not be loaded or saved by its codec."""


class DecodeError(RvTextError):
    """Script text could not be decoded by any encoding of the cascade."""


class MissingInputError(RvTextError):
    """A required translation file or game file does not exist."""
