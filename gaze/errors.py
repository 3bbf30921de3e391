"""Exception hierarchy raised by the mosaic engine."""

from __future__ import annotations


class GazeError(Exception):
    """Base class for every error the engine raises."""


class NotFound(GazeError, FileNotFoundError):
    """The target image does not exist."""


class DecodeError(GazeError):
    """An image file could not be decoded."""


class InvalidDimensions(GazeError, ValueError):
    """A buffer or requested size cannot be used."""


class InvalidSplitFactor(GazeError, ValueError):
    """A split factor is non-positive or the node cannot be split."""


class DirectoryUnreadable(GazeError):
    """The pool directory is missing or cannot be listed."""


class EmptyPool(GazeError):
    """No pool candidate is available to match against."""


class AlreadyResolved(GazeError):
    """A node's matched buffer is already set."""


class Unresolved(GazeError):
    """A leaf was assembled before it was matched."""


class FetchError(GazeError):
    """Downloading the pool from Flickr failed."""
