"""Exceptions raised while decoding mutfunc matrices."""


class DecodeError(Exception):
    """Base class for failures decoding one category's matrix."""


class CorruptBlobError(DecodeError):
    """Compressed matrix blob is not a valid gzip stream."""


class MalformedRecordError(DecodeError):
    """Record bytes do not match the category layout."""
