"""Exception hierarchy for post parsing and storage"""


class SynblogError(Exception):
    """Base class for all synblog errors."""


class MalformedLineError(SynblogError, ValueError):
    """A single element line does not match its grammar (e.g. .img without 3 fields)."""


class TruncatedHeaderError(SynblogError, ValueError):
    """The document ended before all 4 metadata header lines were read."""


class PostNotFoundError(SynblogError, FileNotFoundError):
    """The post file does not exist."""


class PostIOError(SynblogError, OSError):
    """The post file exists but could not be read or written."""
