"""
Exceptions raised by the Markov dictionary package.

Every error the package raises on its own behalf derives from `MarkovError`.
The persistence errors additionally derive from the builtin I/O errors so that
callers already catching `IOError` / `FileNotFoundError` keep working.
"""


class MarkovError(Exception):
    """Base class for all Markov dictionary errors."""


class DictionaryIOError(MarkovError, IOError):
    """A persisted dictionary could not be read or written."""


class MalformedDictionaryError(DictionaryIOError):
    """A persisted dictionary does not hold a context -> follower -> count mapping."""


class DictionaryNotFoundError(MarkovError, FileNotFoundError):
    """The dictionary file to delete does not exist."""


class EmptyDictionaryError(MarkovError):
    """Generation was requested from a dictionary with no contexts."""


class InsufficientCorpusError(MarkovError):
    """The corpus cannot satisfy a generation request within the retry budget."""


class NotPersistentError(MarkovError):
    """A save was requested on a dictionary without a backing file."""
