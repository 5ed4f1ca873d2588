"""
Storage backends for Markov dictionaries.

A dictionary is kept either only in memory (`MemoryStorage`) or in a JSON file
(`FileStorage`). Files always carry the `.mmd` suffix; it is appended to any
location that lacks it so that deleting a dictionary can never remove an
unrelated file.

File layout, UTF-8 JSON:

    {"<context>": {"<follower>": <count>, ...}, ...}
"""

import os
import json
import stat
import logging
import tempfile

from markov_dictionary.exceptions import (
    DictionaryIOError,
    DictionaryNotFoundError,
    MalformedDictionaryError,
    NotPersistentError,
)

logger = logging.getLogger(__name__)

DICTIONARY_SUFFIX = ".mmd"


def dictionary_path(location):
    """Return `location` with the dictionary suffix appended if it is missing."""
    location = os.fspath(location)
    if not location.endswith(DICTIONARY_SUFFIX):
        location += DICTIONARY_SUFFIX
    return location


def validate_mapping(data, path="<data>", depth=None):
    """
    Check that deserialized data is a context -> follower -> count mapping.

    Args:
        data: Deserialized JSON content
        path (str): File the data came from, used in error messages
        depth (int, optional): Number of tokens every context key must have

    Returns:
        dict: The same data

    Raises:
        MalformedDictionaryError: If any level has the wrong type, a count
            is negative or a context key has the wrong number of tokens
    """
    if not isinstance(data, dict):
        raise MalformedDictionaryError(
            f"{path}: expected a JSON object, got {type(data).__name__}")

    for context, followers in data.items():
        if depth is not None and len(context.split(" ")) != depth:
            raise MalformedDictionaryError(
                f"{path}: context {context!r} does not have {depth} tokens")
        if not isinstance(followers, dict):
            raise MalformedDictionaryError(
                f"{path}: followers of {context!r} must be an object")
        for follower, count in followers.items():
            # bool is an int subclass but never a valid count
            if isinstance(count, bool) or not isinstance(count, int):
                raise MalformedDictionaryError(
                    f"{path}: count of {follower!r} after {context!r} must be an integer")
            if count < 0:
                raise MalformedDictionaryError(
                    f"{path}: count of {follower!r} after {context!r} is negative")
    return data


class MemoryStorage:
    """Backend for dictionaries that only live in memory."""

    persistent = False
    path = None

    def load(self, depth=None):
        return {}

    def save(self, mapping):
        raise NotPersistentError("An in-memory dictionary has no file to save to")


class FileStorage:
    """
    Backend that keeps a dictionary in a JSON file.

    Attributes:
        path (str): Location of the file, always ending in `.mmd`
    """

    persistent = True

    def __init__(self, location, logger=logger):
        self.path = dictionary_path(location)
        self.logger = logger

    def exists(self):
        return os.path.exists(self.path)

    def load(self, depth=None):
        """
        Read and validate the dictionary file.

        Args:
            depth (int, optional): Context size the stored keys must have

        Returns:
            dict: The stored mapping, or an empty dict if the file does not exist

        Raises:
            DictionaryIOError: If the file exists but cannot be read
            MalformedDictionaryError: If the content is not valid UTF-8 JSON
                holding a mapping of the expected depth
        """
        if not self.exists():
            self.logger.info("Dictionary file not found, starting empty", extra={
                "metrics": {"path": self.path}
            })
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                content = f.read()
        except OSError as e:
            self.logger.error(f"Failed to read dictionary file: {e}", extra={
                "metrics": {"path": self.path, "error": str(e)}
            })
            raise DictionaryIOError(f"Cannot read dictionary {self.path}: {e}") from e
        except UnicodeDecodeError as e:
            self.logger.error("Dictionary file is not valid UTF-8", extra={
                "metrics": {"path": self.path, "error": str(e)}
            })
            raise MalformedDictionaryError(f"{self.path}: invalid UTF-8: {e}") from e

        try:
            data = json.loads(content)
        except ValueError as e:
            self.logger.error("Dictionary file is not valid JSON", extra={
                "metrics": {"path": self.path, "error": str(e)}
            })
            raise MalformedDictionaryError(f"{self.path}: invalid JSON: {e}") from e

        try:
            mapping = validate_mapping(data, self.path, depth=depth)
        except MalformedDictionaryError as e:
            self.logger.error("Dictionary file has an unexpected structure", extra={
                "metrics": {"path": self.path, "error": str(e)}
            })
            raise

        self.logger.info("Dictionary file loaded", extra={
            "metrics": {"path": self.path, "context_count": len(mapping)}
        })
        return mapping

    def save(self, mapping):
        """
        Write the mapping to the dictionary file atomically.

        The JSON is written to a temporary file in the same directory, synced
        to disk and then moved over the old file, so a crash leaves either the
        old or the new dictionary in place, never a truncated one. The file
        keeps the mode of the one it replaces; a new file gets the umask default.

        Raises:
            DictionaryIOError: If writing or replacing fails
        """
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            mode = self._file_mode()
            fd, tmp_path = tempfile.mkstemp(
                dir=directory, prefix=".", suffix=DICTIONARY_SUFFIX + ".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(mapping, f, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            # mkstemp creates the file owner-only
            os.chmod(tmp_path, mode)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)
            self.logger.error(f"Failed to save dictionary: {e}", extra={
                "metrics": {"path": self.path, "error": str(e)}
            })
            raise DictionaryIOError(f"Cannot save dictionary {self.path}: {e}") from e

        self.logger.info("Dictionary saved", extra={
            "metrics": {"path": self.path, "context_count": len(mapping)}
        })

    def _file_mode(self):
        try:
            return stat.S_IMODE(os.stat(self.path).st_mode)
        except FileNotFoundError:
            umask = os.umask(0)
            os.umask(umask)
            return 0o666 & ~umask

    def delete(self):
        """
        Remove the dictionary file.

        Raises:
            DictionaryNotFoundError: If there is no file to remove
            DictionaryIOError: If the file exists but cannot be removed
        """
        try:
            os.remove(self.path)
        except FileNotFoundError as e:
            raise DictionaryNotFoundError(
                f"No dictionary to delete at {self.path}") from e
        except OSError as e:
            self.logger.error(f"Failed to delete dictionary: {e}", extra={
                "metrics": {"path": self.path, "error": str(e)}
            })
            raise DictionaryIOError(f"Cannot delete dictionary {self.path}: {e}") from e

        self.logger.info("Dictionary deleted", extra={"metrics": {"path": self.path}})
