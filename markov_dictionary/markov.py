"""
Markov Dictionary Text Generator

Public entry point of the package. `MarkovModel` ties together a
`MarkovDictionary` (the n-gram counts), a storage backend (memory or a `.mmd`
JSON file) and a `SentenceGenerator`.

Usage:
    >>> model = MarkovModel(depth=2)
    >>> model.parse_string("The dog ran. The dog barked.")
    >>> model.generate_sentences(1)  # "The dog ran." or "The dog barked."

    >>> model = MarkovModel.persistent("corpora/news", depth=3)
    >>> model.parse_file("corpora/news.txt")
    >>> model.save()
    >>> delete_dictionary("corpora/news")
"""

import logging

from markov_dictionary.exceptions import NotPersistentError
from markov_dictionary.models.dictionary import MarkovDictionary
from markov_dictionary.models.sentence_generator import SentenceGenerator
from markov_dictionary.models.storage import FileStorage, MemoryStorage
from markov_dictionary.utils.config import DEFAULT_CONFIG

__version__ = "0.4.0"

logger = logging.getLogger(__name__)


class MarkovModel:
    """
    A Markov dictionary with optional file persistence.

    Without a storage backend the model lives in memory only. With a
    `FileStorage` the existing file, if any, is merged in on construction and
    `save` writes the model back.
    """

    def __init__(self, depth=None, storage=None, rng=None, random_seed=None,
                 config=None, logger=logger):
        """
        Args:
            depth (int, optional): Context size, 1 to 9. Defaults to the
                config value (2)
            storage (MemoryStorage or FileStorage, optional): Backend, memory if omitted
            rng (random.Random, optional): Random source for generation
            random_seed (int, optional): Seed for reproducible generation
            config (dict, optional): Settings as returned by `load_config`
            logger (logging.Logger): Logger shared with the components

        Raises:
            ValueError: If depth is out of range
            DictionaryIOError: If the backing file exists but cannot be loaded
        """
        config = dict(DEFAULT_CONFIG, **(config or {}))
        if depth is None:
            depth = config["depth"]
        if random_seed is None:
            random_seed = config["random_seed"]

        self.logger = logger
        self.config = config
        self.storage = storage if storage is not None else MemoryStorage()
        self._dictionary = MarkovDictionary(depth, logger=logger)
        self._generator = SentenceGenerator(
            self._dictionary,
            rng=rng,
            random_seed=random_seed,
            max_attempts=config["max_attempts"],
            max_sentence_tokens=config["max_sentence_tokens"],
            logger=logger,
        )

        if self.storage.persistent:
            self.load()

        self.logger.info("MarkovModel initialized", extra={
            "metrics": {
                "depth": depth,
                "persistent": self.storage.persistent,
                "location": self.location,
                "context_count": len(self._dictionary),
            }
        })

    @classmethod
    def persistent(cls, location, depth=None, logger=logger, **kwargs):
        """
        Open (or start) a file-backed model.

        Args:
            location (str): Dictionary path; `.mmd` is appended if missing
            depth (int, optional): Context size, 1 to 9
            **kwargs: Passed on to the constructor

        Returns:
            MarkovModel: Model holding the file's counts, empty if there is no file
        """
        return cls(depth=depth, storage=FileStorage(location, logger=logger),
                   logger=logger, **kwargs)

    @property
    def dictionary(self):
        """The raw context -> follower -> count mapping."""
        return self._dictionary.dictionary

    @property
    def depth(self):
        return self._dictionary.depth

    @property
    def location(self):
        """Path of the backing file, None for an in-memory model."""
        return self.storage.path

    def parse(self, source, as_file=False):
        """Add a corpus (text, or a path when `as_file` is true) to the dictionary."""
        return self._dictionary.parse_source(source, as_file)

    def parse_string(self, text):
        return self.parse(text, as_file=False)

    def parse_file(self, location):
        return self.parse(location, as_file=True)

    def generate_words(self, count, seed=None):
        """Generate `count` words. See `SentenceGenerator.generate_words`."""
        return self._generator.generate_words(count, seed)

    def generate_sentences(self, count, seed=None):
        """Generate `count` sentences. See `SentenceGenerator.generate_sentences`."""
        return self._generator.generate_sentences(count, seed)

    def load(self, location=None):
        """
        Merge a dictionary file into this model, adding its counts.

        The whole file is read and validated before anything is merged, so a
        failed load leaves the model exactly as it was.

        Args:
            location (str, optional): File to read; defaults to the backing file

        Raises:
            NotPersistentError: If no location is given and the model has no file
            DictionaryIOError: If the file cannot be read or is malformed
        """
        if location is not None:
            storage = FileStorage(location, logger=self.logger)
        elif self.storage.persistent:
            storage = self.storage
        else:
            raise NotPersistentError(
                "An in-memory dictionary needs a location to load from")

        mapping = storage.load(depth=self.depth)
        self._dictionary.merge(mapping)
        return len(mapping)

    def save(self):
        """
        Write the dictionary to its backing file.

        Raises:
            NotPersistentError: If the model is in memory only
            DictionaryIOError: If the file cannot be written
        """
        self.storage.save(self._dictionary.dictionary)

    def clear(self):
        """Forget everything learned; the backing file is left untouched."""
        self._dictionary.clear()


def delete_dictionary(target, logger=logger):
    """
    Delete a dictionary file.

    Args:
        target (str or MarkovModel or FileStorage): Path of the dictionary
            (`.mmd` is appended if missing) or a persistent model/storage

    Raises:
        DictionaryNotFoundError: If the file does not exist
        NotPersistentError: If `target` is an in-memory model
    """
    if isinstance(target, MarkovModel):
        target = target.storage
    if isinstance(target, MemoryStorage):
        raise NotPersistentError("An in-memory dictionary has no file to delete")
    if not isinstance(target, FileStorage):
        target = FileStorage(target, logger=logger)
    target.delete()
