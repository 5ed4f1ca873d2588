"""
Markov Dictionary

The n-gram model behind text generation. Each entry maps a context key (the
`depth` preceding tokens joined by single spaces) to the tokens seen right after
it and how many times each was seen:

    {"The dog": {"ran.": 1, "barked.": 1}, "dog ran.": {"The": 1}, ...}

Tokens are whitespace-separated runs with punctuation left attached, so
"ran." and "ran" are different followers. Sentence generation relies on that to
find where sentences end.
"""

import logging

from markov_dictionary.exceptions import DictionaryIOError

logger = logging.getLogger(__name__)

MIN_DEPTH = 1
MAX_DEPTH = 9


def tokenize(text):
    """Split text on runs of whitespace. Never fails, any text is a valid corpus."""
    return text.split()


def validate_depth(depth):
    """
    Check that a depth is an integer in [MIN_DEPTH, MAX_DEPTH].

    Raises:
        ValueError: If the depth is not an integer or out of range
    """
    if isinstance(depth, bool) or not isinstance(depth, int):
        raise ValueError(f"Depth must be an integer, got {depth!r}")
    if not MIN_DEPTH <= depth <= MAX_DEPTH:
        raise ValueError(
            f"Depth must be between {MIN_DEPTH} and {MAX_DEPTH}, got {depth}")
    return depth


def open_source(location):
    """
    Read a corpus file as UTF-8 text.

    Args:
        location (str): Path of the corpus file

    Returns:
        str: File contents

    Raises:
        DictionaryIOError: If the file cannot be read
    """
    try:
        with open(location, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read corpus file {location}: {e}")
        raise DictionaryIOError(f"Cannot read corpus file {location}: {e}") from e


class MarkovDictionary:
    """
    Context -> follower -> count table for a fixed depth.

    The table only grows: parsing and merging add counts, `clear` wipes it.
    Generators read it but never write to it.
    """

    def __init__(self, depth=2, logger=logger):
        """
        Args:
            depth (int): Number of tokens in a context key, 1 to 9 (default: 2)
            logger (logging.Logger): Logger for parse activity

        Raises:
            ValueError: If depth is out of range
        """
        self.depth = validate_depth(depth)
        self.logger = logger
        self.dictionary = {}

    def __len__(self):
        return len(self.dictionary)

    def __contains__(self, context):
        return context in self.dictionary

    def contexts(self):
        """Return all context keys as a list."""
        return list(self.dictionary.keys())

    def followers(self, context):
        """Return the follower map of a context, or an empty dict if it is unknown."""
        return self.dictionary.get(context, {})

    def add_word(self, context, follower):
        """
        Record one occurrence of `follower` right after `context`.

        Args:
            context (str): Context key
            follower (str): Token that followed the context
        """
        followers = self.dictionary.get(context)
        if followers is None:
            followers = self.dictionary[context] = {}
        if follower not in followers:
            followers[follower] = 0
        followers[follower] += 1

    def parse_source(self, source, as_file=True):
        """
        Add the n-grams of a corpus to the dictionary.

        Every window of depth + 1 consecutive tokens adds one to the count of
        its last token under the context formed by the first `depth` tokens.
        The final `depth` tokens are then registered as a terminal context,
        unless that key is already known.

        Args:
            source (str): Corpus path when `as_file` is true, corpus text otherwise
            as_file (bool): Whether `source` is a path to read

        Returns:
            int: Number of windows added

        Example:
            "The dog ran. The dog barked." at depth 2 gives
            {"The dog": {"ran.": 1, "barked.": 1}, "dog ran.": {"The": 1},
             "ran. The": {"dog": 1}, "dog barked.": {}}
        """
        text = open_source(source) if as_file else source
        tokens = tokenize(text)
        depth = self.depth

        windows = 0
        for i in range(len(tokens) - depth):
            context = " ".join(tokens[i:i + depth])
            self.add_word(context, tokens[i + depth])
            windows += 1

        if len(tokens) >= depth:
            tail = " ".join(tokens[-depth:])
            if tail not in self.dictionary:
                self.dictionary[tail] = {}

        self.logger.info("Parsed corpus", extra={
            "metrics": {
                "source": source if as_file else "string",
                "token_count": len(tokens),
                "windows_added": windows,
                "context_count": len(self.dictionary),
                "depth": depth,
            }
        })
        return windows

    def merge(self, mapping):
        """
        Add the counts of a context -> follower -> count mapping.

        The mapping must already be validated (see
        `markov_dictionary.models.storage.validate_mapping`); this method does
        not check it, so that a bad file can never leave a half-merged table.
        Zero counts register the context but no follower.

        Args:
            mapping (dict): Mapping to add
        """
        for context, followers in mapping.items():
            target = self.dictionary.get(context)
            if target is None:
                target = self.dictionary[context] = {}
            for follower, count in followers.items():
                if count == 0:
                    continue
                target[follower] = target.get(follower, 0) + count

    def clear(self):
        """Remove every entry; the dictionary stays usable at the same depth."""
        self.dictionary.clear()
