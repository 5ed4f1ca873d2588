"""
Sentence Generator

Random walks over a `MarkovDictionary`. Each step looks up the follower map of
the current context, draws one follower with probability proportional to its
count, emits it and slides the context window by one token.

Two modes are offered:
    - generate_words: exactly N tokens of followers
    - generate_sentences: N sentences, each starting with a capitalized token
      and ending with a token whose last character is ".", "!" or "?"

The generator only reads the dictionary. It uses its own `random.Random`, so
passing `random_seed` makes output reproducible.
"""

import random
import logging

from markov_dictionary.exceptions import EmptyDictionaryError, InsufficientCorpusError

logger = logging.getLogger(__name__)

SENTENCE_TERMINATORS = (".", "!", "?")


def ends_sentence(token):
    return token.endswith(SENTENCE_TERMINATORS)


def starts_sentence(context):
    """A capitalized context that does not close a sentence before its last token."""
    tokens = context.split(" ")
    return tokens[0][:1].isupper() and not any(ends_sentence(t) for t in tokens[:-1])


def opening_tokens(context):
    """Tokens of `context` after the last sentence end that precedes its final token."""
    tokens = context.split(" ")
    for i in range(len(tokens) - 2, -1, -1):
        if ends_sentence(tokens[i]):
            return tokens[i + 1:]
    return tokens


def _validate_count(count, what):
    if isinstance(count, bool) or not isinstance(count, int):
        raise ValueError(f"Number of {what} must be an integer, got {count!r}")
    if count < 0:
        raise ValueError(f"Number of {what} must not be negative, got {count}")
    return count


def _validate_limit(value, name):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value < 1:
        raise ValueError(f"{name} must be at least 1, got {value}")
    return value


class SentenceGenerator:
    """
    Generates words or sentences from a Markov dictionary.
    """

    def __init__(self, dictionary, rng=None, random_seed=None, max_attempts=100,
                 max_sentence_tokens=200, logger=logger):
        """
        Args:
            dictionary (MarkovDictionary): Dictionary to read from
            rng (random.Random, optional): Random source to draw from
            random_seed (int, optional): Seed for a private random source, used
                when `rng` is not given
            max_attempts (int): Sentence starts allowed per `generate_sentences` call
            max_sentence_tokens (int): Length at which an unfinished sentence is dropped
            logger (logging.Logger): Logger for generation activity

        Raises:
            ValueError: If a limit is not a positive integer
        """
        self.dictionary = dictionary
        self.rng = rng if rng is not None else random.Random(random_seed)
        self.max_attempts = _validate_limit(max_attempts, "max_attempts")
        self.max_sentence_tokens = _validate_limit(
            max_sentence_tokens, "max_sentence_tokens")
        self.logger = logger

    def weighted_follower(self, context):
        """
        Draw a follower of `context` with probability count / total count.

        Returns:
            str or None: The drawn follower, or None for a terminal or unknown context
        """
        followers = self.dictionary.followers(context)
        if not followers:
            return None
        return self.rng.choices(
            list(followers.keys()), weights=list(followers.values())
        )[0]

    def random_context(self, contexts=None):
        """Pick a context uniformly at random from `contexts` or the whole dictionary."""
        if contexts is None:
            contexts = self.dictionary.contexts()
        return self.rng.choice(contexts)

    def _next_context(self, context, token):
        # Drop the leading token and append the new one
        tokens = context.split(" ")[1:]
        tokens.append(token)
        return " ".join(tokens)

    def _check_dictionary(self):
        if len(self.dictionary) == 0:
            self.logger.error("Generation failed - dictionary is empty")
            raise EmptyDictionaryError("Cannot generate text from an empty dictionary")

        if not any(self.dictionary.followers(c) for c in self.dictionary.contexts()):
            self.logger.error("Generation failed - no context has a follower", extra={
                "metrics": {"context_count": len(self.dictionary)}
            })
            raise InsufficientCorpusError(
                "Every context in the dictionary is terminal")

    def _start_context(self, seed, contexts):
        if seed is not None:
            if seed in self.dictionary:
                return seed
            self.logger.warning("Seed context not found in dictionary, using random context", extra={
                "metrics": {"seed": seed}
            })
        return self.random_context(contexts)

    def generate_words(self, count, seed=None):
        """
        Generate exactly `count` tokens.

        Args:
            count (int): Number of tokens to emit
            seed (str, optional): Context key to start from; a random context
                is used if it is missing from the dictionary

        Returns:
            str: Space-joined tokens, "" when count is 0

        Raises:
            ValueError: If count is negative or not an integer
            EmptyDictionaryError: If the dictionary has no contexts
            InsufficientCorpusError: If no context has a follower
        """
        _validate_count(count, "words")
        if count == 0:
            return ""
        self._check_dictionary()

        contexts = self.dictionary.contexts()
        context = self._start_context(seed, contexts)
        words = []
        restarts = 0

        while len(words) < count:
            follower = self.weighted_follower(context)
            if follower is None:
                # Terminal context, jump somewhere else
                context = self.random_context(contexts)
                restarts += 1
                continue
            words.append(follower)
            context = self._next_context(context, follower)

        self.logger.info("Word generation completed", extra={
            "metrics": {
                "words_generated": len(words),
                "terminal_restarts": restarts,
                "seed": seed,
            }
        })
        return " ".join(words)

    def generate_sentences(self, count, seed=None):
        """
        Generate `count` sentences.

        A sentence opens with the tokens of a capitalized context that has no
        sentence end before its last token, and grows one weighted draw at a
        time until a token ends with ".", "!" or "?". A seed context is cut
        after its last inner sentence end. When the walk reaches a terminal
        context or the sentence grows past `max_sentence_tokens`, the sentence
        is dropped and started over. Every start counts against `max_attempts`.

        Args:
            count (int): Number of sentences
            seed (str, optional): Context key the first sentence starts from

        Returns:
            str: The sentences joined by single spaces, "" when count is 0

        Raises:
            ValueError: If count is negative or not an integer
            EmptyDictionaryError: If the dictionary has no contexts
            InsufficientCorpusError: If the sentences cannot be completed
                within `max_attempts` starts
        """
        _validate_count(count, "sentences")
        if count == 0:
            return ""
        self._check_dictionary()

        contexts = self.dictionary.contexts()
        start_contexts = [c for c in contexts if starts_sentence(c)]
        if not start_contexts:
            self.logger.warning("No capitalized context found, starting from any context", extra={
                "metrics": {"context_count": len(contexts)}
            })
            start_contexts = contexts

        sentences = []
        attempts = 0

        while len(sentences) < count:
            if attempts >= self.max_attempts:
                self.logger.error("Sentence generation gave up", extra={
                    "metrics": {
                        "sentences_requested": count,
                        "sentences_generated": len(sentences),
                        "attempts": attempts,
                    }
                })
                raise InsufficientCorpusError(
                    f"Generated {len(sentences)} of {count} sentences "
                    f"in {attempts} attempts")
            attempts += 1

            if seed is not None and attempts == 1:
                context = self._start_context(seed, start_contexts)
            else:
                context = self.random_context(start_contexts)

            sentence = self._walk_sentence(context)
            if sentence is not None:
                sentences.append(sentence)

        self.logger.info("Sentence generation completed", extra={
            "metrics": {
                "sentences_generated": len(sentences),
                "attempts": attempts,
                "seed": seed,
            }
        })
        return " ".join(sentences)

    def _walk_sentence(self, context):
        # One sentence from `context`, or None if it has to be dropped
        tokens = opening_tokens(context)
        while not ends_sentence(tokens[-1]):
            if len(tokens) >= self.max_sentence_tokens:
                self.logger.debug("Sentence too long, restarting", extra={
                    "metrics": {"tokens": len(tokens)}
                })
                return None
            follower = self.weighted_follower(context)
            if follower is None:
                self.logger.debug("Reached terminal context, restarting", extra={
                    "metrics": {"context": context}
                })
                return None
            tokens.append(follower)
            context = self._next_context(context, follower)
        return " ".join(tokens)
