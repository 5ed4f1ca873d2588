#!/usr/bin/env python3
"""
Tests for the MarkovModel facade and delete_dictionary.

Covers the in-memory and file-backed variants end to end: parsing,
persistence round trips, additive loading and deletion.
"""

import os
import json
import pytest
from unittest.mock import MagicMock

from markov_dictionary.exceptions import (
    DictionaryNotFoundError,
    MalformedDictionaryError,
    NotPersistentError,
)
from markov_dictionary.markov import MarkovModel, delete_dictionary
from markov_dictionary.models.storage import FileStorage, MemoryStorage

TEXT = "the cat sat on the mat the cat jumped over the mat"


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing"""
    return MagicMock()


@pytest.fixture
def location(tmp_path):
    return str(tmp_path / "markov_dictionary")


class TestMarkovModel:
    """Test suite for MarkovModel class."""

    def test_initialization_defaults(self, mock_logger):
        model = MarkovModel(logger=mock_logger)

        assert model.depth == 2
        assert model.dictionary == {}
        assert model.location is None
        assert isinstance(model.storage, MemoryStorage)
        mock_logger.info.assert_called()

    def test_depth_from_config(self, mock_logger):
        model = MarkovModel(config={"depth": 4}, logger=mock_logger)
        assert model.depth == 4

    def test_explicit_depth_wins_over_config(self, mock_logger):
        model = MarkovModel(depth=1, config={"depth": 4}, logger=mock_logger)
        assert model.depth == 1

    @pytest.mark.parametrize("depth", [0, 10])
    def test_invalid_depth(self, mock_logger, depth):
        with pytest.raises(ValueError):
            MarkovModel(depth=depth, logger=mock_logger)

    @pytest.mark.parametrize("config", [
        {"max_attempts": None},
        {"max_sentence_tokens": None},
        {"max_attempts": "100"},
    ])
    def test_invalid_limits_in_config(self, mock_logger, config):
        with pytest.raises(ValueError):
            MarkovModel(config=config, logger=mock_logger)

    def test_parse_string_and_file(self, tmp_path, mock_logger):
        corpus = tmp_path / "corpus.txt"
        corpus.write_text("The dog ran. The dog barked.", encoding="utf-8")

        from_string = MarkovModel(logger=mock_logger)
        from_string.parse_string("The dog ran. The dog barked.")
        from_file = MarkovModel(logger=mock_logger)
        from_file.parse_file(str(corpus))

        assert from_string.dictionary == from_file.dictionary
        assert from_string.dictionary["The dog"] == {"ran.": 1, "barked.": 1}

    def test_parse_defaults_to_text(self, mock_logger):
        model = MarkovModel(logger=mock_logger)
        model.parse("a b c")
        assert model.dictionary == {"a b": {"c": 1}, "b c": {}}

    def test_generation(self, mock_logger):
        model = MarkovModel(random_seed=5, logger=mock_logger)
        model.parse_string("The dog ran. The dog barked.")

        assert len(model.generate_words(10).split()) == 10
        sentence = model.generate_sentences(1)
        assert sentence.startswith("The")
        assert sentence[-1] in ".!?"

    def test_reproducible_generation(self, mock_logger):
        models = [MarkovModel(random_seed=42, logger=mock_logger) for _ in range(2)]
        for model in models:
            model.parse_string(TEXT)

        assert models[0].generate_words(30) == models[1].generate_words(30)

    def test_clear(self, mock_logger):
        model = MarkovModel(logger=mock_logger)
        model.parse_string(TEXT)
        model.clear()

        assert model.dictionary == {}
        assert model.depth == 2

    def test_save_in_memory_fails(self, mock_logger):
        model = MarkovModel(logger=mock_logger)
        with pytest.raises(NotPersistentError):
            model.save()

    def test_load_in_memory_without_location_fails(self, mock_logger):
        model = MarkovModel(logger=mock_logger)
        with pytest.raises(NotPersistentError):
            model.load()


class TestPersistentModel:

    def test_location_gets_suffix(self, location, mock_logger):
        model = MarkovModel.persistent(location, logger=mock_logger)

        assert model.location == location + ".mmd"
        assert model.dictionary == {}
        assert not os.path.exists(model.location)

    def test_save_and_reload(self, location, mock_logger):
        model = MarkovModel.persistent(location, depth=3, logger=mock_logger)
        model.parse_string(TEXT)
        model.save()

        reloaded = MarkovModel.persistent(location, depth=3, logger=mock_logger)

        assert reloaded.dictionary == model.dictionary

    def test_load_into_fresh_in_memory_model(self, location, mock_logger):
        model = MarkovModel.persistent(location, logger=mock_logger)
        model.parse_string(TEXT)
        model.save()

        fresh = MarkovModel(logger=mock_logger)
        fresh.load(location)

        assert fresh.dictionary == model.dictionary

    def test_load_merges_additively(self, location, mock_logger):
        model = MarkovModel.persistent(location, logger=mock_logger)
        model.parse_string("the cat sat")
        model.save()

        other = MarkovModel(logger=mock_logger)
        other.parse_string("the cat ran on")
        other.load(location)

        assert other.dictionary == {
            "the cat": {"ran": 1, "sat": 1},
            "cat ran": {"on": 1},
            "ran on": {},
            "cat sat": {},
        }

        other.load(location)
        assert other.dictionary["the cat"] == {"ran": 1, "sat": 2}

    def test_reopening_merges_existing_file(self, location, mock_logger):
        model = MarkovModel.persistent(location, logger=mock_logger)
        model.parse_string(TEXT)
        model.save()
        expected = {c: {w: n * 2 for w, n in f.items()} for c, f in model.dictionary.items()}

        reopened = MarkovModel.persistent(location, logger=mock_logger)
        reopened.parse_string(TEXT)

        assert reopened.dictionary == expected

    def test_malformed_file_leaves_model_unchanged(self, location, mock_logger):
        with open(location + ".mmd", "w", encoding="utf-8") as f:
            json.dump({"the cat": {"sat": 1}, "cat sat": {"on": "two"}}, f)

        model = MarkovModel(logger=mock_logger)
        model.parse_string("the cat ran")
        before = {c: dict(f) for c, f in model.dictionary.items()}

        with pytest.raises(MalformedDictionaryError):
            model.load(location)

        assert model.dictionary == before

    def test_invalid_utf8_leaves_model_unchanged(self, location, mock_logger):
        with open(location + ".mmd", "wb") as f:
            f.write(b'{"a b": {"\xff": 1}}')

        model = MarkovModel(logger=mock_logger)
        model.parse_string("the cat ran")
        before = {c: dict(f) for c, f in model.dictionary.items()}

        with pytest.raises(IOError):
            model.load(location)

        assert model.dictionary == before

    def test_depth_mismatch_fails_on_open(self, location, mock_logger):
        model = MarkovModel.persistent(location, depth=3, logger=mock_logger)
        model.parse_string(TEXT)
        model.save()

        with pytest.raises(MalformedDictionaryError):
            MarkovModel.persistent(location, depth=2, logger=mock_logger)

    def test_depth_mismatch_leaves_model_unchanged(self, location, mock_logger):
        model = MarkovModel.persistent(location, depth=3, logger=mock_logger)
        model.parse_string(TEXT)
        model.save()

        other = MarkovModel(depth=2, logger=mock_logger)
        other.parse_string("the cat ran")
        before = {c: dict(f) for c, f in other.dictionary.items()}

        with pytest.raises(MalformedDictionaryError):
            other.load(location)

        assert other.dictionary == before

    def test_malformed_file_fails_on_open(self, location, mock_logger):
        with open(location + ".mmd", "w", encoding="utf-8") as f:
            f.write("not json at all")

        with pytest.raises(IOError):
            MarkovModel.persistent(location, logger=mock_logger)

    def test_clear_keeps_file(self, location, mock_logger):
        model = MarkovModel.persistent(location, logger=mock_logger)
        model.parse_string(TEXT)
        model.save()
        model.clear()

        assert model.dictionary == {}
        assert os.path.exists(model.location)


class TestDeleteDictionary:

    def test_delete_by_path(self, location, mock_logger):
        model = MarkovModel.persistent(location, logger=mock_logger)
        model.parse_string(TEXT)
        model.save()

        delete_dictionary(location, logger=mock_logger)

        assert not os.path.exists(location + ".mmd")
        assert MarkovModel.persistent(location, logger=mock_logger).dictionary == {}

    def test_delete_by_suffixed_path(self, location, mock_logger):
        MarkovModel.persistent(location, logger=mock_logger).save()

        delete_dictionary(location + ".mmd", logger=mock_logger)

        assert not os.path.exists(location + ".mmd")

    def test_delete_by_model(self, location, mock_logger):
        model = MarkovModel.persistent(location, logger=mock_logger)
        model.save()

        delete_dictionary(model)

        assert not os.path.exists(model.location)

    def test_delete_by_storage(self, location, mock_logger):
        storage = FileStorage(location, logger=mock_logger)
        storage.save({"a b": {"c": 1}})

        delete_dictionary(storage)

        assert not storage.exists()

    def test_delete_missing(self, location, mock_logger):
        with pytest.raises(DictionaryNotFoundError):
            delete_dictionary(location, logger=mock_logger)

    def test_delete_never_touches_unsuffixed_file(self, location, mock_logger):
        with open(location, "w", encoding="utf-8") as f:
            f.write("keep me")

        with pytest.raises(DictionaryNotFoundError):
            delete_dictionary(location, logger=mock_logger)
        assert os.path.exists(location)

    def test_delete_in_memory_model(self, mock_logger):
        with pytest.raises(NotPersistentError):
            delete_dictionary(MarkovModel(logger=mock_logger))
