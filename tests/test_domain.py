"""Tests for domains, the feature dictionary and the domain registry."""

from __future__ import annotations

import logging

import pytest

from corpus_classifier.document import Document
from corpus_classifier.domain import DEFAULT_DOMAIN_ID, Domain, DomainRegistry


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestDomainRegistry:
    def test_register_by_id_creates_domain(self, registry):
        domain = registry.register("news")
        assert isinstance(domain, Domain)
        assert domain.id == "news"
        assert "news" in registry
        assert len(registry) == 1

    def test_register_by_id_is_idempotent(self, registry):
        assert registry.register("news") is registry.register("news")
        assert len(registry) == 1

    def test_register_instance_replaces_existing(self, registry):
        first = registry.register("news")
        replacement = Domain("news")
        assert registry.register(replacement) is replacement
        assert registry.find("news") is replacement
        assert registry.find("news") is not first

    def test_find_missing_returns_none(self, registry):
        assert registry.find("missing") is None

    def test_deregister_by_id(self, registry):
        registry.register("news")
        assert registry.deregister("news") is True
        assert registry.find("news") is None
        assert registry.deregister("news") is False

    def test_deregister_by_instance(self, registry):
        domain = registry.register("news")
        assert registry.deregister(domain) is True
        assert "news" not in registry

    def test_ids_and_iteration(self, registry):
        registry.register("a")
        registry.register("b")
        assert registry.ids() == ["a", "b"]
        assert list(registry) == ["a", "b"]

    def test_registries_are_isolated(self):
        one, two = DomainRegistry(), DomainRegistry()
        Document(["cat"], one, label="A")
        assert DEFAULT_DOMAIN_ID in one
        assert DEFAULT_DOMAIN_ID not in two


# ---------------------------------------------------------------------------
# Dictionary and labels
# ---------------------------------------------------------------------------


class TestDictionary:
    def test_tokens_appended_in_cache_then_feature_order(self, pets_registry):
        domain = pets_registry.find("pets")
        assert domain.dictionary == {0: "cat", 1: "dog", 2: "bird"}

    def test_existing_ids_never_change(self, pets_registry):
        domain = pets_registry.find("pets")
        before = dict(domain.dictionary)
        Document(["fish", "cat"], pets_registry, label="C", domain_id="pets")
        assert {k: domain.dictionary[k] for k in before} == before
        assert domain.dictionary[3] == "fish"

    def test_feature_ids_are_contiguous(self, topics_registry):
        domain = topics_registry.find("topics")
        assert sorted(domain.dictionary) == list(range(len(domain.dictionary)))

    def test_tokens_are_unique(self, topics_registry):
        domain = topics_registry.find("topics")
        tokens = list(domain.dictionary.values())
        assert len(tokens) == len(set(tokens))

    def test_feature_id_lookup(self, pets_registry):
        domain = pets_registry.find("pets")
        assert domain.feature_id("dog") == 1
        assert domain.feature_id("unicorn") is None

    def test_vectorize(self, pets_registry):
        domain = pets_registry.find("pets")
        assert domain.vectorize(["bird", "unicorn"]) == [0, 0, 1]

    def test_labels_numbered_in_first_seen_order(self, pets_registry):
        assert pets_registry.find("pets").labels == {"A": 0, "B": 1}

    def test_assign_label_returns_existing_id(self):
        domain = Domain("x")
        assert domain.assign_label("spam") == 0
        assert domain.assign_label("ham") == 1
        assert domain.assign_label("spam") == 0

    def test_label_for(self, pets_registry):
        domain = pets_registry.find("pets")
        assert domain.label_for(1) == "B"
        with pytest.raises(KeyError):
            domain.label_for(7)

    def test_rebuild_refreshes_all_cached_vectors(self, pets_registry):
        domain = pets_registry.find("pets")
        Document(["fish"], pets_registry, label="C", domain_id="pets")
        for doc in domain.cache.values():
            assert len(doc.feature_vector) == 4
        assert domain.cache["d1"].feature_vector == [1, 1, 0, 0]

    def test_rebuild_without_new_tokens_adds_nothing(self, pets_registry):
        assert pets_registry.find("pets").rebuild_dictionary() == 0


# ---------------------------------------------------------------------------
# Locking
# ---------------------------------------------------------------------------


class TestLocking:
    def test_locked_domain_ignores_new_documents(self, pets_registry):
        domain = pets_registry.find("pets")
        domain.lock()
        doc = Document(["cat", "fish"], pets_registry, label="C", domain_id="pets")

        assert domain.locked
        assert doc.id not in domain.cache
        assert "C" not in domain.labels
        assert len(domain.dictionary) == 3
        assert doc.feature_vector == [1, 0, 0]

    def test_rebuild_on_locked_domain_warns(self, pets_registry, caplog):
        domain = pets_registry.find("pets")
        domain.lock()
        with caplog.at_level(logging.WARNING, logger="corpus_classifier.domain"):
            assert domain.rebuild_dictionary() == 0
        assert "locked" in caplog.text

    def test_unlock_allows_growth(self, pets_registry):
        domain = pets_registry.find("pets")
        domain.lock()
        domain.unlock()
        Document(["fish"], pets_registry, label="C", domain_id="pets")
        assert domain.dictionary[3] == "fish"


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


class TestSerialization:
    def test_round_trip(self, pets_registry):
        domain = pets_registry.find("pets")
        domain.lock()
        restored = Domain.from_dict(domain.to_dict())

        assert restored.id == "pets"
        assert restored.locked
        assert restored.dictionary == domain.dictionary
        assert restored.labels == domain.labels
        assert set(restored.cache) == {"d1", "d2", "d3"}
        assert restored.cache["d2"].feature_vector == [0, 1, 1]
        assert restored.cache["d2"].label == "B"

    def test_from_dict_restores_tuple_ids(self):
        domain = Domain(("tenant", 7))
        domain.assign_label(("kind", "x"))
        data = domain.to_dict()
        data["id"] = list(data["id"])
        data["labels"] = [[list(label), i] for label, i in data["labels"]]

        restored = Domain.from_dict(data)
        assert restored.id == ("tenant", 7)
        assert restored.labels == {("kind", "x"): 0}

    def test_rejects_unknown_version(self, pets_registry):
        data = pets_registry.find("pets").to_dict()
        data["version"] = "9.9"
        with pytest.raises(ValueError, match="version"):
            Domain.from_dict(data)

    def test_rejects_duplicate_tokens(self, pets_registry):
        data = pets_registry.find("pets").to_dict()
        data["dictionary"] = ["cat", "cat", "bird"]
        with pytest.raises(ValueError, match="duplicate"):
            Domain.from_dict(data)

    def test_rejects_non_integer_label_ids(self, pets_registry):
        data = pets_registry.find("pets").to_dict()
        data["labels"] = [["A", "zero"]]
        with pytest.raises(ValueError, match="integer"):
            Domain.from_dict(data)

    def test_rejects_duplicate_label_ids(self, pets_registry):
        data = pets_registry.find("pets").to_dict()
        data["labels"] = [["A", 0], ["B", 0]]
        with pytest.raises(ValueError, match="unique"):
            Domain.from_dict(data)

    def test_missing_field_raises_key_error(self, pets_registry):
        data = pets_registry.find("pets").to_dict()
        del data["dictionary"]
        with pytest.raises(KeyError):
            Domain.from_dict(data)
