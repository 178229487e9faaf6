"""Shared test fixtures for corpus-classifier tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from corpus_classifier.document import Document
from corpus_classifier.domain import DomainRegistry


# Two clearly separable topics with distinctive vocabulary
SPORTS_DOCS = [
    "The striker scored twice and the football crowd cheered the goal",
    "Football coach praised the goalkeeper after the penalty shootout",
    "The league match ended with a late goal from the striker",
    "Fans celebrated as the football team won the league trophy",
]

COOKING_DOCS = [
    "Simmer the tomato sauce with garlic and fresh basil",
    "Bake the bread dough in a preheated oven until golden",
    "Chop the garlic and onion before frying them in olive oil",
    "Whisk the eggs with flour and sugar to make pancake batter",
]


@pytest.fixture
def registry() -> DomainRegistry:
    """A fresh, empty domain registry."""
    return DomainRegistry()


@pytest.fixture
def pets_registry(registry: DomainRegistry) -> DomainRegistry:
    """Registry holding the three-document ``pets`` domain."""
    Document(["cat", "dog"], registry, label="A", domain_id="pets", id="d1")
    Document(["dog", "bird"], registry, label="B", domain_id="pets", id="d2")
    Document(["cat", "bird"], registry, label="A", domain_id="pets", id="d3")
    return registry


@pytest.fixture
def topics_registry(registry: DomainRegistry) -> DomainRegistry:
    """Registry holding a ``topics`` domain with sports and cooking documents."""
    for i, text in enumerate(SPORTS_DOCS):
        Document(text, registry, label="sports", domain_id="topics", id=f"sports-{i}")
    for i, text in enumerate(COOKING_DOCS):
        Document(text, registry, label="cooking", domain_id="topics", id=f"cooking-{i}")
    return registry


@pytest.fixture
def corpus_dir(tmp_path: Path) -> Path:
    """Directory corpus with one sub-directory per label."""
    root = tmp_path / "corpus"
    for label, docs in (("sports", SPORTS_DOCS), ("cooking", COOKING_DOCS)):
        (root / label).mkdir(parents=True)
        for i, text in enumerate(docs):
            (root / label / f"{i}.txt").write_text(text, encoding="utf-8")
    return root
