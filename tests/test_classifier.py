"""Tests for the high-level ``Classifier`` facade."""

from __future__ import annotations

import pytest

from corpus_classifier import (
    Classifier,
    DomainRegistry,
    InvalidPersistenceTargetError,
    NaiveBayesEngine,
    NotTrainedError,
    SVMEngine,
)


def _train(classifier: Classifier) -> Classifier:
    return classifier.train(classifier.registry.find("topics"))


class TestEngineSelection:
    def test_default_engine_is_svm(self):
        classifier = Classifier()
        assert isinstance(classifier.engine, SVMEngine)
        assert isinstance(classifier.registry, DomainRegistry)

    def test_named_engine_with_options(self):
        classifier = Classifier("naive_bayes", alpha=0.5, probability=False)
        assert isinstance(classifier.engine, NaiveBayesEngine)
        assert classifier.engine.alpha == 0.5
        assert classifier.engine.probability is False

    def test_shared_registry(self, registry):
        assert Classifier("svm", registry=registry).registry is registry

    def test_engine_instance(self, registry):
        engine = NaiveBayesEngine(registry)
        classifier = Classifier(engine)
        assert classifier.engine is engine
        assert classifier.registry is registry

    def test_engine_instance_with_options_rejected(self, registry):
        with pytest.raises(ValueError):
            Classifier(SVMEngine(registry), C=1.0)
        with pytest.raises(ValueError):
            Classifier(SVMEngine(registry), registry=registry)

    @pytest.mark.parametrize("engine", ["lsvm", "", None, 3])
    def test_unknown_engine_rejected(self, engine):
        with pytest.raises(ValueError, match="Unknown classifier engine"):
            Classifier(engine)


class TestLifecycle:
    @pytest.mark.parametrize("engine", ["svm", "naive_bayes"])
    def test_train_classify_persist_load(self, engine, topics_registry, tmp_path):
        classifier = _train(Classifier(engine, registry=topics_registry, probability=False))
        assert classifier.trained

        query = classifier.document("Football striker scored a goal", domain_id="topics")
        assert classifier.classify(query).label == "sports"

        base = classifier.persist_strict(file=tmp_path / "topics")
        restored = Classifier(engine)
        assert restored.load_strict(file=base) is True

        query = restored.document("Garlic and basil tomato sauce", domain_id="topics")
        assert restored.classify(query).label == "cooking"

    def test_document_builds_against_registry(self):
        classifier = Classifier()
        doc = classifier.document(["cat", "dog"], label="A", domain_id="pets", id="d1")
        assert classifier.registry.find("pets").cache == {"d1": doc}

    def test_classify_before_training(self):
        classifier = Classifier()
        with pytest.raises(NotTrainedError):
            classifier.classify(classifier.document("anything here"))

    def test_non_raising_helpers(self, tmp_path):
        classifier = Classifier()
        assert classifier.persist(file=tmp_path / "model") is False
        assert classifier.load(file=tmp_path / "model") is False

    def test_persist_returns_base_path(self, topics_registry, tmp_path):
        classifier = _train(Classifier("naive_bayes", registry=topics_registry))
        assert classifier.persist(file=tmp_path / "model") == str(tmp_path / "model")

    def test_strict_helpers_raise(self, topics_registry):
        classifier = _train(Classifier("naive_bayes", registry=topics_registry))
        with pytest.raises(InvalidPersistenceTargetError):
            classifier.persist_strict()
        with pytest.raises(InvalidPersistenceTargetError):
            Classifier().load_strict()
