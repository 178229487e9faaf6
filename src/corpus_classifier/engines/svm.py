"""Support vector machine engine backed by scikit-learn.

Models are ``sklearn.svm.SVC`` instances serialized with ``joblib``. A
training set with a single label cannot be fit by ``SVC``; it gets a
``DummyClassifier`` that always predicts that label, so training on one
labeled document still succeeds.
"""

from __future__ import annotations

import logging
import pickle
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Optional, Union

import joblib
import numpy as np
from sklearn.dummy import DummyClassifier
from sklearn.svm import SVC

from ..domain import DomainRegistry
from ..exceptions import CorruptArtifactError
from .base import ClassifierEngine

logger = logging.getLogger(__name__)

Model = Union[SVC, DummyClassifier]


@dataclass
class SVMParameters:
    """Training parameters passed through to ``sklearn.svm.SVC``.

    Attributes:
        C: Regularization strength (inverse).
        tol: Stopping tolerance.
        cache_size: Kernel cache size in megabytes.
        probability: Fit Platt-scaled probability estimates and report
            them from ``classify``.
        kernel: SVC kernel name.
        random_state: Seed for the probability calibration folds.
    """

    C: float = 10.0
    tol: float = 0.001
    cache_size: float = 1.0
    probability: bool = True
    kernel: str = "linear"
    random_state: Optional[int] = 0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SVMParameters":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


class SVMEngine(ClassifierEngine):
    """Classifier engine using a scikit-learn support vector classifier.

    Example::

        registry = DomainRegistry()
        Document("cat dog", registry, label="A", domain_id="pets")
        Document("dog bird", registry, label="B", domain_id="pets")

        engine = SVMEngine(registry, probability=False)
        engine.train(registry.find("pets"))
        label, _ = engine.classify(Document("cat bird", registry, domain_id="pets"))
        engine.persist_strict(file="models/pets")

    Args:
        registry: Registry that loaded domains are registered with.
        parameters: Base parameters (defaults to ``SVMParameters()``).
        **overrides: Individual ``SVMParameters`` fields to override.
    """

    name = "svm"

    def __init__(
        self,
        registry: DomainRegistry,
        parameters: Optional[SVMParameters] = None,
        **overrides: Any,
    ) -> None:
        super().__init__(registry)
        self.parameters = replace(parameters or SVMParameters(), **overrides)

    @property
    def probability(self) -> bool:
        return self.parameters.probability

    # ------------------------------------------------------------------
    # Learning capability
    # ------------------------------------------------------------------

    def _fit(self, label_ids: list[int], vectors: list[list[int]]) -> Model:
        X = np.asarray(vectors, dtype=np.float64)
        y = np.asarray(label_ids)

        if len(set(label_ids)) < 2:
            logger.info("Single label in training set; fitting a constant classifier")
            model: Model = DummyClassifier(strategy="most_frequent")
        else:
            p = self.parameters
            model = SVC(
                C=p.C,
                kernel=p.kernel,
                tol=p.tol,
                cache_size=p.cache_size,
                probability=p.probability,
                random_state=p.random_state,
            )

        model.fit(X, y)
        return model

    def _predict(self, model: Model, vector: list[int]) -> int:
        X = np.asarray([vector], dtype=np.float64)
        return int(model.predict(X)[0])

    def _predict_proba(self, model: Model, vector: list[int]) -> tuple[int, dict[int, float]]:
        X = np.asarray([vector], dtype=np.float64)
        probs = model.predict_proba(X)[0]
        classes = [int(c) for c in model.classes_]
        best = int(np.argmax(probs))
        return classes[best], {c: float(p) for c, p in zip(classes, probs)}

    def _save_model(self, model: Model, path: Path) -> None:
        joblib.dump(model, path)

    def _load_model(self, path: Path) -> Model:
        try:
            model = joblib.load(path)
        except (pickle.UnpicklingError, EOFError, ValueError, KeyError, IndexError,
                TypeError, AttributeError, ImportError) as exc:
            raise CorruptArtifactError(f"Model artifact invalid: {path}: {exc}") from exc

        if not isinstance(model, (SVC, DummyClassifier)):
            raise CorruptArtifactError(
                f"Model artifact {path} holds {type(model).__name__}, expected an SVC"
            )

        # The stored model decides whether probability estimates exist
        if isinstance(model, SVC) and model.probability != self.parameters.probability:
            logger.info("Loaded model has probability=%s; adopting it", model.probability)
            self.parameters = replace(self.parameters, probability=bool(model.probability))
        return model
