"""Bernoulli Naive Bayes engine in pure Python.

Works directly on the binary feature vectors: each dictionary entry is a
present/absent event per class, estimated with Laplace smoothing. Models
persist as JSON, so this engine needs neither numpy nor scikit-learn at
prediction time.
"""

from __future__ import annotations

import json
import math
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..domain import DomainRegistry
from ..exceptions import CorruptArtifactError
from .base import ClassifierEngine


@dataclass
class BernoulliNaiveBayes:
    """Bernoulli Naive Bayes model over 0/1 feature vectors.

    Args:
        alpha: Laplace smoothing parameter (1.0 = standard smoothing).
    """

    alpha: float = 1.0

    # Learned parameters, index-aligned with ``classes_``
    classes_: list[int] = field(default_factory=list, repr=False)
    class_log_prior_: list[float] = field(default_factory=list, repr=False)
    feature_log_prob_: list[list[float]] = field(default_factory=list, repr=False)
    feature_log_neg_prob_: list[list[float]] = field(default_factory=list, repr=False)

    def fit(self, vectors: list[list[int]], labels: list[int]) -> "BernoulliNaiveBayes":
        """Estimate per-class priors and feature presence probabilities.

        Raises:
            ValueError: If vectors and labels have different lengths.
        """
        if len(vectors) != len(labels):
            raise ValueError(
                f"vectors ({len(vectors)}) and labels ({len(labels)}) must have same length"
            )

        class_vectors: dict[int, list[list[int]]] = defaultdict(list)
        for vec, label in zip(vectors, labels):
            class_vectors[label].append(vec)

        self.classes_ = sorted(class_vectors)
        n_total = len(labels)
        n_features = len(vectors[0]) if vectors else 0

        self.class_log_prior_ = []
        self.feature_log_prob_ = []
        self.feature_log_neg_prob_ = []
        for cls in self.classes_:
            members = class_vectors[cls]
            self.class_log_prior_.append(math.log(len(members) / n_total))

            # P(feature present | class) = (count + alpha) / (n_class + 2 * alpha)
            denominator = len(members) + 2 * self.alpha
            present, absent = [], []
            for i in range(n_features):
                p = (sum(vec[i] for vec in members) + self.alpha) / denominator
                present.append(math.log(p))
                absent.append(math.log(1.0 - p))
            self.feature_log_prob_.append(present)
            self.feature_log_neg_prob_.append(absent)

        return self

    def predict(self, vector: list[int]) -> int:
        scores = self._log_scores(vector)
        return max(scores, key=scores.get)  # type: ignore[arg-type]

    def predict_proba(self, vector: list[int]) -> dict[int, float]:
        """Class probabilities, using log-sum-exp for numerical stability."""
        log_scores = self._log_scores(vector)
        max_score = max(log_scores.values())
        exp_scores = {cls: math.exp(s - max_score) for cls, s in log_scores.items()}
        total = sum(exp_scores.values())
        return {cls: score / total for cls, score in exp_scores.items()}

    def _log_scores(self, vector: list[int]) -> dict[int, float]:
        if not self.classes_:
            raise RuntimeError("Model has not been fitted. Call fit() first.")

        scores: dict[int, float] = {}
        for idx, cls in enumerate(self.classes_):
            score = self.class_log_prior_[idx]
            present = self.feature_log_prob_[idx]
            absent = self.feature_log_neg_prob_[idx]
            for i, x in enumerate(vector):
                score += present[i] if x else absent[i]
            scores[cls] = score
        return scores

    def to_dict(self) -> dict:
        return {
            "alpha": self.alpha,
            "classes": self.classes_,
            "class_log_prior": self.class_log_prior_,
            "feature_log_prob": self.feature_log_prob_,
            "feature_log_neg_prob": self.feature_log_neg_prob_,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BernoulliNaiveBayes":
        nb = cls(alpha=data["alpha"])
        nb.classes_ = [int(c) for c in data["classes"]]
        nb.class_log_prior_ = data["class_log_prior"]
        nb.feature_log_prob_ = data["feature_log_prob"]
        nb.feature_log_neg_prob_ = data["feature_log_neg_prob"]
        if not (
            len(nb.classes_) == len(nb.class_log_prior_)
            == len(nb.feature_log_prob_) == len(nb.feature_log_neg_prob_)
        ):
            raise ValueError("Model arrays are not aligned with its classes")
        return nb


class NaiveBayesEngine(ClassifierEngine):
    """Classifier engine using ``BernoulliNaiveBayes``.

    Args:
        registry: Registry that loaded domains are registered with.
        alpha: Laplace smoothing parameter.
        probability: Report per-label probabilities from ``classify``.
    """

    name = "naive_bayes"

    def __init__(
        self,
        registry: DomainRegistry,
        alpha: float = 1.0,
        probability: bool = True,
    ) -> None:
        super().__init__(registry)
        self.alpha = alpha
        self._probability = probability

    @property
    def probability(self) -> bool:
        return self._probability

    def _fit(self, label_ids: list[int], vectors: list[list[int]]) -> BernoulliNaiveBayes:
        return BernoulliNaiveBayes(alpha=self.alpha).fit(vectors, label_ids)

    def _predict(self, model: BernoulliNaiveBayes, vector: list[int]) -> int:
        return model.predict(vector)

    def _predict_proba(
        self, model: BernoulliNaiveBayes, vector: list[int]
    ) -> tuple[int, dict[int, float]]:
        proba = model.predict_proba(vector)
        return max(proba, key=proba.get), proba  # type: ignore[arg-type]

    def _save_model(self, model: BernoulliNaiveBayes, path: Path) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"version": "1.0", "model": model.to_dict()}, f)

    def _load_model(self, path: Path) -> Any:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return BernoulliNaiveBayes.from_dict(data["model"])
        except (UnicodeDecodeError, ValueError, KeyError, TypeError) as exc:
            raise CorruptArtifactError(f"Model artifact invalid: {path}: {exc}") from exc
