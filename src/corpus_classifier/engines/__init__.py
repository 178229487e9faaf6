"""Classifier engines: a shared lifecycle with pluggable learning models."""

from .base import ClassificationResult, ClassifierEngine, DOMAIN_SUFFIX, MODEL_SUFFIX
from .bayes import BernoulliNaiveBayes, NaiveBayesEngine
from .svm import SVMEngine, SVMParameters

ENGINES: dict[str, type[ClassifierEngine]] = {
    SVMEngine.name: SVMEngine,
    NaiveBayesEngine.name: NaiveBayesEngine,
}

__all__ = [
    "ENGINES",
    "ClassificationResult",
    "ClassifierEngine",
    "DOMAIN_SUFFIX",
    "MODEL_SUFFIX",
    "BernoulliNaiveBayes",
    "NaiveBayesEngine",
    "SVMEngine",
    "SVMParameters",
]
