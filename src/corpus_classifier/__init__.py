"""Corpus Classifier -- domain-scoped bag-of-words text classification."""

__version__ = "0.1.0"

from .classifier import Classifier
from .document import Document
from .domain import DEFAULT_DOMAIN_ID, Domain, DomainRegistry
from .engines import (
    ENGINES,
    BernoulliNaiveBayes,
    ClassificationResult,
    ClassifierEngine,
    NaiveBayesEngine,
    SVMEngine,
    SVMParameters,
)
from .exceptions import (
    ArtifactNotFoundError,
    ClassifierError,
    CorpusClassifierError,
    CorruptArtifactError,
    DocumentError,
    InsufficientTrainingDataError,
    InvalidFeatureInputError,
    InvalidPersistenceTargetError,
    NotTrainedError,
    StorageUnavailableError,
    UnknownLabelError,
)
from .preprocessing import STOP_WORDS, TextPreprocessor, extract_text_from_html, tokenize
from .storage import BlobStore, InMemoryBlobStore, SQLiteBlobStore

__all__ = [
    # Core
    "Classifier",
    "Document",
    "Domain",
    "DomainRegistry",
    "DEFAULT_DOMAIN_ID",
    # Engines
    "ENGINES",
    "ClassifierEngine",
    "ClassificationResult",
    "SVMEngine",
    "SVMParameters",
    "NaiveBayesEngine",
    "BernoulliNaiveBayes",
    # Preprocessing
    "TextPreprocessor",
    "STOP_WORDS",
    "extract_text_from_html",
    "tokenize",
    # Storage
    "BlobStore",
    "InMemoryBlobStore",
    "SQLiteBlobStore",
    # Errors
    "CorpusClassifierError",
    "DocumentError",
    "InvalidFeatureInputError",
    "ClassifierError",
    "InsufficientTrainingDataError",
    "NotTrainedError",
    "InvalidPersistenceTargetError",
    "ArtifactNotFoundError",
    "CorruptArtifactError",
    "StorageUnavailableError",
    "UnknownLabelError",
]
