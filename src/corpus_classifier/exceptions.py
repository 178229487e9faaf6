"""Exception hierarchy for corpus-classifier.

Every error raised on purpose by the package derives from
``CorpusClassifierError``. Engine lifecycle failures derive from
``ClassifierError``; the non-raising ``persist()`` and ``load()`` helpers
swallow exactly that branch and nothing else.
"""

from __future__ import annotations


class CorpusClassifierError(Exception):
    """Base class for all corpus-classifier errors."""


# ---------------------------------------------------------------------------
# Document errors
# ---------------------------------------------------------------------------


class DocumentError(CorpusClassifierError):
    """A document could not be constructed."""


class InvalidFeatureInputError(DocumentError, ValueError):
    """Document source is neither text nor a sequence of string tokens."""


# ---------------------------------------------------------------------------
# Classifier engine errors
# ---------------------------------------------------------------------------


class ClassifierError(CorpusClassifierError):
    """Base class for classifier engine failures."""


class InsufficientTrainingDataError(ClassifierError):
    """The domain holds no labeled documents to train on."""


class NotTrainedError(ClassifierError):
    """The operation requires a trained (or loaded) engine."""


class InvalidPersistenceTargetError(ClassifierError):
    """No usable persistence target was given."""


class ArtifactNotFoundError(ClassifierError):
    """A ``.dd`` or ``.svm`` artifact is missing."""


class CorruptArtifactError(ClassifierError):
    """An artifact exists but cannot be deserialized."""


class StorageUnavailableError(ClassifierError):
    """The underlying file system or blob store failed."""


class UnknownLabelError(ClassifierError):
    """The model predicted a label id the trained domain does not know."""
