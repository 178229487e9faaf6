"""Classifier engine lifecycle shared by every concrete engine.

``ClassifierEngine`` implements training-set assembly, domain locking,
label mapping and the persistence protocol (two artifacts, ``<base>.dd``
and ``<base>.svm``, written to a file path or a blob store). Subclasses
plug in a learning capability through five hooks: ``_fit``, ``_predict``,
``_predict_proba``, ``_save_model`` and ``_load_model``.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Hashable, NamedTuple, Optional, Union

from ..document import Document
from ..domain import Domain, DomainRegistry
from ..exceptions import (
    ArtifactNotFoundError,
    ClassifierError,
    CorruptArtifactError,
    InsufficientTrainingDataError,
    InvalidFeatureInputError,
    InvalidPersistenceTargetError,
    NotTrainedError,
    StorageUnavailableError,
    UnknownLabelError,
)
from ..storage import BlobStore

logger = logging.getLogger(__name__)

DOMAIN_SUFFIX = ".dd"
MODEL_SUFFIX = ".svm"

_UNSAFE_NAME_RE = re.compile(r"[^\w.-]+")

FileTarget = Union[str, os.PathLike, bool]


class ClassificationResult(NamedTuple):
    """Predicted label and, in probability mode, per-label probabilities."""

    label: Hashable
    probabilities: dict

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "probabilities": {
                str(k): round(v, 4) for k, v in sorted(
                    self.probabilities.items(),
                    key=lambda x: x[1],
                    reverse=True,
                )
            },
        }


class ClassifierEngine(ABC):
    """Train / classify / persist / load lifecycle around a learning model.

    Args:
        registry: Registry that loaded domains are registered with.
    """

    #: Short name used by the ``Classifier`` facade and the CLI.
    name: str = ""

    def __init__(self, registry: DomainRegistry) -> None:
        self.registry = registry
        self._trained_domain: Optional[Domain] = None
        self._model: Any = None
        self._trained = False

    def __repr__(self) -> str:
        domain_id = self._trained_domain.id if self._trained_domain else None
        return f"{type(self).__name__}(trained={self._trained}, domain={domain_id!r})"

    # ------------------------------------------------------------------
    # Learning capability hooks
    # ------------------------------------------------------------------

    @property
    @abstractmethod
    def probability(self) -> bool:
        """Whether ``classify`` reports per-label probabilities."""
        ...

    @abstractmethod
    def _fit(self, label_ids: list[int], vectors: list[list[int]]) -> Any:
        """Fit and return a model."""
        ...

    @abstractmethod
    def _predict(self, model: Any, vector: list[int]) -> int:
        """Predict a label id."""
        ...

    @abstractmethod
    def _predict_proba(self, model: Any, vector: list[int]) -> tuple[int, dict[int, float]]:
        """Predict a label id together with a probability per label id."""
        ...

    @abstractmethod
    def _save_model(self, model: Any, path: Path) -> None:
        """Write the model's native serialization to ``path``."""
        ...

    @abstractmethod
    def _load_model(self, path: Path) -> Any:
        """Read a model written by ``_save_model``.

        Must raise ``CorruptArtifactError`` for unreadable content.
        """
        ...

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def trained(self) -> bool:
        """Whether the engine holds a model (trained or loaded)."""
        return self._trained

    @property
    def trained_domain(self) -> Optional[Domain]:
        return self._trained_domain

    @property
    def model(self) -> Any:
        return self._model

    # ------------------------------------------------------------------
    # Training and classification
    # ------------------------------------------------------------------

    def train(self, domain: Domain) -> "ClassifierEngine":
        """Train on every labeled document cached in ``domain``.

        On success the domain is locked: later documents built against it
        are neither cached nor able to grow its dictionary.

        Returns:
            Self (for method chaining).

        Raises:
            InsufficientTrainingDataError: If the domain holds no labeled
                documents, no features, or labels without ids.
        """
        label_ids: list[int] = []
        vectors: list[list[int]] = []
        for doc in domain.cache.values():
            if doc.label is None:
                continue
            label_id = domain.labels.get(doc.label)
            if label_id is not None:
                label_ids.append(label_id)
            vectors.append(doc.feature_vector)

        if not label_ids or not vectors or len(label_ids) != len(vectors):
            raise InsufficientTrainingDataError(
                f"Invalid amount of labels or examples: {len(label_ids)}/{len(vectors)}"
            )
        if not domain.dictionary:
            raise InsufficientTrainingDataError(
                f"Domain {domain.id!r} has an empty feature dictionary"
            )

        self._model = self._fit(label_ids, vectors)
        self._trained_domain = domain
        domain.lock()
        self._trained = True

        logger.info(
            "Trained %s on domain %r: %d documents, %d labels, %d features",
            type(self).__name__, domain.id, len(vectors), len(set(label_ids)),
            len(domain.dictionary),
        )
        return self

    def classify(self, document: Document) -> ClassificationResult:
        """Predict the label of ``document`` and assign it.

        Returns:
            ``(label, probabilities)``; probabilities are empty unless the
            engine runs in probability mode.

        Raises:
            NotTrainedError: If the engine is neither trained nor loaded.
            InvalidFeatureInputError: If the document vector does not match
                the trained dictionary.
            UnknownLabelError: If the model predicts an unmapped label id.
        """
        if not self._trained or self._trained_domain is None:
            raise NotTrainedError("Must train classifier before attempting to classify document")

        domain = self._trained_domain
        vector = document.feature_vector
        if len(vector) != len(domain.dictionary):
            raise InvalidFeatureInputError(
                f"Feature vector has {len(vector)} components, trained dictionary has "
                f"{len(domain.dictionary)}; build the document against domain {domain.id!r}"
            )

        probabilities: dict = {}
        if self.probability:
            label_id, raw = self._predict_proba(self._model, vector)
            probabilities = {label: 0.0 for label in domain.labels}
            for raw_id, prob in raw.items():
                probabilities[self._label_for(raw_id)] = prob
        else:
            label_id = self._predict(self._model, vector)

        label = self._label_for(label_id)
        document.label = label
        return ClassificationResult(label, probabilities)

    def _label_for(self, label_id: int) -> Hashable:
        try:
            return self._trained_domain.label_for(label_id)
        except KeyError:
            raise UnknownLabelError(
                f"Model returned label id {label_id} unknown to domain {self._trained_domain.id!r}"
            ) from None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def persist(self, **target: Any) -> Union[str, bool]:
        """Like ``persist_strict`` but returns ``False`` on engine errors."""
        try:
            return self.persist_strict(**target)
        except ClassifierError as exc:
            logger.warning("Persisting classifier failed: %s", exc)
            return False

    def persist_strict(
        self,
        *,
        file: Optional[FileTarget] = None,
        store: Optional[BlobStore] = None,
        key: Optional[str] = None,
        bucket: Optional[str] = None,
    ) -> str:
        """Write the trained domain and model as ``.dd`` / ``.svm`` artifacts.

        Targets are checked in order; the first one given wins.

        Args:
            file: Base path for the two files. A trailing ``.dd`` or ``.svm``
                suffix is ignored. An existing directory, or ``True``, gets a
                ``<domain id>_<timestamp>`` name (``True`` uses the working
                directory).
            store: Blob store to write both artifacts to.
            key: Base key within ``store`` (defaults to the domain id).
            bucket: Optional bucket within ``store``.

        Returns:
            The base path or key the artifacts were written under.

        Raises:
            NotTrainedError: If there is nothing to persist.
            InvalidPersistenceTargetError: If no usable target was given.
            StorageUnavailableError: If writing fails.
            CorruptArtifactError: If the domain cannot be serialized (e.g. a
                cached document carries non-JSON metadata).
        """
        if not self._trained or self._trained_domain is None:
            raise NotTrainedError(
                "Must train classifier before attempting to persist classification model"
            )

        if file is not None and file is not False:
            return self._persist_to_file(self._file_base(file, derive=True))
        if store is not None:
            return self._persist_to_store(store, key, bucket)
        raise InvalidPersistenceTargetError("No valid persistence target specified")

    def load(self, **target: Any) -> bool:
        """Like ``load_strict`` but returns ``False`` on engine errors."""
        try:
            return self.load_strict(**target)
        except ClassifierError as exc:
            logger.warning("Loading classifier failed: %s", exc)
            return False

    def load_strict(
        self,
        *,
        file: Optional[Union[str, os.PathLike]] = None,
        store: Optional[BlobStore] = None,
        key: Optional[str] = None,
        bucket: Optional[str] = None,
    ) -> bool:
        """Load artifacts written by ``persist_strict`` and mark the engine trained.

        The loaded domain replaces any domain registered under the same id.

        Raises:
            InvalidPersistenceTargetError: If no usable target was given.
            ArtifactNotFoundError: If either artifact is missing.
            CorruptArtifactError: If an artifact cannot be deserialized.
            StorageUnavailableError: If reading fails.
        """
        if file is not None and file is not False:
            domain, model = self._load_from_file(self._file_base(file, derive=False))
        elif store is not None:
            domain, model = self._load_from_store(store, key, bucket)
        else:
            raise InvalidPersistenceTargetError("No valid persistence target specified")

        self.registry.register(domain)
        self._trained_domain = domain
        self._model = model
        self._trained = True
        logger.info("Loaded %s for domain %r", type(self).__name__, domain.id)
        return True

    # -- file targets ---------------------------------------------------

    def _file_base(self, file: FileTarget, derive: bool) -> Path:
        if file is True and derive:
            return Path(self._derived_name(timestamped=True))
        if isinstance(file, bool) or not isinstance(file, (str, os.PathLike)):
            raise InvalidPersistenceTargetError(f"Invalid file target: {file!r}")

        path = Path(file)
        if str(file) == "":
            raise InvalidPersistenceTargetError("Empty file target")
        if derive and path.is_dir():
            return path / self._derived_name(timestamped=True)
        if path.suffix in (DOMAIN_SUFFIX, MODEL_SUFFIX):
            return path.with_suffix("")
        return path

    def _persist_to_file(self, base: Path) -> str:
        domain_path = Path(f"{base}{DOMAIN_SUFFIX}")
        model_path = Path(f"{base}{MODEL_SUFFIX}")
        payload = self._dump_domain()

        try:
            domain_path.write_bytes(payload)
            self._save_model(self._model, model_path)
        except Exception as exc:
            # Never leave one artifact without the other
            domain_path.unlink(missing_ok=True)
            model_path.unlink(missing_ok=True)
            if isinstance(exc, OSError):
                raise StorageUnavailableError(f"Could not write classifier to {base}: {exc}") from exc
            raise

        logger.info("Persisted classifier to %s{%s,%s}", base, DOMAIN_SUFFIX, MODEL_SUFFIX)
        return str(base)

    def _load_from_file(self, base: Path) -> tuple[Domain, Any]:
        domain_path = Path(f"{base}{DOMAIN_SUFFIX}")
        model_path = Path(f"{base}{MODEL_SUFFIX}")

        for path in (domain_path, model_path):
            if not path.is_file():
                raise ArtifactNotFoundError(f"File not found: {path}")

        try:
            payload = domain_path.read_bytes()
        except OSError as exc:
            raise StorageUnavailableError(f"Could not read {domain_path}: {exc}") from exc

        domain = self._restore_domain(payload)
        return domain, self._load_model(model_path)

    # -- blob store targets ---------------------------------------------

    def _store_key(self, store: Any, key: Optional[str]) -> str:
        if not isinstance(store, BlobStore):
            raise InvalidPersistenceTargetError(f"Not a blob store: {store!r}")
        if key is not None and (not isinstance(key, str) or not key.strip()):
            raise InvalidPersistenceTargetError(f"Invalid blob key: {key!r}")
        return key

    def _persist_to_store(self, store: Any, key: Optional[str], bucket: Optional[str]) -> str:
        key = self._store_key(store, key) or self._derived_name(timestamped=False)
        payload = self._dump_domain()

        with tempfile.TemporaryDirectory(prefix="corpus-classifier-") as staging:
            model_path = Path(staging) / f"model{MODEL_SUFFIX}"
            try:
                self._save_model(self._model, model_path)
                model_bytes = model_path.read_bytes()
            except OSError as exc:
                raise StorageUnavailableError(f"Could not stage model: {exc}") from exc

        names = (f"{key}{DOMAIN_SUFFIX}", f"{key}{MODEL_SUFFIX}")
        try:
            store.write(names[0], payload, bucket)
            store.write(names[1], model_bytes, bucket)
        except Exception as exc:
            # Never leave one artifact without the other
            self._discard_blobs(store, names, bucket)
            if isinstance(exc, OSError):
                raise StorageUnavailableError(f"Could not write classifier to store: {exc}") from exc
            raise

        logger.info("Persisted classifier to blob store key %r (bucket %r)", key, bucket)
        return key

    @staticmethod
    def _discard_blobs(store: BlobStore, names: tuple[str, ...], bucket: Optional[str]) -> None:
        for name in names:
            try:
                store.delete(name, bucket)
            except StorageUnavailableError as exc:
                logger.warning("Could not remove partial artifact %r: %s", name, exc)

    def _load_from_store(
        self, store: Any, key: Optional[str], bucket: Optional[str]
    ) -> tuple[Domain, Any]:
        key = self._store_key(store, key)
        if key is None:
            raise InvalidPersistenceTargetError("A key is required to load from a blob store")

        names = (f"{key}{DOMAIN_SUFFIX}", f"{key}{MODEL_SUFFIX}")
        for name in names:
            if not store.exists(name, bucket):
                raise ArtifactNotFoundError(f"Blob not found: {name}")

        try:
            payload = store.read(names[0], bucket)
            model_bytes = store.read(names[1], bucket)
        except KeyError as exc:
            raise ArtifactNotFoundError(f"Blob not found: {exc}") from exc
        except OSError as exc:
            raise StorageUnavailableError(f"Could not read classifier from store: {exc}") from exc

        domain = self._restore_domain(payload)
        with tempfile.TemporaryDirectory(prefix="corpus-classifier-") as staging:
            model_path = Path(staging) / f"model{MODEL_SUFFIX}"
            model_path.write_bytes(model_bytes)
            model = self._load_model(model_path)
        return domain, model

    # -- helpers ----------------------------------------------------------

    def _derived_name(self, timestamped: bool) -> str:
        name = _UNSAFE_NAME_RE.sub("_", str(self._trained_domain.id)) or "domain"
        if timestamped:
            name = f"{name}_{int(time.time())}"
        return name

    def _dump_domain(self) -> bytes:
        try:
            return json.dumps(self._trained_domain.to_dict()).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise CorruptArtifactError(
                f"Domain {self._trained_domain.id!r} cannot be serialized: {exc}"
            ) from exc

    @staticmethod
    def _restore_domain(payload: bytes) -> Domain:
        try:
            data = json.loads(payload.decode("utf-8"))
            return Domain.from_dict(data)
        except (UnicodeDecodeError, ValueError, KeyError, TypeError, AttributeError) as exc:
            raise CorruptArtifactError(f"Domain artifact invalid: {exc}") from exc
