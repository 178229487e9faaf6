"""Documents: token sets vectorized against their domain's dictionary."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any, Callable, Hashable, Optional, Sequence, Union

from .domain import DEFAULT_DOMAIN_ID, DomainRegistry, _hashable
from .exceptions import InvalidFeatureInputError
from .preprocessing import tokenize

if TYPE_CHECKING:
    from .domain import Domain

Tokenizer = Callable[[str], Sequence[str]]


class Document:
    """A labeled or unlabeled text, reduced to a binary feature vector.

    Constructing a document registers its domain (if needed), caches it
    when it carries a label and the domain is unlocked, grows the domain
    dictionary, and computes the feature vector.

    Example::

        registry = DomainRegistry()
        Document("cat dog", registry, label="A", domain_id="pets")
        Document("dog bird", registry, label="B", domain_id="pets")
        registry.find("pets").dictionary   # {0: 'cat', 1: 'dog', 2: 'bird'}

    Args:
        source: Raw text, or a pre-tokenized list/tuple of strings.
        registry: Registry holding the document's domain.
        label: Classification target; only labeled documents are cached.
        domain_id: Domain the document belongs to.
        id: Document id, unique within the domain (generated if omitted).
        metadata: Arbitrary caller data (JSON-serializable if the domain
            will be persisted).
        preprocessor: Token source for text input. Defaults to
            ``tokenize`` (``TextPreprocessor`` with its default settings).

    Raises:
        InvalidFeatureInputError: If ``source`` is neither a string nor a
            list/tuple made only of strings.
    """

    def __init__(
        self,
        source: Union[str, Sequence[str]],
        registry: DomainRegistry,
        *,
        label: Optional[Hashable] = None,
        domain_id: Hashable = DEFAULT_DOMAIN_ID,
        id: Optional[Hashable] = None,
        metadata: Optional[dict] = None,
        preprocessor: Optional[Tokenizer] = None,
    ) -> None:
        if isinstance(source, str):
            tokenizer = preprocessor or tokenize
            self.raw_text = source
            tokens = list(tokenizer(source))
        elif isinstance(source, (list, tuple)):
            if not all(isinstance(t, str) for t in source):
                raise InvalidFeatureInputError("Token sequences may only contain strings")
            self.raw_text = " ".join(source)
            tokens = list(source)
        else:
            raise InvalidFeatureInputError(
                f"Document source must be text or a list of tokens, got {type(source).__name__}"
            )

        self._id = id if id is not None else uuid.uuid4().hex
        self._tokens = tuple(tokens)
        self._features = tuple(dict.fromkeys(tokens))
        self._feature_vector: list[int] = []
        self.domain_id = domain_id
        self.label = label
        self.metadata = metadata if metadata is not None else {}

        registry.register(domain_id).ingest(self)

    def __repr__(self) -> str:
        return (
            f"Document(id={self._id!r}, domain_id={self.domain_id!r}, "
            f"label={self.label!r}, features={len(self._features)})"
        )

    # ------------------------------------------------------------------
    # Read-only attributes
    # ------------------------------------------------------------------

    @property
    def id(self) -> Hashable:
        return self._id

    @property
    def tokens(self) -> tuple[str, ...]:
        """Normalized tokens in source order, duplicates included."""
        return self._tokens

    @property
    def features(self) -> tuple[str, ...]:
        """Unique tokens in first-occurrence order."""
        return self._features

    @property
    def feature_set(self) -> frozenset[str]:
        return frozenset(self._features)

    @property
    def feature_vector(self) -> list[int]:
        """Binary vector over the domain dictionary, in feature-id order."""
        return list(self._feature_vector)

    def recalculate_feature_vector(self, domain: "Domain") -> None:
        """Recompute the vector against ``domain``'s current dictionary."""
        self._feature_vector = domain.vectorize(self._features)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "id": self._id,
            "domain_id": self.domain_id,
            "tokens": list(self._tokens),
            "label": self.label,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Document":
        """Restore a document without touching any registry.

        The feature vector is left empty; the owning domain recomputes it.
        """
        tokens = data["tokens"]
        if not all(isinstance(t, str) for t in tokens):
            raise ValueError("Serialized document tokens must be strings")

        doc = cls.__new__(cls)
        doc._id = _hashable(data["id"])
        doc._tokens = tuple(tokens)
        doc._features = tuple(dict.fromkeys(tokens))
        doc._feature_vector = []
        doc.domain_id = _hashable(data["domain_id"])
        doc.raw_text = " ".join(tokens)
        doc.label = _hashable(data["label"])
        doc.metadata = data.get("metadata") or {}
        return doc
