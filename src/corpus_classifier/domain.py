"""Domains: isolated corpus scopes with a shared, append-only dictionary.

A ``Domain`` owns the labeled document cache, the feature dictionary
(feature-id -> token) that fixes the layout of every feature vector, and
the label map (label -> label-id). Once a domain is locked, typically by
training a classifier on it, the dictionary and label map are frozen so
that vectors computed later keep the meaning the model was trained on.

Domains live in a ``DomainRegistry``. The registry is an ordinary object
passed to documents and engines; there is no process-wide state.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Hashable, Iterable, Iterator, Optional, Union

if TYPE_CHECKING:
    from .document import Document

logger = logging.getLogger(__name__)

DEFAULT_DOMAIN_ID = "default"

# Version tag written into serialized domains
SERIAL_VERSION = "1.0"


# ---------------------------------------------------------------------------
# Domain
# ---------------------------------------------------------------------------


class Domain:
    """Feature dictionary, label map and labeled-document cache for one corpus.

    Args:
        id: Identifier, unique within a registry. Must be JSON-serializable
            (``str`` or ``int``) for the domain to be persisted.
    """

    def __init__(self, id: Hashable) -> None:
        self.id = id
        self.cache: dict[Hashable, "Document"] = {}
        self.dictionary: dict[int, str] = {}
        self.labels: dict[Hashable, int] = {}
        self._feature_index: dict[str, int] = {}
        self._locked = False

    def __repr__(self) -> str:
        return (
            f"Domain(id={self.id!r}, documents={len(self.cache)}, "
            f"features={len(self.dictionary)}, labels={len(self.labels)}, "
            f"locked={self._locked})"
        )

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    @property
    def locked(self) -> bool:
        """Whether the dictionary and label map are frozen."""
        return self._locked

    def lock(self) -> None:
        """Freeze the dictionary, label map and cache."""
        self._locked = True

    def unlock(self) -> None:
        """Allow the domain to grow again."""
        self._locked = False

    # ------------------------------------------------------------------
    # Labels
    # ------------------------------------------------------------------

    def assign_label(self, label: Hashable) -> int:
        """Return the label id for ``label``, assigning the next one if unseen."""
        if label not in self.labels:
            self.labels[label] = max(self.labels.values(), default=-1) + 1
        return self.labels[label]

    def label_for(self, label_id: int) -> Hashable:
        """Reverse lookup of a label id.

        Raises:
            KeyError: If no label carries ``label_id``.
        """
        for label, known_id in self.labels.items():
            if known_id == label_id:
                return label
        raise KeyError(label_id)

    # ------------------------------------------------------------------
    # Documents and the feature dictionary
    # ------------------------------------------------------------------

    def ingest(self, document: "Document") -> None:
        """Fold a freshly constructed document into the domain.

        Labeled documents are cached while the domain is unlocked, the
        dictionary is rebuilt from the cache, and the document's vector is
        computed against the resulting dictionary. Documents arriving at a
        locked domain only get a vector.
        """
        if not self._locked:
            if document.label is not None:
                self.assign_label(document.label)
                self.cache[document.id] = document
            self.rebuild_dictionary()

        document.recalculate_feature_vector(self)

    def rebuild_dictionary(self) -> int:
        """Grow the dictionary from the cache and refresh every cached vector.

        Tokens are appended in cache order, then in each document's
        first-occurrence feature order. Existing feature ids never change.

        Returns:
            Number of tokens added. A locked domain is left untouched and
            0 is returned.
        """
        if self._locked:
            logger.warning("Domain %r is locked; dictionary rebuild skipped", self.id)
            return 0

        next_id = max(self.dictionary, default=-1) + 1
        added = 0
        for document in self.cache.values():
            for token in document.features:
                if token not in self._feature_index:
                    self.dictionary[next_id] = token
                    self._feature_index[token] = next_id
                    next_id += 1
                    added += 1

        if added:
            logger.debug(
                "Domain %r grew by %d features to %d", self.id, added, len(self.dictionary)
            )

        for document in self.cache.values():
            document.recalculate_feature_vector(self)

        return added

    def feature_id(self, token: str) -> Optional[int]:
        """Feature id assigned to ``token``, or ``None``."""
        return self._feature_index.get(token)

    def vectorize(self, features: Iterable[str]) -> list[int]:
        """Binary presence vector of ``features`` in feature-id order."""
        present = set(features)
        return [1 if self.dictionary[i] in present else 0 for i in range(len(self.dictionary))]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        """Serialize the domain, including its cached documents."""
        return {
            "version": SERIAL_VERSION,
            "id": self.id,
            "locked": self._locked,
            "dictionary": [self.dictionary[i] for i in range(len(self.dictionary))],
            "labels": [[label, label_id] for label, label_id in self.labels.items()],
            "documents": [doc.to_dict() for doc in self.cache.values()],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Domain":
        """Rebuild a domain serialized with ``to_dict``.

        Raises:
            ValueError: If the data violates the domain invariants
                (duplicate tokens, non-integer or duplicate label ids,
                unknown version).
            KeyError, TypeError: If required fields are missing or mistyped.
        """
        from .document import Document

        if data.get("version") != SERIAL_VERSION:
            raise ValueError(f"Unsupported domain format version: {data.get('version')!r}")

        tokens = data["dictionary"]
        if not all(isinstance(t, str) for t in tokens):
            raise ValueError("Dictionary entries must be strings")
        if len(set(tokens)) != len(tokens):
            raise ValueError("Dictionary contains duplicate tokens")

        domain = cls(_hashable(data["id"]))
        domain.dictionary = dict(enumerate(tokens))
        domain._feature_index = {token: i for i, token in enumerate(tokens)}

        for label, label_id in data["labels"]:
            if not isinstance(label_id, int) or isinstance(label_id, bool):
                raise ValueError(f"Label id must be an integer, got {label_id!r}")
            domain.labels[_hashable(label)] = label_id
        if len(set(domain.labels.values())) != len(domain.labels):
            raise ValueError("Label ids are not unique")

        for doc_data in data["documents"]:
            document = Document.from_dict(doc_data)
            document.recalculate_feature_vector(domain)
            domain.cache[document.id] = document

        domain._locked = bool(data["locked"])
        return domain


def _hashable(value: Any) -> Hashable:
    """JSON turns tuples into lists; turn them back so they can key a dict."""
    if isinstance(value, list):
        return tuple(_hashable(v) for v in value)
    return value


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class DomainRegistry:
    """Mapping of domain ids to live ``Domain`` instances.

    Example::

        registry = DomainRegistry()
        domain = registry.register("news")
        registry.find("news") is domain      # True
        registry.deregister("news")          # True
    """

    def __init__(self) -> None:
        self._domains: dict[Hashable, Domain] = {}

    def __contains__(self, domain_id: object) -> bool:
        return domain_id in self._domains

    def __len__(self) -> int:
        return len(self._domains)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._domains)

    def ids(self) -> list[Hashable]:
        """Registered domain ids."""
        return list(self._domains)

    def register(self, domain_or_id: Union[Domain, Hashable]) -> Domain:
        """Register a domain by instance or id.

        A ``Domain`` instance always replaces whatever is registered under
        its id. A bare id returns the existing domain, or a new empty one.
        """
        if isinstance(domain_or_id, Domain):
            self._domains[domain_or_id.id] = domain_or_id
            return domain_or_id

        domain = self._domains.get(domain_or_id)
        if domain is None:
            domain = Domain(domain_or_id)
            self._domains[domain_or_id] = domain
            logger.debug("Registered new domain %r", domain_or_id)
        return domain

    def find(self, domain_id: Hashable) -> Optional[Domain]:
        """Return the registered domain, or ``None``."""
        return self._domains.get(domain_id)

    def deregister(self, domain_or_id: Union[Domain, Hashable]) -> bool:
        """Remove a domain. Returns whether one was registered."""
        domain_id = domain_or_id.id if isinstance(domain_or_id, Domain) else domain_or_id
        return self._domains.pop(domain_id, None) is not None
