"""High-level classifier: one engine, one registry, one uniform interface.

``Classifier`` picks a concrete engine by name (or wraps one you built)
and forwards the engine lifecycle to it::

    classifier = Classifier("svm", probability=False)
    classifier.document("cheap pills online", label="spam", domain_id="mail")
    classifier.document("lunch on friday?", label="ham", domain_id="mail")
    classifier.train(classifier.registry.find("mail"))

    label, probabilities = classifier.classify(
        classifier.document("cheap lunch pills", domain_id="mail")
    )
    classifier.persist_strict(file="models/mail")
"""

from __future__ import annotations

from typing import Any, Hashable, Optional, Sequence, Union

from .document import Document
from .domain import DEFAULT_DOMAIN_ID, Domain, DomainRegistry
from .engines import ENGINES, ClassificationResult, ClassifierEngine


class Classifier:
    """Facade over a ``ClassifierEngine``.

    Args:
        engine: Engine name (``"svm"`` or ``"naive_bayes"``) or an engine
            instance. An instance brings its own registry.
        registry: Registry for a named engine. A new one is created when
            omitted.
        **engine_options: Keyword arguments for a named engine's
            constructor (e.g. ``C=2`` or ``probability=False``).

    Raises:
        ValueError: If ``engine`` is neither a known name nor an engine
            instance, or options are given alongside an instance.
    """

    def __init__(
        self,
        engine: Union[str, ClassifierEngine] = "svm",
        registry: Optional[DomainRegistry] = None,
        **engine_options: Any,
    ) -> None:
        if isinstance(engine, ClassifierEngine):
            if registry is not None or engine_options:
                raise ValueError("Pass registry and options to the engine instance itself")
            self._engine = engine
        elif isinstance(engine, str) and engine in ENGINES:
            registry = registry if registry is not None else DomainRegistry()
            self._engine = ENGINES[engine](registry, **engine_options)
        else:
            raise ValueError(
                f"Unknown classifier engine: {engine!r}. Known: {sorted(ENGINES)}"
            )

    def __repr__(self) -> str:
        return f"Classifier({self._engine!r})"

    @property
    def engine(self) -> ClassifierEngine:
        return self._engine

    @property
    def registry(self) -> DomainRegistry:
        return self._engine.registry

    @property
    def trained(self) -> bool:
        return self._engine.trained

    def document(
        self,
        source: Union[str, Sequence[str]],
        *,
        label: Optional[Hashable] = None,
        domain_id: Hashable = DEFAULT_DOMAIN_ID,
        id: Optional[Hashable] = None,
        metadata: Optional[dict] = None,
        preprocessor: Any = None,
    ) -> Document:
        """Build a ``Document`` against this classifier's registry."""
        return Document(
            source,
            self.registry,
            label=label,
            domain_id=domain_id,
            id=id,
            metadata=metadata,
            preprocessor=preprocessor,
        )

    def train(self, domain: Domain) -> "Classifier":
        self._engine.train(domain)
        return self

    def classify(self, document: Document) -> ClassificationResult:
        return self._engine.classify(document)

    def persist(self, **target: Any) -> Union[str, bool]:
        return self._engine.persist(**target)

    def persist_strict(self, **target: Any) -> str:
        return self._engine.persist_strict(**target)

    def load(self, **target: Any) -> bool:
        return self._engine.load(**target)

    def load_strict(self, **target: Any) -> bool:
        return self._engine.load_strict(**target)
