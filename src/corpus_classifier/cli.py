"""Command-line interface for corpus-classifier.

Provides ``train``, ``classify`` and ``inspect`` commands with rich
terminal output using the ``click`` and ``rich`` libraries.

Usage::

    corpus-classifier train corpus/ --output models/news
    corpus-classifier classify models/news article.txt other.html
    corpus-classifier inspect models/news
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .classifier import Classifier
from .domain import DEFAULT_DOMAIN_ID, Domain
from .engines import ENGINES
from .exceptions import CorpusClassifierError
from .preprocessing import extract_text_from_html

console = Console()

_TEXT_SUFFIXES = (".txt", ".text", ".md")
_HTML_SUFFIXES = (".html", ".htm")


def _read_text(path: Path) -> str:
    """Read a text or HTML file, reducing HTML to its readable text."""
    text = path.read_text(encoding="utf-8", errors="replace")
    if path.suffix.lower() in _HTML_SUFFIXES:
        return extract_text_from_html(text)
    return text


def _load_corpus(path: Path) -> list[tuple[str, str]]:
    """Load ``(text, label)`` pairs from a directory tree or a JSON Lines file.

    A directory holds one sub-directory per label; every text or HTML file
    inside is one document. A file is read as JSON Lines with ``text`` and
    ``label`` fields.
    """
    samples: list[tuple[str, str]] = []

    if path.is_dir():
        for label_dir in sorted(p for p in path.iterdir() if p.is_dir()):
            for file in sorted(label_dir.iterdir()):
                if file.suffix.lower() in _TEXT_SUFFIXES + _HTML_SUFFIXES:
                    samples.append((_read_text(file), label_dir.name))
        return samples

    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, 1):
            if not line.strip():
                continue
            try:
                record = json.loads(line)
                samples.append((record["text"], record["label"]))
            except (ValueError, KeyError, TypeError) as exc:
                raise click.BadParameter(
                    f"{path}:{line_no}: expected a JSON object with 'text' and 'label' ({exc})"
                ) from exc
    return samples


def _fail(exc: Exception) -> None:
    console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(1)


@click.group()
@click.version_option(package_name="corpus-classifier")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def main(verbose: bool) -> None:
    """📚 corpus-classifier: bag-of-words text classification.

    Train a classifier on a labeled corpus, persist it, and classify new
    documents against the frozen feature dictionary.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@main.command()
@click.argument("corpus", type=click.Path(exists=True, path_type=Path))
@click.option("--output", "-o", required=True, type=click.Path(path_type=Path),
              help="Base path for the .dd and .svm artifacts.")
@click.option("--engine", "-e", type=click.Choice(sorted(ENGINES)), default="svm",
              help="Classifier engine.")
@click.option("--domain", "-d", "domain_id", default=DEFAULT_DOMAIN_ID,
              help="Domain id for the corpus.")
@click.option("-C", "svm_c", type=float, default=None,
              help="SVM regularization parameter (svm engine only).")
@click.option("--no-probability", is_flag=True,
              help="Skip probability estimates.")
def train(
    corpus: Path,
    output: Path,
    engine: str,
    domain_id: str,
    svm_c: float | None,
    no_probability: bool,
) -> None:
    """Train a classifier on a labeled corpus and persist it.

    CORPUS is a directory with one sub-directory per label, or a JSON Lines
    file of {"text": ..., "label": ...} records.

    Example: corpus-classifier train corpus/ -o models/news
    """
    options: dict = {"probability": not no_probability}
    if svm_c is not None:
        if engine != "svm":
            raise click.UsageError("-C only applies to the svm engine")
        options["C"] = svm_c

    samples = _load_corpus(corpus)
    classifier = Classifier(engine, **options)

    with console.status("[bold blue]Building feature dictionary...", spinner="dots"):
        try:
            for text, label in samples:
                classifier.document(text, label=label, domain_id=domain_id)
        except CorpusClassifierError as e:
            _fail(e)

    domain = classifier.registry.register(domain_id)

    with console.status("[bold blue]Training...", spinner="dots"):
        try:
            classifier.train(domain)
            base = classifier.persist_strict(file=output)
        except CorpusClassifierError as e:
            _fail(e)

    _render_domain(domain, title=f"📚 Trained {engine} classifier")
    console.print(f"[dim]Saved to {base}.dd and {base}.svm[/]")


@main.command()
@click.argument("model", type=click.Path(path_type=Path))
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--engine", "-e", type=click.Choice(sorted(ENGINES)), default="svm",
              help="Engine the model was trained with.")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
def classify(model: Path, files: tuple[Path, ...], engine: str, output: str) -> None:
    """Classify documents with a persisted classifier.

    Example: corpus-classifier classify models/news article.txt
    """
    classifier = Classifier(engine)
    try:
        classifier.load_strict(file=model)
    except CorpusClassifierError as e:
        _fail(e)

    domain_id = classifier.engine.trained_domain.id
    results = []
    for file in files:
        document = classifier.document(_read_text(file), domain_id=domain_id, id=file.name)
        try:
            results.append((file.name, classifier.classify(document)))
        except CorpusClassifierError as e:
            _fail(e)

    if output == "json":
        click.echo(json.dumps(
            [{"file": name, **result.to_dict()} for name, result in results],
            indent=2,
        ))
        return

    table = Table(title=f"Classification: {model.name}", show_lines=False)
    table.add_column("File", style="white")
    table.add_column("Label", style="cyan")
    table.add_column("Conf.", justify="center", width=8)

    for name, result in results:
        confidence = result.probabilities.get(result.label)
        table.add_row(
            name,
            str(result.label),
            f"{confidence:.0%}" if confidence is not None else "-",
        )

    console.print(table)


@main.command()
@click.argument("model", type=click.Path(path_type=Path))
@click.option("--engine", "-e", type=click.Choice(sorted(ENGINES)), default="svm",
              help="Engine the model was trained with.")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
def inspect(model: Path, engine: str, output: str) -> None:
    """Show the domain stored with a persisted classifier.

    Example: corpus-classifier inspect models/news
    """
    classifier = Classifier(engine)
    try:
        classifier.load_strict(file=model)
    except CorpusClassifierError as e:
        _fail(e)

    domain = classifier.engine.trained_domain
    if output == "json":
        click.echo(json.dumps({
            "domain": domain.id,
            "locked": domain.locked,
            "labels": {str(label): label_id for label, label_id in domain.labels.items()},
            "features": len(domain.dictionary),
            "documents": len(domain.cache),
        }, indent=2))
    else:
        _render_domain(domain, title=f"📚 {model.name}")


# ------------------------------------------------------------------
# Rich rendering helpers
# ------------------------------------------------------------------

def _render_domain(domain: Domain, title: str) -> None:
    """Render a domain summary and per-label document counts."""
    console.print()
    console.print(Panel(
        f"[bold]Domain:[/] {domain.id}\n"
        f"Documents: {len(domain.cache)} | "
        f"Features: {len(domain.dictionary)} | "
        f"Labels: {len(domain.labels)} | "
        f"Locked: {'yes' if domain.locked else 'no'}",
        title=title,
        border_style="blue",
    ))

    counts: dict = {label: 0 for label in domain.labels}
    for doc in domain.cache.values():
        counts[doc.label] = counts.get(doc.label, 0) + 1

    table = Table(title="Labels", show_lines=False)
    table.add_column("Id", justify="right", width=4)
    table.add_column("Label", style="cyan")
    table.add_column("Documents", justify="right", width=10)

    for label, label_id in sorted(domain.labels.items(), key=lambda x: x[1]):
        table.add_row(str(label_id), str(label), str(counts.get(label, 0)))

    console.print(table)
    console.print()


if __name__ == "__main__":
    main()
