"""Text normalization: the default token source for documents.

Turns raw text into the ordered sequence of normalized tokens a
``Document`` is built from. Processing is regex based and deterministic:

1. Unicode cleanup (NFC, typographic quotes and dashes to ASCII)
2. Symbol and numeral stripping
3. Whitespace tokenization and lowercasing
4. Stop-word removal
5. Porter stemming (NLTK), or any caller-supplied stemmer
6. Minimum token length filtering

Any callable ``tokenize(text) -> list[str]`` can stand in for
``TextPreprocessor.preprocess``; documents only need the tokens.
"""

from __future__ import annotations

import re
import unicodedata
from html.parser import HTMLParser
from typing import Callable, Iterable, Optional

from nltk.stem import PorterStemmer

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

STOP_WORDS: frozenset[str] = frozenset(
    {
        "a", "able", "about", "across", "after", "all", "almost", "also",
        "am", "among", "an", "and", "any", "are", "as", "at", "be",
        "because", "been", "but", "by", "can", "cannot", "could", "dear",
        "did", "do", "does", "either", "else", "ever", "every", "for",
        "from", "get", "got", "had", "has", "have", "he", "her", "hers",
        "him", "his", "how", "however", "i", "if", "in", "into", "is", "it",
        "its", "just", "least", "let", "like", "likely", "may", "me",
        "might", "most", "must", "my", "neither", "no", "nor", "not", "of",
        "off", "often", "on", "only", "or", "other", "our", "own", "rather",
        "said", "say", "says", "she", "should", "since", "so", "some",
        "than", "that", "the", "their", "them", "then", "there", "these",
        "they", "this", "tis", "to", "too", "twas", "us", "wants", "was",
        "we", "were", "what", "when", "where", "which", "while", "who",
        "whom", "why", "will", "with", "would", "yet", "you", "your",
    }
)

# Everything that is not a word character or whitespace. Underscore is
# covered by \w, so it is stripped separately.
_SYMBOL_RE = re.compile(r"[^\w\s]|_")
_NUMERAL_RE = re.compile(r"\d")
_WHITESPACE_RE = re.compile(r"\s+")

# Tags whose text content is never readable prose
_SKIPPED_TAGS: frozenset[str] = frozenset(
    {"script", "style", "head", "title", "iframe", "object", "embed", "form", "noscript"}
)


# ---------------------------------------------------------------------------
# HTML text extraction
# ---------------------------------------------------------------------------


class _ReadableTextExtractor(HTMLParser):
    """Collect non-blank text nodes outside of skipped tags."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.chunks: list[str] = []
        self._skip_depth = 0

    def handle_starttag(self, tag: str, attrs: list) -> None:
        if tag in _SKIPPED_TAGS:
            self._skip_depth += 1

    def handle_endtag(self, tag: str) -> None:
        if tag in _SKIPPED_TAGS and self._skip_depth:
            self._skip_depth -= 1

    def handle_data(self, data: str) -> None:
        if not self._skip_depth and data.strip():
            self.chunks.append(data)


def extract_text_from_html(
    html: str,
    is_readable: Optional[Callable[[str], bool]] = None,
) -> str:
    """Extract readable text chunks from an HTML document.

    Script, style, head and embedded-media content is dropped. Remaining
    non-blank text nodes are joined with newlines.

    Args:
        html: Raw HTML markup.
        is_readable: Optional predicate deciding per text chunk whether it
            is kept. All chunks are kept when omitted.

    Returns:
        Readable text, one chunk per line.
    """
    extractor = _ReadableTextExtractor()
    extractor.feed(html)
    extractor.close()

    chunks = extractor.chunks
    if is_readable is not None:
        chunks = [chunk for chunk in chunks if is_readable(chunk)]
    return "\n".join(chunks)


# ---------------------------------------------------------------------------
# Text Preprocessor
# ---------------------------------------------------------------------------


class TextPreprocessor:
    """Normalize raw text into feature tokens.

    Example::

        preprocessor = TextPreprocessor()
        preprocessor.preprocess("Some text for testing text features")
        # ['text', 'test', 'text', 'featur']

    Args:
        min_token_length: Tokens shorter than this are dropped (0 disables).
        strip_symbols: Remove punctuation and other symbols before tokenizing.
        strip_numerals: Remove digits before tokenizing.
        strip_stop_words: Drop tokens found in ``stop_words``.
        stop_words: Stop-word collection (lowercase).
        stem_words: Reduce tokens to their stems.
        stemmer: Callable mapping a token to its stem. Defaults to NLTK's
            ``PorterStemmer``; ignored when ``stem_words`` is false.
    """

    def __init__(
        self,
        min_token_length: int = 3,
        strip_symbols: bool = True,
        strip_numerals: bool = True,
        strip_stop_words: bool = True,
        stop_words: Iterable[str] = STOP_WORDS,
        stem_words: bool = True,
        stemmer: Optional[Callable[[str], str]] = None,
    ) -> None:
        self.min_token_length = min_token_length
        self.strip_symbols = strip_symbols
        self.strip_numerals = strip_numerals
        self.strip_stop_words = strip_stop_words
        self.stop_words = frozenset(stop_words)
        self.stem_words = stem_words
        self.stemmer = stemmer if stemmer is not None else PorterStemmer().stem

    def __call__(self, text: str) -> list[str]:
        return self.preprocess(text)

    @staticmethod
    def clean(text: str) -> str:
        """Normalize Unicode and collapse whitespace."""
        if not text:
            return ""

        text = unicodedata.normalize("NFC", text)
        text = text.replace("“", '"').replace("”", '"')
        text = text.replace("‘", "'").replace("’", "'")
        text = text.replace("–", "-").replace("—", "--")
        text = text.replace("\xa0", " ")
        return _WHITESPACE_RE.sub(" ", text).strip()

    @staticmethod
    def tokenize(text: str) -> list[str]:
        """Split text on whitespace, keeping case and symbols intact."""
        return text.split()

    def preprocess(self, text: str) -> list[str]:
        """Run the full normalization pipeline.

        Args:
            text: Raw document text.

        Returns:
            Ordered list of normalized tokens (duplicates preserved).
        """
        text = self.clean(text)

        if self.strip_symbols:
            text = _SYMBOL_RE.sub("", text)
        if self.strip_numerals:
            text = _NUMERAL_RE.sub("", text)

        tokens = [t.lower() for t in self.tokenize(text)]

        if self.strip_stop_words:
            tokens = [t for t in tokens if t not in self.stop_words]

        if self.stem_words:
            tokens = [self.stemmer(t) for t in tokens]

        if self.min_token_length:
            tokens = [t for t in tokens if len(t) >= self.min_token_length]

        return tokens

    def preprocess_html(self, html: str) -> list[str]:
        """Extract readable text from HTML, then preprocess it."""
        return self.preprocess(extract_text_from_html(html))


_DEFAULT_PREPROCESSOR = TextPreprocessor()


def tokenize(text: str) -> list[str]:
    """Normalize text with the default ``TextPreprocessor`` settings."""
    return _DEFAULT_PREPROCESSOR.preprocess(text)
