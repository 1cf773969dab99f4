"""
Text primitives shared by the matcher and the diff generator.

Word sets are deliberately simple (lowercase, whitespace split, punctuation
kept) so that matching and change-percent use exactly the same measure.
Sentences come from nltk's Punkt tokenizer, primed with the abbreviations
that show up in SEC filings ("U.S.", "Inc.", "No.") so they do not end a
sentence.
"""
from __future__ import annotations

from typing import List, Set

from nltk.tokenize.punkt import PunktParameters, PunktSentenceTokenizer


# Lowercase, without the final period
FILING_ABBREVIATIONS: Set[str] = {
    "u.s", "u.k", "e.u", "inc", "corp", "co", "ltd", "llc", "l.p", "n.a",
    "no", "nos", "vs", "v", "e.g", "i.e", "etc", "approx", "dept",
    "mr", "mrs", "ms", "dr", "jan", "feb", "mar", "apr", "jun", "jul", "aug",
    "sept", "oct", "nov", "dec",
}


def build_sentence_tokenizer(abbreviations: Set[str] = FILING_ABBREVIATIONS) -> PunktSentenceTokenizer:
    """Punkt tokenizer with a fixed abbreviation list.

    Built from explicit parameters rather than a downloaded model, so
    splitting needs no nltk data and is identical on every machine.
    """
    params = PunktParameters()
    params.abbrev_types = set(abbreviations)
    return PunktSentenceTokenizer(params)


_sentence_tokenizer = build_sentence_tokenizer()


def normalize_whitespace(text: str) -> str:
    """Collapse all whitespace runs to single spaces and strip."""
    return " ".join(text.split())


def word_set(text: str) -> Set[str]:
    """Lowercased set of whitespace-separated words."""
    if not text:
        return set()
    return set(text.lower().split())


def calculate_jaccard(set1: Set[str], set2: Set[str]) -> float:
    """Calculate Jaccard similarity between two sets.

    Jaccard = |intersection| / |union|
    Returns 1.0 for identical sets (including two empty sets), 0.0 for
    completely different ones.
    """
    if not set1 and not set2:
        return 1.0

    intersection = len(set1 & set2)
    union = len(set1 | set2)

    return intersection / union if union > 0 else 0.0


def text_similarity(text1: str, text2: str) -> float:
    """Jaccard similarity of the word sets of two strings."""
    return calculate_jaccard(word_set(text1), word_set(text2))


def extract_sentences(text: str, min_chars: int = 20) -> List[str]:
    """Split text into sentences with nltk Punkt.

    Fragments shorter than ``min_chars`` after whitespace normalization are
    dropped; they are almost always list markers or headings.
    """
    if not text or not text.strip():
        return []
    sentences = (normalize_whitespace(s) for s in _sentence_tokenizer.tokenize(text))
    return [s for s in sentences if len(s) >= min_chars]
