"""Map form question text onto canonical profile keys."""

import re
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from rapidfuzz import fuzz, process

from campus_autofill.config import settings
from campus_autofill.mapping.keywords import (
    ALIAS_TABLE,
    CHOICE_SYNONYMS,
    IDENTIFYING_WORDS,
    KEYWORD_TABLE,
    LABEL_TABLE,
    STOPWORDS,
)
from campus_autofill.utils.logging import get_logger
from campus_autofill.utils.text import contains_phrase, normalize

logger = get_logger(__name__)

OTHER_TOKEN = "other"

# Longest run of adjacent tokens joined into one compound token, so that
# "Date of Birth" can hit the "dateofbirth" alias.
_MAX_COMPOUND_TOKENS = 4

# Reverse containment (phrase contains the whole label) is only allowed for
# phrases of at most this many words.
_SHORT_PHRASE_TOKENS = 2

# Fuzzy candidates inspected before giving up.
_FUZZY_CANDIDATES = 5

_FILLER = STOPWORDS - IDENTIFYING_WORDS


def _meaningful(words: Sequence[str]) -> set:
    return {word for word in words if word not in STOPWORDS}


def _content_words(text: str) -> List[str]:
    return [word for word in text.split() if word not in _FILLER]


class FieldMapper:
    """
    Resolves a question's composite signature to a canonical profile key.

    Resolution runs from the most precise check to the most permissive one and
    the first hit wins: exact alias/key tokens, exact whole label, keyword
    phrase containment, fuzzy similarity, then token overlap with a fuzzy
    candidate. Fuzzy steps tolerate misspelled words, never extra or missing
    ones.
    """

    def __init__(
        self,
        keyword_table: Optional[Mapping[str, Sequence[str]]] = None,
        alias_table: Optional[Mapping[str, str]] = None,
        label_table: Optional[Mapping[str, str]] = None,
        fuzzy_threshold: Optional[float] = None,
        fuzzy_candidate_floor: Optional[float] = None,
        min_reverse_containment: Optional[int] = None,
    ):
        self.keyword_table = keyword_table if keyword_table is not None else KEYWORD_TABLE
        alias_table = alias_table if alias_table is not None else ALIAS_TABLE
        label_table = label_table if label_table is not None else LABEL_TABLE
        self.fuzzy_threshold = (
            settings.fuzzy_threshold if fuzzy_threshold is None else fuzzy_threshold
        )
        self.fuzzy_candidate_floor = (
            settings.fuzzy_candidate_floor if fuzzy_candidate_floor is None else fuzzy_candidate_floor
        )
        self.min_reverse_containment = (
            settings.min_reverse_containment
            if min_reverse_containment is None
            else min_reverse_containment
        )
        self.logger = logger.bind(component="field_mapper")

        # Exact lookups: normalized alias tokens plus the canonical keys
        # themselves ("emailID" -> "emailid").
        self._exact: Dict[str, str] = {normalize(alias): key for alias, key in alias_table.items()}
        for key in self.keyword_table:
            self._exact.setdefault(normalize(key).replace(" ", ""), key)

        self._phrases: List[Tuple[str, str]] = [
            (key, normalize(phrase))
            for key, phrases in self.keyword_table.items()
            for phrase in phrases
            if normalize(phrase)
        ]
        self._labels: Dict[str, str] = {
            normalize(label): key for label, key in label_table.items() if key in self.keyword_table
        }

    def find_match(self, label: Optional[str]) -> Optional[str]:
        """
        Return the canonical key a label asks for, or ``None``.

        Args:
            label: Composite signature of a question (visible label plus
                input attributes). ``None`` and empty labels never match.
        """
        normalized = normalize(label)
        if not normalized:
            return None

        words = normalized.split()
        key = (
            self._match_tokens(words)
            or self._labels.get(normalized)
            or self._exact.get(normalized.replace(" ", ""))
            or self._match_phrases(normalized)
        )
        if key:
            return key

        key, score = self._match_fuzzy(normalized)
        if key:
            self.logger.debug("Fuzzy mapping accepted", label=normalized, key=key, score=score)
        return key

    def _match_tokens(self, words: List[str]) -> Optional[str]:
        for size in range(min(_MAX_COMPOUND_TOKENS, len(words)), 0, -1):
            for start in range(len(words) - size + 1):
                compound = "".join(words[start:start + size])
                if compound in self._exact:
                    return self._exact[compound]
        return None

    def _match_phrases(self, normalized: str) -> Optional[str]:
        for key, phrase in self._phrases:
            if contains_phrase(normalized, phrase):
                return key

        if len(normalized) < self.min_reverse_containment:
            return None
        for key, phrase in self._phrases:
            if len(phrase.split()) <= _SHORT_PHRASE_TOKENS and contains_phrase(phrase, normalized):
                return key
        return None

    def _match_fuzzy(self, normalized: str) -> Tuple[Optional[str], float]:
        words = _content_words(normalized)
        if len(normalized) < self.min_reverse_containment or not words or not self._phrases:
            return None, 0.0

        # Each phrase is scored on its own with a length-aware ratio, so a
        # short label never scores high just by sitting inside a long phrase.
        candidates = process.extract(
            normalized,
            [phrase for _, phrase in self._phrases],
            scorer=fuzz.ratio,
            score_cutoff=self.fuzzy_candidate_floor,
            limit=_FUZZY_CANDIDATES,
        )

        best_score = 0.0
        for phrase, score, index in candidates:
            best_score = max(best_score, score)
            phrase_words = _content_words(phrase)
            if len(phrase_words) != len(words):
                continue
            if score >= self.fuzzy_threshold:
                return self._phrases[index][0], score
            if set(words) & set(phrase_words) and self._words_align(words, phrase_words):
                return self._phrases[index][0], score
        return None, best_score

    def _words_align(self, words: Sequence[str], phrase_words: Sequence[str]) -> bool:
        """Every word on each side has a close spelling on the other side."""
        def covered(source: Sequence[str], target: Sequence[str]) -> bool:
            return all(
                max(fuzz.ratio(word, other) for other in target) >= self.fuzzy_threshold
                for word in source
            )

        return covered(words, phrase_words) and covered(phrase_words, words)


def _expand(desired: str) -> List[str]:
    variants = [desired]
    for synonym in CHOICE_SYNONYMS.get(desired, ()):
        normalized = normalize(synonym)
        if normalized not in variants:
            variants.append(normalized)
    return variants


def is_other_option(option_label: Optional[str]) -> bool:
    """True when an option is a generic "Other" catch-all."""
    return OTHER_TOKEN in normalize(option_label).split()


def choice_matches(option_label: Optional[str], desired_value: Optional[str]) -> bool:
    """
    Decide whether a radio/checkbox/select option expresses a desired value.

    Exact equality after normalization, else word-level containment in either
    direction, else at least one shared meaningful token. Desired values are
    expanded through the abbreviation table first. An "Other" option never
    matches a desired value that does not mention "other" itself.
    """
    option = normalize(option_label)
    desired = normalize(desired_value)
    if not option or not desired:
        return False

    if OTHER_TOKEN in option.split() and OTHER_TOKEN not in desired.split():
        return False

    option_words = _meaningful(option.split())
    for variant in _expand(desired):
        if option == variant:
            return True
        if contains_phrase(option, variant) or contains_phrase(variant, option):
            return True
        if option_words & _meaningful(variant.split()):
            return True
    return False


def _word_boundary_match(option: str, desired: str) -> bool:
    return re.search(rf"\b{re.escape(desired)}\b", option) is not None


def best_choice(options: Sequence[str], desired_value: Optional[str]) -> Optional[int]:
    """
    Pick the option that best expresses ``desired_value``.

    Preference order: exact label equality, whole-word match of the desired
    value inside the label, then ``choice_matches``. "Other" options are only
    chosen when the desired value itself mentions "other".

    Returns:
        Index into ``options`` or ``None`` when nothing matches.
    """
    desired = normalize(desired_value)
    if not desired:
        return None
    normalized = [normalize(option) for option in options]
    wants_other = OTHER_TOKEN in desired.split()
    variants = _expand(desired)

    candidates = [
        (index, option)
        for index, option in enumerate(normalized)
        if option and (wants_other or OTHER_TOKEN not in option.split())
    ]

    for variant in variants:
        for index, option in candidates:
            if option == variant:
                return index
    for variant in variants:
        for index, option in candidates:
            if _word_boundary_match(option, variant):
                return index
    for index, option in candidates:
        if choice_matches(options[index], desired_value):
            return index
    return None


def find_other(options: Sequence[str]) -> Optional[int]:
    """Index of the first "Other" option, if any."""
    for index, option in enumerate(options):
        if is_other_option(option):
            return index
    return None


def create_field_mapper(**overrides) -> FieldMapper:
    """
    Factory function to create a field mapper.

    Args:
        **overrides: Constructor arguments overriding configured policy.

    Returns:
        Configured FieldMapper instance
    """
    return FieldMapper(**overrides)
