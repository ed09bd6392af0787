"""Use case: vocabulary boost store -- merge, normalize, prioritize, cap, and tokenize boost terms."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterable

from pydantic import ValidationError

from fluidscribe.l1_entities.errors import InvalidVocabularyConfigError
from fluidscribe.l1_entities.vocabulary import (
    DEFAULT_TUNING,
    DICTIONARY_TERM_WEIGHT,
    MAX_TERMS,
    DictionaryEntry,
    ResolvedVocabularyConfig,
    TokenizedTerm,
    VocabularyBundle,
    VocabularyDocument,
    VocabularyTerm,
)
from fluidscribe.l2_use_cases.ports.dictionary_source import DictionarySource
from fluidscribe.l2_use_cases.ports.tokenizer import SubwordTokenizer
from fluidscribe.l2_use_cases.ports.vocabulary_file import VocabularyFile

log = logging.getLogger('fscribe.vocab')

_NON_ALNUM = re.compile(r'[^0-9a-z]+')


def _clean_aliases(aliases: Iterable[str], excluding: str) -> tuple[str, ...]:
    """Trim, drop empties and the term's own text, lower-case, dedupe, sort."""
    own = excluding.casefold()
    cleaned = {alias.strip().lower() for alias in aliases if alias.strip() and alias.strip().casefold() != own}
    return tuple(sorted(cleaned))


def _positive(weight: float | None) -> float | None:
    return weight if weight is not None and weight > 0 else None


def merge_terms(
    json_terms: Iterable[VocabularyTerm],
    dictionary_entries: Iterable[DictionaryEntry] = (),
) -> list[VocabularyTerm]:
    """Merge persisted terms with dictionary replacements, keyed by lower-cased text.

    The first spelling seen for a key wins. On collision aliases are unioned and
    the larger positive weight kept; a missing or zero weight never dominates.
    Result is sorted case-insensitively.
    """
    merged: dict[str, VocabularyTerm] = {}

    def upsert(term: VocabularyTerm) -> None:
        text = term.text.strip()
        if not text:
            return
        key = text.lower()
        existing = merged.get(key)
        if existing is None:
            merged[key] = VocabularyTerm(
                text=text,
                weight=_positive(term.weight),
                aliases=_clean_aliases(term.aliases, excluding=text),
            )
            return
        weights = [w for w in (_positive(existing.weight), _positive(term.weight)) if w is not None]
        merged[key] = VocabularyTerm(
            text=existing.text,
            weight=max(weights) if weights else None,
            aliases=_clean_aliases((*existing.aliases, *term.aliases), excluding=existing.text),
        )

    for term in json_terms:
        upsert(term)

    for entry in dictionary_entries:
        replacement = entry.replacement.strip()
        if not replacement:
            continue
        upsert(VocabularyTerm(text=replacement, weight=DICTIONARY_TERM_WEIGHT, aliases=entry.triggers))

    return sorted(merged.values(), key=lambda t: t.text.casefold())


def prioritize_terms(terms: Iterable[VocabularyTerm], max_terms: int = MAX_TERMS) -> list[VocabularyTerm]:
    """Weight descending (unweighted last), ties alphabetical, capped at *max_terms*.

    Explicitly weighted terms are therefore never evicted ahead of unweighted ones.
    """
    ordered = sorted(
        terms,
        key=lambda t: (t.weight is None, -(t.weight or 0.0), t.text.casefold()),
    )
    return ordered[: max(max_terms, 0)]


def normalize_user_terms(terms: Iterable[VocabularyTerm], max_terms: int = MAX_TERMS) -> list[VocabularyTerm]:
    """First-seen de-duplication for user-edited lists, preserving the user's order."""
    seen: set[str] = set()
    normalized: list[VocabularyTerm] = []
    for term in terms:
        text = term.text.strip()
        if not text:
            continue
        key = text.lower()
        if key in seen:
            continue
        seen.add(key)
        normalized.append(
            VocabularyTerm(text=text, weight=term.weight, aliases=_clean_aliases(term.aliases, excluding=text))
        )
        if len(normalized) >= max_terms:
            break
    return normalized


def tokenize_terms(terms: Iterable[VocabularyTerm], tokenizer: SubwordTokenizer) -> list[TokenizedTerm]:
    """Encode each term's text; terms producing zero tokens are dropped."""
    tokenized: list[TokenizedTerm] = []
    for term in terms:
        token_ids = tokenizer.encode(term.text)
        if not token_ids:
            log.debug('Dropping boost term %r: encodes to zero tokens', term.text)
            continue
        tokenized.append(
            TokenizedTerm(text=term.text, weight=term.weight, aliases=term.aliases, token_ids=tuple(token_ids))
        )
    return tokenized


def normalize_for_lookup(text: str) -> str:
    """Lower-case and collapse every non-alphanumeric run into a single space."""
    return ' '.join(part for part in _NON_ALNUM.split(text.lower()) if part)


class BoostedTermDetector:
    """Reports which boosted terms occur in a transcript, whole words only.

    Both the transcript and each candidate are space-padded before the
    substring test, so ``cat`` never matches inside ``category``. Candidates
    are tried longest first.
    """

    def __init__(self, terms: Iterable[TokenizedTerm | VocabularyTerm]) -> None:
        unique: set[str] = set()
        for term in terms:
            for candidate in (term.text, *term.aliases):
                normalized = normalize_for_lookup(candidate)
                if normalized:
                    unique.add(normalized)
        self._lookup = sorted(unique, key=lambda s: (-len(s), s))

    def __len__(self) -> int:
        return len(self._lookup)

    def detect(self, text: str, limit: int = 2) -> list[str]:
        if not self._lookup or limit <= 0:
            return []
        haystack = f' {normalize_for_lookup(text)} '
        if len(haystack) <= 2:
            return []
        hits: list[str] = []
        for candidate in self._lookup:
            if f' {candidate} ' in haystack:
                hits.append(candidate)
                if len(hits) >= limit:
                    break
        return hits


def default_document() -> dict:
    return {
        **DEFAULT_TUNING.to_document(),
        'terms': [],
    }


def dump_document(terms: Iterable[VocabularyTerm]) -> str:
    document = {**DEFAULT_TUNING.to_document(), 'terms': [term.to_document() for term in terms]}
    return json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False) + '\n'


class VocabularyBoostStore:
    """JSON-backed store of vocabulary boost terms.

    Only the term list is user-editable; tuning scalars are always the backend
    defaults, whatever the persisted document says. ``max_terms`` caps only the
    bundle handed to the engine; the persisted list is held to MAX_TERMS.
    Construct one per process (one on-disk file) and inject it where needed.
    """

    def __init__(
        self,
        vocabulary_file: VocabularyFile,
        dictionary: DictionarySource | None = None,
        tokenizer_loader: Callable[[], SubwordTokenizer] | None = None,
        max_terms: int = MAX_TERMS,
    ) -> None:
        self._file = vocabulary_file
        self._dictionary = dictionary
        self._tokenizer_loader = tokenizer_loader
        self._max_terms = min(max_terms, MAX_TERMS)
        self._listeners: list[Callable[[], None]] = []

    @property
    def path(self):
        return self._file.path

    def add_change_listener(self, listener: Callable[[], None]) -> None:
        """Register *listener* for the "vocabulary changed" signal.

        A change only takes effect on the next ``prepare()`` of a provider.
        """
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def load_raw_json(self) -> str:
        return self._file.read_text()

    def validate_json(self, text: str) -> VocabularyDocument:
        try:
            return VocabularyDocument.model_validate_json(text)
        except ValidationError as exc:
            raise InvalidVocabularyConfigError('Invalid vocabulary JSON', stage='validate') from exc

    def save_raw_json(self, text: str) -> None:
        self.validate_json(text)
        self._file.write_text(text)
        self._notify()

    def load_user_terms(self) -> list[VocabularyTerm]:
        document = self.validate_json(self.load_raw_json())
        return normalize_user_terms(document.terms, MAX_TERMS)

    def save_user_terms(self, terms: Iterable[VocabularyTerm]) -> None:
        normalized = normalize_user_terms(terms, MAX_TERMS)
        self._file.write_text(dump_document(normalized))
        log.info('Saved %d vocabulary boost term(s) to %s', len(normalized), self._file.path)
        self._notify()

    def load_resolved_config(self) -> ResolvedVocabularyConfig:
        raw = self.load_raw_json()
        try:
            document = self.validate_json(raw)
        except InvalidVocabularyConfigError as exc:
            log.warning('Ignoring unreadable vocabulary file %s: %s', self._file.path, exc)
            document = VocabularyDocument(terms=[])

        entries = self._dictionary.entries() if self._dictionary is not None else []
        merged = merge_terms(document.terms, entries)
        return ResolvedVocabularyConfig(tuning=DEFAULT_TUNING, terms=tuple(merged))

    def has_any_terms(self) -> bool:
        try:
            return bool(self.load_resolved_config().terms)
        except Exception as exc:
            log.warning('Vocabulary check failed: %s', exc)
            return False

    def load_bundle(self, max_terms: int = MAX_TERMS) -> VocabularyBundle | None:
        """Capped, prioritized, tokenized bundle -- or None when nothing survives."""
        resolved = self.load_resolved_config()
        if not resolved.terms:
            return None
        if self._tokenizer_loader is None:
            log.debug('No tokenizer configured; vocabulary boosting unavailable')
            return None

        capped = prioritize_terms(resolved.terms, min(max_terms, self._max_terms))
        tokenized = tokenize_terms(capped, self._tokenizer_loader())
        if not tokenized:
            return None
        return VocabularyBundle(tuning=resolved.tuning, terms=tuple(tokenized))
