"""Vocabulary boosting entities -- persisted document, resolved config, tokenized bundle."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_TERMS = 256
DICTIONARY_TERM_WEIGHT = 8.0


class VocabularyTerm(BaseModel):
    """A single boost term. ``aliases`` are alternative spoken forms."""

    model_config = ConfigDict(frozen=True)

    text: str
    weight: float | None = None
    aliases: tuple[str, ...] = ()

    @field_validator('aliases', mode='before')
    @classmethod
    def _none_aliases_as_empty(cls, value):
        return () if value is None else value

    def to_document(self) -> dict:
        """Serialize the way the persisted JSON stores a term (absent fields omitted)."""
        data: dict = {'text': self.text}
        if self.weight is not None:
            data['weight'] = self.weight
        if self.aliases:
            data['aliases'] = list(self.aliases)
        return data


class VocabularyDocument(BaseModel):
    """The on-disk JSON document. Tuning fields are accepted but never trusted."""

    model_config = ConfigDict(populate_by_name=True)

    alpha: float | None = None
    min_ctc_score: float | None = Field(default=None, alias='minCtcScore')
    min_similarity: float | None = Field(default=None, alias='minSimilarity')
    min_combined_confidence: float | None = Field(default=None, alias='minCombinedConfidence')
    min_term_length: int | None = Field(default=None, alias='minTermLength')
    terms: list[VocabularyTerm]


class VocabularyTuning(BaseModel):
    """Backend-tuned bias scalars. Balanced to avoid over-biasing common words."""

    model_config = ConfigDict(frozen=True)

    alpha: float = 2.8
    min_ctc_score: float = -2.2
    min_similarity: float = 0.72
    min_combined_confidence: float = 0.64
    min_term_length: int = 3

    def to_document(self) -> dict:
        return {
            'alpha': self.alpha,
            'minCtcScore': self.min_ctc_score,
            'minSimilarity': self.min_similarity,
            'minCombinedConfidence': self.min_combined_confidence,
            'minTermLength': self.min_term_length,
        }


DEFAULT_TUNING = VocabularyTuning()


class ResolvedVocabularyConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    tuning: VocabularyTuning = DEFAULT_TUNING
    terms: tuple[VocabularyTerm, ...] = ()


class TokenizedTerm(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    weight: float | None = None
    aliases: tuple[str, ...] = ()
    token_ids: tuple[int, ...]


class VocabularyBundle(BaseModel):
    """What a provider's boosted engine is configured with. Never empty."""

    model_config = ConfigDict(frozen=True)

    tuning: VocabularyTuning
    terms: tuple[TokenizedTerm, ...] = Field(min_length=1)


class DictionaryEntry(BaseModel):
    """A custom-dictionary replacement: spoken ``triggers`` map to ``replacement``."""

    model_config = ConfigDict(frozen=True)

    triggers: tuple[str, ...] = ()
    replacement: str
