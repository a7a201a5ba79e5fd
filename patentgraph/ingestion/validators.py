# patentgraph/ingestion/validators.py
import logging
from typing import List

import pandas as pd

from patentgraph.config import TOKEN_COLUMNS, UPOS_TAGS

logger = logging.getLogger(__name__)

# Текстовые колонки: допускаются только строки
TEXT_COLUMNS = ("lemma", "upos")


class ValidationResult:
    """DTO для результатов валидации."""

    def __init__(self, is_valid: bool, errors: List[str], warnings: List[str] = None):
        self.is_valid = is_valid
        self.errors = errors
        self.warnings = warnings or []


class TokenTableValidator:
    """
    Валидатор таблицы токенов (одна строка на токен).
    Ошибки схемы делают таблицу непригодной, проблемы дерева только логируются.
    """

    @staticmethod
    def validate(frame: pd.DataFrame) -> ValidationResult:
        errors = []
        warnings = []

        # 1. Проверка колонок
        missing = [c for c in TOKEN_COLUMNS if c not in frame.columns]
        if missing:
            errors.append(f"Missing columns: {', '.join(missing)}")
            # Дальше проверять нечего
            return ValidationResult(False, errors, warnings)

        if frame.empty:
            return ValidationResult(True, errors, warnings)

        # 2. Пустые значения в обязательных полях
        null_counts = frame[list(TOKEN_COLUMNS)].isna().sum()
        for col, count in null_counts.items():
            if count:
                errors.append(f"Column '{col}' has {count} empty values")

        for col in TEXT_COLUMNS:
            bad = TokenTableValidator.non_string_values(frame[col])
            if not bad.empty:
                errors.append(f"Column '{col}' has {len(bad)} non-string values, e.g. {bad.iloc[0]!r}")

        # 3. Теги вне закрытого набора UPOS
        unknown = sorted(set(frame["upos"].dropna().astype(str)) - set(UPOS_TAGS))
        if unknown:
            errors.append(f"Unknown UPOS tags: {', '.join(unknown)}")

        # 4. Уникальность (doc_id, sentence_id, token_id)
        keys = ["doc_id", "sentence_id", "token_id"]
        dupes = frame.duplicated(subset=keys, keep=False)
        if dupes.any():
            sample = frame.loc[dupes, keys].drop_duplicates().head(3).values.tolist()
            errors.append(f"Duplicate token keys ({int(dupes.sum())} rows), e.g. {sample}")

        # 5. Токен не может быть собственной вершиной
        self_heads = frame["head_token_id"] == frame["token_id"]
        if self_heads.any():
            sample = frame.loc[self_heads, keys].head(3).values.tolist()
            errors.append(f"{int(self_heads.sum())} tokens are their own head, e.g. {sample}")

        if errors:
            return ValidationResult(False, errors, warnings)

        # 6. Целостность дерева: HEAD должен ссылаться на токен того же предложения
        sent_keys = ["doc_id", "sentence_id"]
        existing = set(map(tuple, frame[sent_keys + ["token_id"]].values.tolist()))
        non_root = frame[frame["head_token_id"] != 0]
        dangling = [
            (d, s, h) for d, s, h in non_root[sent_keys + ["head_token_id"]].values.tolist()
            if (d, s, h) not in existing
        ]
        if dangling:
            warnings.append(f"{len(dangling)} tokens reference a missing head, e.g. {dangling[:3]}")

        roots = frame[frame["head_token_id"] == 0].groupby(sent_keys).size()
        n_sentences = frame.groupby(sent_keys).ngroups
        if len(roots) < n_sentences:
            warnings.append(f"{n_sentences - len(roots)} sentences have no root token")

        return ValidationResult(True, errors, warnings)

    @staticmethod
    def non_string_values(values: pd.Series) -> pd.Series:
        """Непустые значения колонки, которые не являются строками."""
        return values[values.notna() & ~values.map(lambda v: isinstance(v, str))]
