# patentgraph/graph/builder.py
import logging
from typing import Callable, Sequence, Union

import pandas as pd
from pydantic import ValidationError

from patentgraph.config import TOKEN_COLUMNS, UPOS_COLORS
from patentgraph.core.data_structures import (
    AggregationMode,
    DependencyGraph,
    GraphEdge,
    GraphNode,
    TagPolicy,
    TokenRecord,
    VocabEntry,
    Vocabulary,
)
from patentgraph.core.exceptions import MalformedInputError
from patentgraph.core.interfaces import records_to_frame
from patentgraph.ingestion.validators import TokenTableValidator

logger = logging.getLogger(__name__)

TokenInput = Union[pd.DataFrame, Sequence[TokenRecord]]

SENT_KEYS = ["doc_id", "sentence_id"]
INT_COLUMNS = ["doc_id", "sentence_id", "token_id", "head_token_id"]


class GraphBuilder:
    """
    Сворачивает деревья зависимостей всех предложений корпуса
    в один граф над словарем лемм.

    Узел = лемма, ребро = агрегированная связь "вершина -> зависимое".
    Режим агрегации (взвешенный / дедуплицированный) и направленность
    задаются при вызове fold, политика выбора тега и диапазон размеров
    узлов - при создании билдера.
    """

    def __init__(
            self,
            min_size: float = 5.0,
            max_size: float = 30.0,
            tag_policy: Union[TagPolicy, str] = TagPolicy.MAJORITY,
    ):
        if min_size > max_size:
            raise ValueError(f"min_size ({min_size}) must not exceed max_size ({max_size})")
        self.min_size = float(min_size)
        self.max_size = float(max_size)
        self.tag_policy = TagPolicy(tag_policy)

    # ------------------------------------------------------------------
    # Словарь
    # ------------------------------------------------------------------
    def build_vocabulary(self, tokens: TokenInput) -> Vocabulary:
        """
        Каждой различной лемме присваивается целый id.
        Порядок - отсортированные леммы (порядок групп pandas), поэтому
        результат не зависит от порядка строк на входе.
        """
        frame = self._to_frame(tokens)
        if frame.empty:
            return Vocabulary([])
        if "lemma" not in frame.columns:
            raise MalformedInputError("Missing columns: lemma")

        bad = TokenTableValidator.non_string_values(frame["lemma"])
        if not bad.empty:
            raise MalformedInputError(f"Column 'lemma' has non-string values, e.g. {bad.iloc[0]!r}")

        lemmas = self._normalize_text(frame["lemma"], str.lower).dropna()
        groups = lemmas.groupby(lemmas).size().index
        entries = [VocabEntry(vocab_id=i, lemma=lemma) for i, lemma in enumerate(groups)]

        logger.info(f"Vocabulary built: {len(entries)} lemmas from {len(frame)} tokens")
        return Vocabulary(entries)

    # ------------------------------------------------------------------
    # Свертка
    # ------------------------------------------------------------------
    def fold(
            self,
            tokens: TokenInput,
            vocab: Vocabulary,
            directed: bool = False,
            mode: Union[AggregationMode, str] = AggregationMode.WEIGHTED,
    ) -> DependencyGraph:
        mode = AggregationMode(mode)
        frame = self._prepare(tokens)

        if frame.empty:
            logger.warning("Empty token stream, returning an empty graph")
            return DependencyGraph(nodes=(), edges=(), directed=directed, mode=mode)

        if len(vocab) == 0:
            raise MalformedInputError("Vocabulary is empty but the token stream is not")

        vocab_frame = vocab.as_frame()
        unknown = sorted(set(frame["lemma"]) - set(vocab_frame["lemma"]))
        if unknown:
            raise MalformedInputError(f"Lemmas missing from vocabulary: {unknown[:5]}")

        # порядок строк сохраняется для политики FIRST
        frame["_row"] = range(len(frame))
        frame = frame.merge(vocab_frame, on="lemma", how="left").sort_values("_row")

        raw_edges = self._resolve_heads(frame)

        # 2. Ненаправленный граф: каждая связь зеркалится до агрегации
        if directed:
            mirrored = raw_edges
        else:
            reverse = raw_edges.rename(columns={"from": "to", "to": "from"})
            mirrored = pd.concat([raw_edges, reverse[["from", "to"]]], ignore_index=True)

        # 3. Агрегация по паре (from, to)
        aggregated = mirrored.groupby(["from", "to"]).size().reset_index(name="weight")

        degree = self._degree(aggregated, directed, mode)
        tags = self._representative_tags(frame)

        node_ids = sorted(frame["vocab_id"].unique().tolist())
        degree = degree.reindex(node_ids, fill_value=0).astype(int)
        sizes = self._rescale(degree)

        nodes = tuple(
            GraphNode(
                vocab_id=int(vid),
                label=vocab.lemma_of(int(vid)),
                upos=tags[vid],
                degree=int(degree[vid]),
                size=float(sizes[vid]),
                color=UPOS_COLORS[tags[vid]],
            )
            for vid in node_ids
        )
        edges = self._publish_edges(raw_edges, aggregated, directed, mode)

        logger.info(
            f"Folded {len(frame)} tokens into {len(nodes)} nodes / {len(edges)} edges "
            f"(directed={directed}, mode={mode.value})"
        )
        return DependencyGraph(nodes=nodes, edges=edges, directed=directed, mode=mode)

    # ------------------------------------------------------------------
    # Шаги свертки
    # ------------------------------------------------------------------
    @staticmethod
    def _resolve_heads(frame: pd.DataFrame) -> pd.DataFrame:
        """
        1. Для каждого токена ищем вершину в том же (doc_id, sentence_id).
        Корни (head=0) и висячие ссылки ребер не дают.
        """
        heads = frame[SENT_KEYS + ["token_id", "vocab_id"]].rename(
            columns={"token_id": "head_token_id", "vocab_id": "head_vocab_id"}
        )
        dependents = frame[frame["head_token_id"] != 0]
        linked = dependents.merge(heads, on=SENT_KEYS + ["head_token_id"], how="left")

        dangling = int(linked["head_vocab_id"].isna().sum())
        if dangling:
            logger.warning(f"{dangling} tokens reference a head outside their sentence, skipped")
        linked = linked.dropna(subset=["head_vocab_id"])

        return pd.DataFrame({
            "from": linked["head_vocab_id"].astype(int).to_numpy(),
            "to": linked["vocab_id"].astype(int).to_numpy(),
        }, columns=["from", "to"])

    @staticmethod
    def _degree(aggregated: pd.DataFrame, directed: bool, mode: AggregationMode) -> pd.Series:
        """
        4. Степень = число вхождений id среди концов ребер.
        WEIGHTED считает каждое ребро с его весом, DEDUPLICATED - один раз.
        В ненаправленном режиме каждая связь продублирована зеркалом,
        поэтому результат делится ровно на 2.
        """
        counts = aggregated["weight"] if mode == AggregationMode.WEIGHTED else 1
        table = aggregated.assign(count=counts)
        endpoints = pd.concat([
            table[["from", "count"]].rename(columns={"from": "vocab_id"}),
            table[["to", "count"]].rename(columns={"to": "vocab_id"}),
        ], ignore_index=True)

        degree = endpoints.groupby("vocab_id")["count"].sum()
        if not directed:
            degree = degree // 2
        return degree

    def _representative_tags(self, frame: pd.DataFrame) -> dict:
        """5. Один тег UPOS на лемму."""
        if self.tag_policy == TagPolicy.FIRST:
            first = frame.sort_values("_row").drop_duplicates("vocab_id", keep="first")
            return dict(zip(first["vocab_id"], first["upos"]))

        counts = frame.groupby(["vocab_id", "upos"]).size().reset_index(name="n")
        counts = counts.sort_values(["vocab_id", "n", "upos"], ascending=[True, False, True])
        best = counts.drop_duplicates("vocab_id", keep="first")
        return dict(zip(best["vocab_id"], best["upos"]))

    def _rescale(self, degree: pd.Series) -> pd.Series:
        """
        6. Min-max нормализация степени в [min_size, max_size].
        Если все степени равны, всем узлам ставится min_size.
        """
        if degree.empty:
            return degree.astype(float)

        lo, hi = degree.min(), degree.max()
        if hi == lo:
            return pd.Series(self.min_size, index=degree.index)
        span = self.max_size - self.min_size
        return self.min_size + span * (degree - lo) / (hi - lo)

    @staticmethod
    def _publish_edges(
            raw_edges: pd.DataFrame,
            aggregated: pd.DataFrame,
            directed: bool,
            mode: AggregationMode,
    ) -> tuple:
        if directed:
            table = aggregated
        else:
            # одно ребро на неупорядоченную пару, вес = число связей между леммами
            canonical = pd.DataFrame({
                "from": raw_edges[["from", "to"]].min(axis=1),
                "to": raw_edges[["from", "to"]].max(axis=1),
            }, columns=["from", "to"])
            table = canonical.groupby(["from", "to"]).size().reset_index(name="weight")

        weighted = mode == AggregationMode.WEIGHTED
        return tuple(
            GraphEdge(source=int(s), target=int(t), weight=int(w) if weighted else None)
            for s, t, w in table.sort_values(["from", "to"])[["from", "to", "weight"]].itertuples(index=False)
        )

    # ------------------------------------------------------------------
    # Подготовка входа
    # ------------------------------------------------------------------
    @staticmethod
    def _to_frame(tokens: TokenInput) -> pd.DataFrame:
        if isinstance(tokens, pd.DataFrame):
            return tokens.copy()
        try:
            records = [t if isinstance(t, TokenRecord) else TokenRecord.model_validate(t) for t in tokens]
        except ValidationError as e:
            raise MalformedInputError(f"Invalid token record: {e}") from e
        return records_to_frame(records)

    @staticmethod
    def _normalize_text(values: pd.Series, case: Callable[[str], str]) -> pd.Series:
        # Нестроковые значения не трогаем, их отклоняет валидатор
        normalized = values.map(lambda v: case(v.strip()) if isinstance(v, str) else v)
        return normalized.mask(normalized == "")

    def _prepare(self, tokens: TokenInput) -> pd.DataFrame:
        frame = self._to_frame(tokens)

        missing = [c for c in TOKEN_COLUMNS if c not in frame.columns]
        if missing:
            raise MalformedInputError(f"Missing columns: {', '.join(missing)}")

        frame = frame[list(TOKEN_COLUMNS)].reset_index(drop=True)
        if frame.empty:
            return frame

        frame["lemma"] = self._normalize_text(frame["lemma"], str.lower)
        frame["upos"] = self._normalize_text(frame["upos"], str.upper)

        result = TokenTableValidator.validate(frame)
        if not result.is_valid:
            raise MalformedInputError("; ".join(result.errors))
        for warning in result.warnings:
            logger.warning(warning)

        try:
            frame[INT_COLUMNS] = frame[INT_COLUMNS].astype(int)
        except (TypeError, ValueError) as e:
            raise MalformedInputError(f"Non-integer identifiers in token table: {e}") from e
        return frame
