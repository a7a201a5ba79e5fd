import logging
from dataclasses import dataclass
from typing import Sequence, Union

import pandas as pd

from patentgraph.analytics.metrics import GraphAnalyzer, GraphSummary
from patentgraph.core.data_structures import AggregationMode, DependencyGraph, TagPolicy, Vocabulary
from patentgraph.core.interfaces import BaseTagger, records_to_frame
from patentgraph.graph.builder import GraphBuilder

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    tokens: pd.DataFrame
    vocabulary: Vocabulary
    graph: DependencyGraph
    summary: GraphSummary
    ranking: pd.DataFrame


class DependencyGraphPipeline:
    """
    Главный класс-оркестратор.
    Тэггинг -> словарь -> свертка в граф -> базовая аналитика.
    Эмбеддинги и визуализация запускаются отдельно (см. run_graph_analysis.py).
    """

    def __init__(
            self,
            tagger: BaseTagger,
            directed: bool = False,
            mode: Union[AggregationMode, str] = AggregationMode.WEIGHTED,
            tag_policy: Union[TagPolicy, str] = TagPolicy.MAJORITY,
            min_size: float = 5.0,
            max_size: float = 30.0,
    ):
        self.tagger = tagger
        self.directed = directed
        self.mode = AggregationMode(mode)
        self.builder = GraphBuilder(min_size=min_size, max_size=max_size, tag_policy=tag_policy)

        logger.info(
            f"Initializing pipeline with tagger={type(tagger).__name__}, "
            f"directed={directed}, mode={self.mode.value}"
        )

    def run(self, documents: Sequence[str], top_k: int = 20) -> PipelineResult:
        # 1. Тэггинг
        logger.info(f"Tagging {len(documents)} documents...")
        records = self.tagger.tag(documents)
        tokens = records_to_frame(records)

        # 2. Словарь и свертка
        vocabulary = self.builder.build_vocabulary(tokens)
        graph = self.builder.fold(tokens, vocabulary, directed=self.directed, mode=self.mode)

        # 3. Аналитика
        analyzer = GraphAnalyzer(graph)
        summary = analyzer.summary()
        ranking = analyzer.pagerank(top_k=top_k)

        return PipelineResult(
            tokens=tokens,
            vocabulary=vocabulary,
            graph=graph,
            summary=summary,
            ranking=ranking,
        )
