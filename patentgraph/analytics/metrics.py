# patentgraph/analytics/metrics.py
import logging
from dataclasses import asdict, dataclass
from typing import AbstractSet, Dict, Optional

import networkx as nx
import pandas as pd

from patentgraph.config import CONTENT_UPOS
from patentgraph.core.data_structures import DependencyGraph

logger = logging.getLogger(__name__)

RANKING_COLUMNS = ["label", "upos", "degree", "score"]


@dataclass
class GraphSummary:
    n_nodes: int
    n_edges: int
    density: float
    transitivity: float
    average_degree: float
    n_components: int

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


class GraphAnalyzer:
    """
    Стандартная аналитика графа словаря поверх networkx:
    плотность, транзитивность, связность, PageRank и TextRank-ранжирование лемм.
    """

    def __init__(self, graph: DependencyGraph):
        self.graph = graph
        self.nx_graph = graph.to_networkx()

    def summary(self) -> GraphSummary:
        g = self.nx_graph
        n_nodes = g.number_of_nodes()
        if n_nodes == 0:
            return GraphSummary(0, 0, 0.0, 0.0, 0.0, 0)

        if g.is_directed():
            n_components = nx.number_weakly_connected_components(g)
        else:
            n_components = nx.number_connected_components(g)

        summary = GraphSummary(
            n_nodes=n_nodes,
            n_edges=g.number_of_edges(),
            density=float(nx.density(g)),
            # Транзитивность определена для ненаправленного графа
            transitivity=float(nx.transitivity(self.undirected())),
            # Степень простого графа, согласованная с density и n_edges
            average_degree=sum(d for _, d in g.degree()) / n_nodes,
            n_components=n_components,
        )
        logger.info(f"Graph summary: {summary}")
        return summary

    def pagerank(self, top_k: Optional[int] = None, alpha: float = 0.85) -> pd.DataFrame:
        """PageRank по весам ребер; сортировка по убыванию, ничьи по метке."""
        return self._rank(self.nx_graph, top_k, alpha)

    def keywords(
            self,
            top_k: Optional[int] = 10,
            content_tags: AbstractSet[str] = CONTENT_UPOS,
            alpha: float = 0.85,
    ) -> pd.DataFrame:
        """
        TextRank: PageRank на ненаправленном подграфе знаменательных слов.
        """
        undirected = self.undirected()
        keep = [n for n, attrs in undirected.nodes(data=True) if attrs.get("upos") in content_tags]
        return self._rank(undirected.subgraph(keep), top_k, alpha)

    def undirected(self) -> nx.Graph:
        """
        Ненаправленный вид графа. Веса встречных ребер (u, v) и (v, u)
        складываются, to_undirected оставил бы только одно из них.
        """
        g = self.nx_graph
        if not g.is_directed():
            return g

        undirected = nx.Graph()
        undirected.add_nodes_from(g.nodes(data=True))
        for u, v, weight in g.edges(data="weight", default=1):
            if undirected.has_edge(u, v):
                undirected[u][v]["weight"] += weight
            else:
                undirected.add_edge(u, v, weight=weight)
        return undirected

    @staticmethod
    def _rank(g: nx.Graph, top_k: Optional[int], alpha: float) -> pd.DataFrame:
        if g.number_of_nodes() == 0:
            return pd.DataFrame(columns=RANKING_COLUMNS)

        scores = nx.pagerank(g, alpha=alpha, weight="weight")
        rows = [
            {"label": g.nodes[n]["label"], "upos": g.nodes[n]["upos"],
             "degree": g.nodes[n]["degree"], "score": score}
            for n, score in scores.items()
        ]
        frame = pd.DataFrame(rows, columns=RANKING_COLUMNS)
        # Округление, чтобы симметричные узлы считались ничьей
        frame = (
            frame.assign(_key=frame["score"].round(12))
            .sort_values(["_key", "label"], ascending=[False, True])
            .drop(columns="_key")
            .reset_index(drop=True)
        )
        if top_k is not None:
            frame = frame.head(top_k)
        return frame
