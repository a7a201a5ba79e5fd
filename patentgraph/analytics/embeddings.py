# patentgraph/analytics/embeddings.py
import logging
from pathlib import Path
from typing import Union

import networkx as nx
import pandas as pd
from node2vec import Node2Vec

from patentgraph.core.data_structures import DependencyGraph

logger = logging.getLogger(__name__)


class Node2VecEmbedder:
    """
    Эмбеддинги лемм через node2vec (случайные блуждания + gensim Word2Vec).

    Результат кешируется в CSV: строка = термин, колонка = измерение.
    Наличие кеша отменяет обучение, если не передан force_retrain.
    """

    def __init__(
            self,
            cache_path: Union[str, Path],
            dimensions: int = 64,
            walk_length: int = 20,
            num_walks: int = 50,
            p: float = 1.0,
            q: float = 1.0,
            window: int = 5,
            workers: int = 1,
            seed: int = 42,
    ):
        self.cache_path = Path(cache_path)
        self.dimensions = dimensions
        self.walk_length = walk_length
        self.num_walks = num_walks
        self.p = p
        self.q = q
        self.window = window
        self.workers = workers
        self.seed = seed

    def fit(self, graph: DependencyGraph, force_retrain: bool = False) -> pd.DataFrame:
        if self.cache_path.exists() and not force_retrain:
            logger.info(f"Embeddings cache found at {self.cache_path}, skipping training")
            return self.load_cache()

        embeddings = self.train(graph)
        self.save_cache(embeddings)
        return embeddings

    def train(self, graph: DependencyGraph) -> pd.DataFrame:
        edges = graph.labeled_edges()
        if not edges:
            raise ValueError("Cannot train node2vec on a graph without edges")

        g = nx.DiGraph() if graph.directed else nx.Graph()
        g.add_weighted_edges_from(edges)

        logger.info(
            f"Training node2vec: {g.number_of_nodes()} nodes, {g.number_of_edges()} edges, "
            f"dimensions={self.dimensions}, walks={self.num_walks}x{self.walk_length}"
        )
        node2vec = Node2Vec(
            g,
            dimensions=self.dimensions,
            walk_length=self.walk_length,
            num_walks=self.num_walks,
            p=self.p,
            q=self.q,
            weight_key="weight",
            workers=self.workers,
            seed=self.seed,
            quiet=True,
        )
        model = node2vec.fit(window=self.window, min_count=1, batch_words=4, seed=self.seed)

        terms = [str(n) for n in g.nodes()]
        columns = [f"dim_{i}" for i in range(self.dimensions)]
        vectors = [model.wv[t] for t in terms]
        return pd.DataFrame(vectors, index=pd.Index(terms, name="term"), columns=columns)

    def save_cache(self, embeddings: pd.DataFrame) -> Path:
        self.cache_path.parent.mkdir(parents=True, exist_ok=True)
        embeddings.to_csv(self.cache_path, index_label="term")
        logger.info(f"Saved {len(embeddings)} embeddings to {self.cache_path}")
        return self.cache_path

    def load_cache(self) -> pd.DataFrame:
        # keep_default_na=False: леммы вроде "null" и "nan" должны остаться строками
        frame = pd.read_csv(self.cache_path, index_col=0, dtype={"term": str}, keep_default_na=False)
        frame.index.name = "term"
        return frame
