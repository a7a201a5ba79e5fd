# patentgraph/analytics/projection.py
import logging

import pandas as pd
import umap

logger = logging.getLogger(__name__)


class UmapProjector:
    """Проекция эмбеддингов лемм на плоскость (UMAP)."""

    def __init__(
            self,
            n_neighbors: int = 15,
            min_dist: float = 0.1,
            metric: str = "cosine",
            random_state: int = 42,
    ):
        self.n_neighbors = n_neighbors
        self.min_dist = min_dist
        self.metric = metric
        self.random_state = random_state

    def project(self, embeddings: pd.DataFrame) -> pd.DataFrame:
        n_samples = len(embeddings)
        if n_samples < 3:
            raise ValueError(f"UMAP needs at least 3 embeddings, got {n_samples}")

        # n_neighbors не может превышать число точек
        n_neighbors = min(self.n_neighbors, n_samples - 1)
        if n_neighbors != self.n_neighbors:
            logger.warning(f"n_neighbors reduced from {self.n_neighbors} to {n_neighbors} for {n_samples} samples")

        logger.info('UMAP projection...')
        reducer = umap.UMAP(
            n_components=2,
            n_neighbors=n_neighbors,
            min_dist=self.min_dist,
            metric=self.metric,
            random_state=self.random_state,
        )
        coords = reducer.fit_transform(embeddings.to_numpy())
        return pd.DataFrame(coords, index=embeddings.index, columns=["x", "y"])
