import logging
from pathlib import Path
from typing import Union

import matplotlib.pyplot as plt
import networkx as nx
import pandas as pd
from matplotlib.lines import Line2D

from patentgraph.config import UPOS_COLORS
from patentgraph.core.data_structures import DependencyGraph

logger = logging.getLogger(__name__)


def _upos_legend(ax, tags):
    handles = [
        Line2D([0], [0], marker='o', linestyle='', color=UPOS_COLORS[t], label=t)
        for t in sorted(tags)
    ]
    ax.legend(handles=handles, loc='best', fontsize=8, title="UPOS")


def plot_dependency_graph(
        graph: DependencyGraph,
        output_path: Union[str, Path],
        top_labels: int = 30,
        seed: int = 42,
) -> Path:
    """Рисует граф словаря: размер узла = size, цвет = UPOS, подписи только у топа по степени."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    g = graph.to_networkx()
    pos = nx.spring_layout(g, seed=seed, weight="weight")

    top = sorted(graph.nodes, key=lambda n: (-n.degree, n.label))[:top_labels]
    labels = {n.vocab_id: n.label for n in top}

    fig, ax = plt.subplots(figsize=(14, 10))
    nx.draw_networkx_edges(g, pos, ax=ax, alpha=0.2, arrows=graph.directed)
    nx.draw_networkx_nodes(
        g, pos, ax=ax,
        nodelist=[n.vocab_id for n in graph.nodes],
        node_size=[n.size * 10 for n in graph.nodes],
        node_color=[n.color for n in graph.nodes],
    )
    nx.draw_networkx_labels(g, pos, labels=labels, ax=ax, font_size=8)
    _upos_legend(ax, {n.upos for n in graph.nodes})
    ax.set_title(f"Dependency graph ({len(graph.nodes)} lemmas, {len(graph.edges)} edges)")
    ax.axis('off')

    fig.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    logger.info(f"Graph plot saved to {output_path}")
    return output_path


def plot_projection(
        coords: pd.DataFrame,
        nodes: pd.DataFrame,
        output_path: Union[str, Path],
        top_labels: int = 30,
) -> Path:
    """
    Scatter UMAP-координат. coords индексирован термином (x, y),
    nodes - DependencyGraph.node_frame() для цвета и подписей.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data = coords.join(nodes.set_index("label")[["upos", "color", "degree"]], how="left")
    data["color"] = data["color"].fillna(UPOS_COLORS["X"])

    fig, ax = plt.subplots(figsize=(12, 9))
    ax.scatter(data["x"], data["y"], c=data["color"].tolist(), s=20, alpha=0.8)

    for term, row in data.sort_values("degree", ascending=False).head(top_labels).iterrows():
        ax.annotate(term, (row["x"], row["y"]), fontsize=8, alpha=0.9)

    _upos_legend(ax, set(data["upos"].dropna()))
    ax.set_title('UMAP projection of node2vec embeddings')
    ax.set_xlabel('UMAP 1')
    ax.set_ylabel('UMAP 2')
    ax.grid(alpha=0.3)

    fig.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    logger.info(f"Projection plot saved to {output_path}")
    return output_path
