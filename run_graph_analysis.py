import argparse
import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from patentgraph.analytics.embeddings import Node2VecEmbedder
from patentgraph.analytics.metrics import GraphAnalyzer
from patentgraph.analytics.projection import UmapProjector
from patentgraph.config import BASE_DIR, DEFAULT_CONFIG_PATH, load_config
from patentgraph.ingestion.loader import PatentCorpusLoader
from patentgraph.parsers import create_tagger
from patentgraph.pipeline import DependencyGraphPipeline
from patentgraph.visualization import plot_dependency_graph, plot_projection

# Настройка логирования
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

console = Console()


def resolve(path) -> Path:
    path = Path(path)
    return path if path.is_absolute() else BASE_DIR / path


def parse_args():
    parser = argparse.ArgumentParser(description="Dependency graph analysis of patent abstracts")
    parser.add_argument("--config", default=None, help="YAML config (default: config/pipeline.yaml)")
    parser.add_argument("--input", default=None, help="CSV corpus with an abstract column")
    parser.add_argument("--backend", choices=["stanza", "spacy", "conllu"], default=None)
    parser.add_argument("--conllu", default=None, help="Pre-tagged CoNLL-U file (implies --backend conllu)")
    parser.add_argument("--output-dir", default=None)
    parser.add_argument("--directed", action="store_true", help="Keep head -> dependent direction")
    parser.add_argument("--mode", choices=["weighted", "deduplicated"], default=None)
    parser.add_argument("--force-retrain", action="store_true", help="Ignore cached embeddings")
    parser.add_argument("--skip-embeddings", action="store_true")
    return parser.parse_args()


def build_tagger(cfg: dict, args):
    tagger_cfg = cfg["tagger"]
    backend = "conllu" if args.conllu else (args.backend or tagger_cfg["backend"])

    if backend == "conllu":
        if not args.conllu:
            raise ValueError("--conllu path is required for the conllu backend")
        return backend, create_tagger("conllu", path=resolve(args.conllu))
    if backend == "spacy":
        return backend, create_tagger("spacy", model=tagger_cfg["model"],
                                      auto_download=tagger_cfg["auto_download"])
    return backend, create_tagger("stanza", lang=tagger_cfg["lang"], use_gpu=tagger_cfg["use_gpu"],
                                  auto_download=tagger_cfg["auto_download"])


def print_report(summary, ranking, keywords):
    table = Table(title="Graph Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in summary.as_dict().items():
        table.add_row(key, f"{value:.4f}" if isinstance(value, float) else str(value))
    console.print(table)

    for title, frame in (("PageRank", ranking), ("TextRank keywords", keywords)):
        table = Table(title=title)
        table.add_column("Lemma", style="green")
        table.add_column("UPOS")
        table.add_column("Degree", justify="right")
        table.add_column("Score", justify="right")
        for row in frame.itertuples(index=False):
            table.add_row(row.label, row.upos, str(row.degree), f"{row.score:.4f}")
        console.print(table)


def main():
    args = parse_args()
    config_path = args.config or (DEFAULT_CONFIG_PATH if DEFAULT_CONFIG_PATH.exists() else None)
    cfg = load_config(config_path)

    graph_cfg = cfg["graph"]
    output_dir = resolve(args.output_dir or cfg["report"]["output_dir"])
    top_k = cfg["report"]["top_k"]

    backend, tagger = build_tagger(cfg, args)

    # --- Step 1: Corpus ---
    documents = []
    if backend != "conllu":
        loader = PatentCorpusLoader(resolve(args.input or cfg["corpus"]["path"]),
                                    text_column=cfg["corpus"]["text_column"])
        documents = loader.documents()

    # --- Step 2: Tagging + Graph ---
    pipeline = DependencyGraphPipeline(
        tagger,
        directed=args.directed or graph_cfg["directed"],
        mode=args.mode or graph_cfg["mode"],
        tag_policy=graph_cfg["tag_policy"],
        min_size=graph_cfg["min_size"],
        max_size=graph_cfg["max_size"],
    )
    result = pipeline.run(documents, top_k=top_k)
    graph = result.graph

    output_dir.mkdir(parents=True, exist_ok=True)
    result.tokens.to_csv(output_dir / "tokens.csv", index=False)
    graph.node_frame().to_csv(output_dir / "nodes.csv", index=False)
    graph.edge_frame().to_csv(output_dir / "edges.csv", index=False)
    graph.write_edgelist(output_dir / "edgelist.csv")

    keywords = GraphAnalyzer(graph).keywords(top_k=top_k)
    print_report(result.summary, result.ranking, keywords)
    plot_dependency_graph(graph, output_dir / "dependency_graph.png", top_labels=top_k)

    if args.skip_embeddings:
        logger.info("Embeddings skipped")
        return

    # --- Step 3: node2vec + UMAP ---
    emb_cfg = dict(cfg["embeddings"])
    emb_cfg["cache_path"] = resolve(emb_cfg["cache_path"])
    embeddings = Node2VecEmbedder(**emb_cfg).fit(graph, force_retrain=args.force_retrain)

    try:
        coords = UmapProjector(**cfg["projection"]).project(embeddings)
    except ValueError as e:
        logger.warning(f"Projection skipped: {e}")
        return

    coords.to_csv(output_dir / "umap_coords.csv", index_label="term")
    plot_projection(coords, graph.node_frame(), output_dir / "umap_projection.png", top_labels=top_k)
    console.print(f"✅ Results saved to [green]{output_dir}[/green]")


if __name__ == "__main__":
    main()
