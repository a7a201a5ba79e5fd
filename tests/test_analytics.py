import unittest

from patentgraph.analytics.metrics import GraphAnalyzer
from patentgraph.core.data_structures import (
    AggregationMode,
    DependencyGraph,
    GraphEdge,
    GraphNode,
    TokenRecord,
)
from patentgraph.graph.builder import GraphBuilder


def tok(doc, sent, tid, head, lemma, upos):
    return TokenRecord(doc_id=doc, sentence_id=sent, token_id=tid,
                       head_token_id=head, lemma=lemma, upos=upos)


def build(tokens, directed=False):
    builder = GraphBuilder()
    vocab = builder.build_vocabulary(tokens)
    return builder.fold(tokens, vocab, directed=directed)


CAT_SAT = [
    tok(0, 1, 1, 2, "the", "DET"),
    tok(0, 1, 2, 3, "cat", "NOUN"),
    tok(0, 1, 3, 0, "sat", "VERB"),
]

# Три предложения, замыкающие треугольник tank - water - pipe
TRIANGLE = [
    tok(0, 1, 1, 0, "tank", "NOUN"), tok(0, 1, 2, 1, "water", "NOUN"),
    tok(0, 2, 1, 0, "water", "NOUN"), tok(0, 2, 2, 1, "pipe", "NOUN"),
    tok(0, 3, 1, 0, "tank", "NOUN"), tok(0, 3, 2, 1, "pipe", "NOUN"),
]


CAT_SAT_AGAIN = [
    tok(1, 1, 1, 2, "the", "DET"),
    tok(1, 1, 2, 3, "cat", "NOUN"),
    tok(1, 1, 3, 0, "sat", "VERB"),
]


def opposite_edges_graph():
    """tank -> pipe дважды, pipe -> tank и pipe -> water по разу."""
    nodes = (
        GraphNode(0, "tank", "NOUN", 3, 30.0, "#ff9896"),
        GraphNode(1, "pipe", "NOUN", 4, 30.0, "#ff9896"),
        GraphNode(2, "water", "NOUN", 1, 5.0, "#ff9896"),
    )
    edges = (GraphEdge(0, 1, 2), GraphEdge(1, 0, 1), GraphEdge(1, 2, 1))
    return DependencyGraph(nodes, edges, directed=True, mode=AggregationMode.WEIGHTED)


class TestGraphSummary(unittest.TestCase):
    def test_chain(self):
        summary = GraphAnalyzer(build(CAT_SAT)).summary()

        self.assertEqual(summary.n_nodes, 3)
        self.assertEqual(summary.n_edges, 2)
        self.assertAlmostEqual(summary.density, 2 / 3)
        self.assertEqual(summary.transitivity, 0.0)
        self.assertAlmostEqual(summary.average_degree, 4 / 3)
        self.assertEqual(summary.n_components, 1)

    def test_triangle(self):
        summary = GraphAnalyzer(build(TRIANGLE)).summary()
        self.assertAlmostEqual(summary.transitivity, 1.0)
        self.assertAlmostEqual(summary.density, 1.0)

    def test_directed_components(self):
        tokens = CAT_SAT + [tok(1, 1, 1, 0, "tank", "NOUN"), tok(1, 1, 2, 1, "water", "NOUN")]
        summary = GraphAnalyzer(build(tokens, directed=True)).summary()
        self.assertEqual(summary.n_components, 2)
        self.assertAlmostEqual(summary.density, 3 / 20)

    def test_average_degree_counts_distinct_neighbours(self):
        # Вес связи на степень простого графа не влияет
        summary = GraphAnalyzer(build(CAT_SAT + CAT_SAT_AGAIN)).summary()
        self.assertEqual(summary.n_edges, 2)
        self.assertAlmostEqual(summary.average_degree, 4 / 3)

    def test_empty(self):
        graph = DependencyGraph((), (), directed=False, mode=AggregationMode.WEIGHTED)
        summary = GraphAnalyzer(graph).summary()
        self.assertEqual(summary.as_dict()["n_nodes"], 0)
        self.assertEqual(summary.density, 0.0)


class TestRanking(unittest.TestCase):
    def test_pagerank_center_first(self):
        ranking = GraphAnalyzer(build(CAT_SAT)).pagerank()

        self.assertEqual(list(ranking.columns), ["label", "upos", "degree", "score"])
        self.assertEqual(ranking.iloc[0]["label"], "cat")
        self.assertAlmostEqual(ranking["score"].sum(), 1.0)
        # Ничья по score разрешается по алфавиту
        self.assertEqual(ranking["label"].tolist()[1:], ["sat", "the"])

    def test_top_k(self):
        ranking = GraphAnalyzer(build(CAT_SAT)).pagerank(top_k=1)
        self.assertEqual(len(ranking), 1)

    def test_keywords_only_content_words(self):
        keywords = GraphAnalyzer(build(CAT_SAT, directed=True)).keywords(top_k=None)
        self.assertEqual(set(keywords["label"]), {"cat", "sat"})

    def test_undirected_view_sums_opposite_edges(self):
        undirected = GraphAnalyzer(opposite_edges_graph()).undirected()
        self.assertEqual(undirected[0][1]["weight"], 3)
        self.assertEqual(undirected[1][2]["weight"], 1)
        self.assertEqual(undirected.number_of_edges(), 2)

    def test_keywords_use_all_relations(self):
        keywords = GraphAnalyzer(opposite_edges_graph()).keywords(top_k=None)
        scores = dict(zip(keywords["label"], keywords["score"]))
        self.assertEqual(keywords.iloc[0]["label"], "pipe")
        self.assertGreater(scores["tank"], scores["water"])

    def test_empty_ranking(self):
        graph = DependencyGraph((), (), directed=False, mode=AggregationMode.WEIGHTED)
        self.assertTrue(GraphAnalyzer(graph).pagerank().empty)


if __name__ == '__main__':
    unittest.main()
