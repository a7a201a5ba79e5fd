import tempfile
import unittest
from pathlib import Path

import networkx as nx
import pandas as pd
from pydantic import ValidationError

from patentgraph.core.data_structures import (
    AggregationMode,
    DependencyGraph,
    GraphEdge,
    GraphNode,
    TokenRecord,
    VocabEntry,
    Vocabulary,
)


class TestTokenRecord(unittest.TestCase):
    def test_normalization(self):
        t = TokenRecord(doc_id=0, sentence_id=1, token_id=1, head_token_id=0,
                        lemma="  Water ", upos="noun", text="Water")
        self.assertEqual(t.lemma, "water")
        self.assertEqual(t.upos, "NOUN")
        self.assertTrue(t.is_root)
        self.assertEqual(t.key, (0, 1, 1))

    def test_unknown_upos(self):
        with self.assertRaises(ValidationError):
            TokenRecord(doc_id=0, sentence_id=1, token_id=1, head_token_id=0, lemma="x", upos="FOO")

    def test_empty_lemma(self):
        with self.assertRaises(ValidationError):
            TokenRecord(doc_id=0, sentence_id=1, token_id=1, head_token_id=0, lemma="  ", upos="X")

    def test_self_head(self):
        with self.assertRaises(ValidationError):
            TokenRecord(doc_id=0, sentence_id=1, token_id=2, head_token_id=2, lemma="x", upos="X")

    def test_zero_based_token_id(self):
        with self.assertRaises(ValidationError):
            TokenRecord(doc_id=0, sentence_id=1, token_id=0, head_token_id=1, lemma="x", upos="X")


class TestVocabulary(unittest.TestCase):
    def test_lookup(self):
        vocab = Vocabulary([VocabEntry(0, "cat"), VocabEntry(1, "sat")])
        self.assertEqual(vocab.id_of("sat"), 1)
        self.assertEqual(vocab.lemma_of(0), "cat")
        self.assertEqual(list(vocab.as_frame()["lemma"]), ["cat", "sat"])

    def test_duplicate_lemma(self):
        with self.assertRaises(ValueError):
            Vocabulary([VocabEntry(0, "cat"), VocabEntry(1, "cat")])

    def test_duplicate_id(self):
        with self.assertRaises(ValueError):
            Vocabulary([VocabEntry(0, "cat"), VocabEntry(0, "sat")])


class TestDependencyGraph(unittest.TestCase):
    def setUp(self):
        self.nodes = (
            GraphNode(0, "cat", "NOUN", 2, 30.0, "#ff9896"),
            GraphNode(1, "sat", "VERB", 1, 5.0, "#bcbd22"),
            GraphNode(2, "the", "DET", 1, 5.0, "#98df8a"),
        )
        self.edges = (GraphEdge(0, 2, 1), GraphEdge(1, 0, 1))

    def test_frames(self):
        graph = DependencyGraph(self.nodes, self.edges, directed=True, mode=AggregationMode.WEIGHTED)

        nodes = graph.node_frame()
        self.assertEqual(list(nodes.columns), ["id", "label", "upos", "degree", "size", "color"])
        self.assertEqual(len(nodes), 3)

        edges = graph.edge_frame()
        self.assertEqual(list(edges.columns), ["from", "to", "weight"])
        self.assertEqual(edges.values.tolist(), [[0, 2, 1], [1, 0, 1]])

    def test_to_networkx(self):
        directed = DependencyGraph(self.nodes, self.edges, directed=True, mode=AggregationMode.WEIGHTED)
        g = directed.to_networkx()
        self.assertIsInstance(g, nx.DiGraph)
        self.assertEqual(g.nodes[0]["label"], "cat")
        self.assertTrue(g.has_edge(1, 0))
        self.assertFalse(g.has_edge(0, 1))

        undirected = DependencyGraph(self.nodes, self.edges, directed=False, mode=AggregationMode.DEDUPLICATED)
        self.assertFalse(undirected.to_networkx().is_directed())

    def test_labeled_edges_default_weight(self):
        edges = (GraphEdge(0, 2), GraphEdge(1, 0))
        graph = DependencyGraph(self.nodes, edges, directed=True, mode=AggregationMode.DEDUPLICATED)
        self.assertEqual(graph.labeled_edges(), [("cat", "the", 1), ("sat", "cat", 1)])
        self.assertEqual(graph.to_networkx()[0][2]["weight"], 1)

    def test_write_edgelist(self):
        graph = DependencyGraph(self.nodes, self.edges, directed=True, mode=AggregationMode.WEIGHTED)
        with tempfile.TemporaryDirectory() as tmp:
            path = graph.write_edgelist(Path(tmp) / "nested" / "edges.csv")
            frame = pd.read_csv(path)
        self.assertEqual(frame.values.tolist(), [["cat", "the", 1], ["sat", "cat", 1]])

    def test_lookup_by_label(self):
        graph = DependencyGraph(self.nodes, self.edges, directed=True, mode=AggregationMode.WEIGHTED)
        self.assertEqual(graph.node_by_label("sat").vocab_id, 1)
        self.assertEqual(graph.node(2).label, "the")
        with self.assertRaises(KeyError):
            graph.node_by_label("dog")


if __name__ == '__main__':
    unittest.main()
