# patentgraph/core/data_structures.py
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

import networkx as nx
import pandas as pd
from pydantic import BaseModel, field_validator, model_validator

from patentgraph.config import UPOS_TAGS


class TokenRecord(BaseModel):
    """
    Одна строка выхода парсера: токен с координатами (документ, предложение, позиция)
    и ссылкой на синтаксическую вершину внутри того же предложения.
    """
    doc_id: int
    sentence_id: int
    token_id: int  # 1-based index in sentence
    head_token_id: int  # 0 for ROOT, else 1-based index
    lemma: str  # Normalized form (lower case)
    upos: str  # UPOS (NOUN, VERB, etc.)

    text: Optional[str] = None
    deprel: Optional[str] = None

    @field_validator("lemma")
    @classmethod
    def normalize_lemma(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("Lemma must not be empty")
        return value

    @field_validator("upos")
    @classmethod
    def check_upos(cls, value: str) -> str:
        value = value.strip().upper()
        if value not in UPOS_TAGS:
            raise ValueError(f"Unknown UPOS tag: '{value}'")
        return value

    @model_validator(mode='after')
    def check_head(self):
        if self.token_id < 1:
            raise ValueError(f"token_id must be 1-based, got {self.token_id}")
        if self.head_token_id < 0:
            raise ValueError(f"head_token_id must be >= 0, got {self.head_token_id}")
        if self.head_token_id == self.token_id:
            raise ValueError(f"Token {self.token_id} cannot be its own head")
        return self

    @property
    def key(self) -> Tuple[int, int, int]:
        return self.doc_id, self.sentence_id, self.token_id

    @property
    def is_root(self) -> bool:
        return self.head_token_id == 0


class AggregationMode(str, Enum):
    WEIGHTED = "weighted"  # вес ребра = число вхождений пары
    DEDUPLICATED = "deduplicated"  # пара учитывается один раз, без веса


class TagPolicy(str, Enum):
    MAJORITY = "majority"  # самый частый тег, ничьи по алфавиту
    FIRST = "first"  # тег первого вхождения леммы в потоке токенов


@dataclass(frozen=True)
class VocabEntry:
    vocab_id: int
    lemma: str


class Vocabulary:
    """Биекция лемма <-> vocab_id для одного прогона."""

    def __init__(self, entries: List[VocabEntry]):
        self._entries = list(entries)
        self._by_lemma: Dict[str, int] = {}
        self._by_id: Dict[int, str] = {}

        for entry in self._entries:
            if entry.lemma in self._by_lemma:
                raise ValueError(f"Duplicate lemma in vocabulary: '{entry.lemma}'")
            if entry.vocab_id in self._by_id:
                raise ValueError(f"Duplicate vocab_id in vocabulary: {entry.vocab_id}")
            self._by_lemma[entry.lemma] = entry.vocab_id
            self._by_id[entry.vocab_id] = entry.lemma

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[VocabEntry]:
        return iter(self._entries)

    def __contains__(self, lemma: str) -> bool:
        return lemma in self._by_lemma

    def id_of(self, lemma: str) -> int:
        return self._by_lemma[lemma]

    def lemma_of(self, vocab_id: int) -> str:
        return self._by_id[vocab_id]

    @property
    def ids(self) -> List[int]:
        return [e.vocab_id for e in self._entries]

    def as_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {"vocab_id": [e.vocab_id for e in self._entries],
             "lemma": [e.lemma for e in self._entries]},
            columns=["vocab_id", "lemma"],
        )


@dataclass(frozen=True)
class GraphNode:
    vocab_id: int
    label: str
    upos: str
    degree: int
    size: float
    color: str


@dataclass(frozen=True)
class GraphEdge:
    source: int
    target: int
    weight: Optional[int] = None  # None в режиме DEDUPLICATED


@dataclass(frozen=True)
class DependencyGraph:
    """
    Неизменяемый снимок графа словаря.
    Пересчитывается целиком при каждом вызове GraphBuilder.fold.
    """
    nodes: Tuple[GraphNode, ...]
    edges: Tuple[GraphEdge, ...]
    directed: bool
    mode: AggregationMode
    _labels: Dict[int, str] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_labels", {n.vocab_id: n.label for n in self.nodes})

    def node(self, vocab_id: int) -> GraphNode:
        for n in self.nodes:
            if n.vocab_id == vocab_id:
                return n
        raise KeyError(vocab_id)

    def node_by_label(self, label: str) -> GraphNode:
        for n in self.nodes:
            if n.label == label:
                return n
        raise KeyError(label)

    def label_of(self, vocab_id: int) -> str:
        return self._labels[vocab_id]

    def node_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [{"id": n.vocab_id, "label": n.label, "upos": n.upos,
              "degree": n.degree, "size": n.size, "color": n.color} for n in self.nodes],
            columns=["id", "label", "upos", "degree", "size", "color"],
        )

    def edge_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [{"from": e.source, "to": e.target, "weight": e.weight} for e in self.edges],
            columns=["from", "to", "weight"],
        )

    def to_networkx(self) -> nx.Graph:
        g = nx.DiGraph() if self.directed else nx.Graph()
        for n in self.nodes:
            g.add_node(n.vocab_id, label=n.label, upos=n.upos,
                       degree=n.degree, size=n.size, color=n.color)
        for e in self.edges:
            g.add_edge(e.source, e.target, weight=e.weight if e.weight is not None else 1)
        return g

    def labeled_edges(self) -> List[Tuple[str, str, int]]:
        """Плоский список (from, to, weight) со строковыми метками, вход для node2vec."""
        return [
            (self._labels[e.source], self._labels[e.target], e.weight if e.weight is not None else 1)
            for e in self.edges
        ]

    def write_edgelist(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        pd.DataFrame(self.labeled_edges(), columns=["from", "to", "weight"]).to_csv(path, index=False)
        return path
