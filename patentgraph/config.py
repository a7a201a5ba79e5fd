# patentgraph/config.py
import copy
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

# Определение базовых путей относительно корня проекта
BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = BASE_DIR / "data"
RAW_DIR = DATA_DIR / "raw"
INTERIM_DIR = DATA_DIR / "interim"
OUTPUT_DIR = BASE_DIR / "output"

DEFAULT_CONFIG_PATH = BASE_DIR / "config" / "pipeline.yaml"

# Закрытый набор тегов Universal Dependencies (UPOS)
UPOS_TAGS = (
    "ADJ", "ADP", "ADV", "AUX", "CCONJ", "DET", "INTJ", "NOUN", "NUM",
    "PART", "PRON", "PROPN", "PUNCT", "SCONJ", "SYM", "VERB", "X",
)

# Палитра: по одному цвету на каждый тег, таблица неизменяема
UPOS_COLORS = MappingProxyType({
    "ADJ": "#1f77b4",
    "ADP": "#aec7e8",
    "ADV": "#ff7f0e",
    "AUX": "#ffbb78",
    "CCONJ": "#2ca02c",
    "DET": "#98df8a",
    "INTJ": "#d62728",
    "NOUN": "#ff9896",
    "NUM": "#9467bd",
    "PART": "#c5b0d5",
    "PRON": "#8c564b",
    "PROPN": "#c49c94",
    "PUNCT": "#e377c2",
    "SCONJ": "#f7b6d2",
    "SYM": "#7f7f7f",
    "VERB": "#bcbd22",
    "X": "#17becf",
})

# Знаменательные части речи (для TextRank-ранжирования)
CONTENT_UPOS = frozenset({"NOUN", "PROPN", "ADJ", "VERB"})

# Колонки таблицы токенов, которые ожидает GraphBuilder
TOKEN_COLUMNS = ("doc_id", "sentence_id", "token_id", "head_token_id", "lemma", "upos")

DEFAULT_CONFIG: Dict[str, Any] = {
    "corpus": {
        "path": str(RAW_DIR / "patents.csv"),
        "text_column": "abstract",
    },
    "tagger": {
        "backend": "stanza",
        "lang": "en",
        "model": "en_core_web_sm",
        "auto_download": False,
        "use_gpu": False,
    },
    "graph": {
        "directed": False,
        "mode": "weighted",
        "tag_policy": "majority",
        "min_size": 5.0,
        "max_size": 30.0,
    },
    "embeddings": {
        "cache_path": str(INTERIM_DIR / "node2vec_embeddings.csv"),
        "dimensions": 64,
        "walk_length": 20,
        "num_walks": 50,
        "p": 1.0,
        "q": 1.0,
        "window": 5,
        "workers": 1,
        "seed": 42,
    },
    "projection": {
        "n_neighbors": 15,
        "min_dist": 0.1,
        "metric": "cosine",
        "random_state": 42,
    },
    "report": {
        "output_dir": str(OUTPUT_DIR),
        "top_k": 20,
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Читает YAML-конфиг и накладывает его поверх DEFAULT_CONFIG.
    Без пути возвращает копию значений по умолчанию.
    """
    if path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        user_config = yaml.safe_load(f) or {}

    if not isinstance(user_config, dict):
        raise ValueError(f"Config root must be a mapping, got {type(user_config).__name__}")

    logger.info(f"Loaded config from {path}")
    return _deep_merge(DEFAULT_CONFIG, user_config)
