# patentgraph/ingestion/loader.py
import logging
import re
from pathlib import Path
from typing import List, Union

import pandas as pd

from patentgraph.core.exceptions import MalformedInputError

logger = logging.getLogger(__name__)


def normalize_column_name(name: str) -> str:
    """'Patent Abstract ' -> 'patent_abstract'"""
    name = str(name).strip().lower()
    name = re.sub(r"[^\w]+", "_", name)
    return name.strip("_")


class PatentCorpusLoader:
    """Загрузчик табличного корпуса (CSV) с текстами аннотаций патентов."""

    def __init__(self, path: Union[str, Path], text_column: str = "abstract"):
        self.path = Path(path)
        self.text_column = normalize_column_name(text_column)
        self._frame = None

    def load(self) -> pd.DataFrame:
        if not self.path.exists():
            raise FileNotFoundError(f"Corpus file not found: {self.path}")

        logger.info(f"Reading corpus: {self.path.name}")
        frame = pd.read_csv(self.path)
        frame.columns = [normalize_column_name(c) for c in frame.columns]

        if self.text_column not in frame.columns:
            raise MalformedInputError(
                f"Text column '{self.text_column}' not found, available: {list(frame.columns)}"
            )

        total = len(frame)
        # Неполные строки: пропуски в тексте или пустые строки
        frame = frame.dropna(subset=[self.text_column]).copy()
        frame[self.text_column] = frame[self.text_column].astype(str).str.strip()
        frame = frame[frame[self.text_column] != ""].reset_index(drop=True)
        if "doc_id" in frame.columns:
            frame = frame.rename(columns={"doc_id": "source_doc_id"})
        frame.insert(0, "doc_id", range(len(frame)))

        dropped = total - len(frame)
        if dropped:
            logger.warning(f"Dropped {dropped} incomplete rows out of {total}")
        logger.info(f"Loaded {len(frame)} documents")

        self._frame = frame
        return frame

    def documents(self) -> List[str]:
        """Тексты в порядке doc_id."""
        if self._frame is None:
            self.load()
        return self._frame[self.text_column].tolist()
