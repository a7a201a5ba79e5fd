# patentgraph/core/interfaces.py
from abc import ABC, abstractmethod
from typing import List, Sequence

import pandas as pd

from patentgraph.config import TOKEN_COLUMNS
from .data_structures import TokenRecord


class BaseTagger(ABC):
    @abstractmethod
    def tag(self, documents: Sequence[str]) -> List[TokenRecord]:
        """
        Принимает список сырых документов.
        Возвращает плоский поток токенов; doc_id = позиция документа во входном списке,
        sentence_id нумеруется с 1 внутри документа.
        """
        pass


def records_to_frame(records: Sequence[TokenRecord]) -> pd.DataFrame:
    """Переводит поток TokenRecord в таблицу (одна строка на токен)."""
    columns = list(TOKEN_COLUMNS) + ["text", "deprel"]
    return pd.DataFrame([r.model_dump() for r in records], columns=columns)
