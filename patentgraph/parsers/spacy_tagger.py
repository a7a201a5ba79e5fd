"""
Локальная обертка для spaCy парсера.

    tagger = SpacyTagger(model="en_core_web_sm")
    records = tagger.tag(texts)
"""
import logging
from typing import List, Sequence

import spacy
from tqdm import tqdm

from patentgraph.core.data_structures import TokenRecord
from patentgraph.core.exceptions import ModelNotAvailableError
from patentgraph.core.interfaces import BaseTagger

logger = logging.getLogger(__name__)


class SpacyTagger(BaseTagger):
    """
    Тэггер на базе spacy.load(model). Пакетная обработка через nlp.pipe.
    """

    def __init__(
            self,
            model: str = "en_core_web_sm",
            batch_size: int = 32,
            auto_download: bool = False,
            show_progress: bool = True,
    ):
        self.model = model
        self.batch_size = batch_size
        self.auto_download = auto_download
        self.show_progress = show_progress
        self.nlp = self._load_model()

    def _load_model(self):
        try:
            nlp = spacy.load(self.model)
        except OSError as e:
            if not self.auto_download:
                logger.error(f"spaCy model '{self.model}' is not installed: {e}")
                raise ModelNotAvailableError(
                    f"spaCy model '{self.model}' not found. "
                    f"Run `python -m spacy download {self.model}` or pass auto_download=True."
                ) from e
            logger.info(f"Downloading spaCy model '{self.model}'...")
            spacy.cli.download(self.model)
            nlp = spacy.load(self.model)

        logger.info(f"spaCy loaded ({self.model}), pipeline: {nlp.pipe_names}")
        return nlp

    def tag(self, documents: Sequence[str]) -> List[TokenRecord]:
        records = []
        docs = self.nlp.pipe(documents, batch_size=self.batch_size)
        iterator = tqdm(docs, total=len(documents), desc="spaCy tagging", disable=not self.show_progress)
        for doc_id, doc in enumerate(iterator):
            records.extend(self._format_output(doc_id, doc))

        logger.info(f"Tagged {len(documents)} documents into {len(records)} tokens")
        return records

    @staticmethod
    def _format_output(doc_id: int, doc) -> List[TokenRecord]:
        result = []
        for sentence_id, sent in enumerate(doc.sents, 1):
            sent_offset = sent.start
            for token in sent:
                # пробельные токены spaCy в дерево не входят
                if token.is_space:
                    continue
                lemma = token.lemma_.strip() or token.text
                result.append(TokenRecord(
                    doc_id=doc_id,
                    sentence_id=sentence_id,
                    token_id=token.i - sent_offset + 1,
                    # у spaCy корень указывает сам на себя
                    head_token_id=token.head.i - sent_offset + 1 if token.head.i != token.i else 0,
                    lemma=lemma,
                    upos=token.pos_,
                    text=token.text,
                    deprel=token.dep_,
                ))
        return result
