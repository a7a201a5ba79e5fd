#!/usr/bin/env python3
"""
Локальная обертка для Stanza.

Использование:
    from patentgraph.parsers.stanza_tagger import StanzaTagger

    tagger = StanzaTagger(lang="en", auto_download=True)
    records = tagger.tag(["A water tank provided with a water pipe."])

Stanza сама делает сегментацию, поэтому на вход подаются сырые тексты.
"""
import logging
from typing import List, Sequence

import stanza
from tqdm import tqdm

from patentgraph.core.data_structures import TokenRecord
from patentgraph.core.exceptions import ModelNotAvailableError
from patentgraph.core.interfaces import BaseTagger

logger = logging.getLogger(__name__)


class StanzaTagger(BaseTagger):
    """
    Морфо-синтаксический анализ через stanza.Pipeline (tokenize, pos, lemma, depparse).
    Модель не скачивается молча: либо auto_download=True, либо ModelNotAvailableError.
    """

    def __init__(
            self,
            lang: str = "en",
            processors: str = "tokenize,pos,lemma,depparse",
            use_gpu: bool = False,
            auto_download: bool = False,
            show_progress: bool = True,
    ):
        self.lang = lang
        self.processors = processors
        self.use_gpu = use_gpu
        self.auto_download = auto_download
        self.show_progress = show_progress
        self.nlp = self._load_pipeline()

    def _load_pipeline(self):
        if self.auto_download:
            logger.info(f"Downloading Stanza resources for '{self.lang}' ({self.processors})...")
            stanza.download(self.lang, processors=self.processors, verbose=False)

        try:
            nlp = stanza.Pipeline(
                self.lang,
                processors=self.processors,
                use_gpu=self.use_gpu,
                verbose=False,
                download_method=None,
            )
        except FileNotFoundError as e:
            logger.error(f"Stanza model for '{self.lang}' is not installed: {e}")
            raise ModelNotAvailableError(
                f"Stanza resources for '{self.lang}' not found. "
                f"Run stanza.download('{self.lang}') or pass auto_download=True."
            ) from e

        logger.info(f"Stanza loaded ({self.lang}: {self.processors})")
        return nlp

    def tag(self, documents: Sequence[str]) -> List[TokenRecord]:
        records = []
        iterator = tqdm(documents, desc="Stanza tagging", disable=not self.show_progress)
        for doc_id, text in enumerate(iterator):
            if not text or not text.strip():
                logger.warning(f"Document {doc_id} is empty, skipped")
                continue
            doc = self.nlp(text)
            records.extend(self._format_output(doc_id, doc))

        logger.info(f"Tagged {len(documents)} documents into {len(records)} tokens")
        return records

    @staticmethod
    def _format_output(doc_id: int, doc) -> List[TokenRecord]:
        """
        Конвертирует stanza Document в поток TokenRecord.
        id и head у stanza уже 1-based внутри предложения, root = 0.
        """
        result = []
        for sentence_id, sent in enumerate(doc.sentences, 1):
            for word in sent.words:
                result.append(TokenRecord(
                    doc_id=doc_id,
                    sentence_id=sentence_id,
                    token_id=int(word.id),
                    head_token_id=int(word.head),
                    # у чисел и символов stanza иногда не выдает лемму
                    lemma=word.lemma or word.text,
                    upos=word.upos,
                    text=word.text,
                    deprel=word.deprel,
                ))
        return result
