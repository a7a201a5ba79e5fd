# patentgraph/parsers/conllu_tagger.py
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

from conllu import parse_incr
from pydantic import ValidationError

from patentgraph.core.data_structures import TokenRecord
from patentgraph.core.exceptions import MalformedInputError
from patentgraph.core.interfaces import BaseTagger

logger = logging.getLogger(__name__)


class ConlluTagger(BaseTagger):
    """
    "Тэггер" для заранее размеченного корпуса в формате CoNLL-U.
    Документы разделяются комментариями `# newdoc` / `# newdoc id = ...`.
    Мульти-словные токены (1-2) и пустые узлы (8.1) пропускаются.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"CoNLL-U file not found: {self.path}")

    def tag(self, documents: Optional[Sequence[str]] = None) -> List[TokenRecord]:
        """Аргумент documents игнорируется: разметка уже лежит в файле."""
        if documents:
            logger.warning("ConlluTagger ignores raw documents and reads the pre-tagged file")

        records = []
        doc_id = -1
        sentence_id = 0

        logger.info(f"Parsing file: {self.path.name}")
        with open(self.path, "r", encoding="utf-8") as f:
            for sentence in parse_incr(f):
                meta = sentence.metadata
                if doc_id < 0 or "newdoc id" in meta or "newdoc" in meta:
                    doc_id += 1
                    sentence_id = 0
                sentence_id += 1

                for token in sentence:
                    if not isinstance(token["id"], int):
                        continue
                    records.append(self._to_record(token, doc_id, sentence_id, meta.get("sent_id")))

        logger.info(f"Loaded {len(records)} tokens from {doc_id + 1} documents")
        return records

    @staticmethod
    def _to_record(token, doc_id: int, sentence_id: int, sent_label: Optional[str]) -> TokenRecord:
        form = token["form"]
        lemma = token["lemma"]
        if not lemma or (lemma == "_" and form != "_"):
            lemma = form

        try:
            return TokenRecord(
                doc_id=doc_id,
                sentence_id=sentence_id,
                token_id=token["id"],
                head_token_id=token["head"] if token["head"] is not None else 0,
                lemma=lemma,
                upos=token["upos"] or "",
                text=form,
                deprel=token["deprel"],
            )
        except ValidationError as e:
            where = sent_label or f"doc {doc_id}, sentence {sentence_id}"
            raise MalformedInputError(f"Invalid token {token['id']} in {where}: {e}") from e
