from patentgraph.core.interfaces import BaseTagger


def create_tagger(backend: str, **kwargs) -> BaseTagger:
    """
    Фабрика тэггеров. Бэкенды импортируются лениво, чтобы не тянуть
    stanza/spaCy, когда они не нужны.
    """
    if backend == "stanza":
        from .stanza_tagger import StanzaTagger
        return StanzaTagger(**kwargs)
    if backend == "spacy":
        from .spacy_tagger import SpacyTagger
        return SpacyTagger(**kwargs)
    if backend == "conllu":
        from .conllu_tagger import ConlluTagger
        return ConlluTagger(**kwargs)
    raise ValueError(f"Unknown tagger backend: {backend}")
