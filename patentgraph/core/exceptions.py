# patentgraph/core/exceptions.py


class MalformedInputError(ValueError):
    """Таблица токенов не соответствует ожидаемой схеме (колонки, теги, ключи)."""


class ModelNotAvailableError(RuntimeError):
    """Модель парсера не установлена локально, а автозагрузка выключена."""
