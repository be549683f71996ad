"""
Exceptions raised by the verification engine.

Every error is returned to the caller; only the CLI decides on exit codes.
"""


class ChartVerifierError(Exception):
    """Базовое исключение chart-verifier."""
    pass


class InvalidKeyError(ChartVerifierError):
    """Ключ конфигурации или имя проверки не входит в допустимый набор."""

    def __init__(self, kind: str, key: str, message: str = None):
        self.kind = kind
        self.key = key
        super().__init__(message or f"Invalid {kind} key name: {key}")


class ConflictingSelectionError(ChartVerifierError):
    """Одновременно заданы списки включения и исключения проверок."""

    def __init__(self, message: str = "enable and disable check lists can't be used at the same time"):
        super().__init__(message)


class MissingArgumentError(ChartVerifierError):
    """Не передан обязательный аргумент."""

    def __init__(self, argument: str):
        self.argument = argument
        super().__init__(f"run error: {argument} is required")


class NoReportError(ChartVerifierError):
    """Сводка запрошена до того, как отчёт был установлен."""

    def __init__(self, message: str = "no report set from which to create a summary"):
        super().__init__(message)


class ExecutionError(ChartVerifierError):
    """Ошибка исполнителя проверок (передаётся вызывающему без изменений)."""
    pass


class SerializationError(ChartVerifierError):
    """Ошибка кодирования или декодирования отчёта."""
    pass


class VerifierStateError(ChartVerifierError):
    """Операция недопустима в текущем состоянии Verifier."""
    pass
