"""
Chart Verifier - verification engine for packaged Helm charts.

Основные компоненты:
- Verifier: Настройка и запуск одной проверки чарта
- ConfigStore: Типизированные флаги запуска с валидацией ключей
- CheckRegistry: Включение/выключение проверок
- Report: Структурированный отчёт о проверке
- ReportSummarizer: Производные сводки (metadata, digests, annotations, results)

Usage:
    chart-verifier verify ./mychart
    chart-verifier report results report.yaml
"""

__version__ = "1.2.0"

from chart_verifier.core.checks import CheckName, CheckRegistry, CheckType
from chart_verifier.core.errors import (
    ChartVerifierError,
    ConflictingSelectionError,
    ExecutionError,
    InvalidKeyError,
    MissingArgumentError,
    NoReportError,
    SerializationError,
    VerifierStateError,
)
from chart_verifier.core.flags import BooleanKey, ConfigStore, DurationKey, StringKey, ValuesKey
from chart_verifier.core.report import CheckReport, OutcomeType, Report, ReportFormat
from chart_verifier.reports.summary import ReportSummarizer, SummaryFormat, SummaryKind
from chart_verifier.verifier import RunOptions, Verifier, VerifierState

__all__ = [
    # Запуск
    "Verifier",
    "VerifierState",
    "RunOptions",

    # Конфигурация
    "ConfigStore",
    "BooleanKey",
    "DurationKey",
    "StringKey",
    "ValuesKey",
    "CheckName",
    "CheckRegistry",
    "CheckType",

    # Отчёты
    "Report",
    "CheckReport",
    "OutcomeType",
    "ReportFormat",
    "ReportSummarizer",
    "SummaryKind",
    "SummaryFormat",

    # Ошибки
    "ChartVerifierError",
    "InvalidKeyError",
    "ConflictingSelectionError",
    "MissingArgumentError",
    "NoReportError",
    "ExecutionError",
    "SerializationError",
    "VerifierStateError",

    "__version__",
]
