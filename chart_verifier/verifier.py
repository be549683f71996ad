"""
Verifier - configures and runs one chart verification.

Lifecycle:
    CONFIGURING -> VALIDATED -> EXECUTING -> COMPLETED | FAILED

Configuration is accepted only in CONFIGURING. A verifier runs once; to
retry after a failure, build a new one.
"""

import asyncio
import logging
import uuid
from datetime import timedelta
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Union

from chart_verifier import __version__
from chart_verifier.core.checks import CheckName, CheckRegistry
from chart_verifier.core.errors import MissingArgumentError, VerifierStateError
from chart_verifier.core.flags import (
    BooleanKey,
    ConfigStore,
    DurationKey,
    FlagKey,
    StringKey,
    ValuesKey,
)
from chart_verifier.core.options import RunOptions
from chart_verifier.core.report import Report
from chart_verifier.executor import CheckExecutor, LocalExecutor

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


class VerifierState(Enum):
    CONFIGURING = "configuring"
    VALIDATED = "validated"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


def map_to_string_list(values: Mapping[str, Any]) -> List[str]:
    """{"a": 1} -> ["a=1"]"""
    return [f"{name}={value}" for name, value in (values or {}).items()]


class Verifier:
    """
    Одна проверка чарта.

    Использование:
        verifier = Verifier()
        verifier.set_boolean(BooleanKey.PROVIDER_DELIVERY, True)
        verifier.unenable_checks([CheckName.CHART_TESTING])
        report = verifier.run("./mychart")
    """

    def __init__(self, executor: CheckExecutor = None, catalog: Iterable[str] = None):
        """
        Args:
            executor: Исполнитель проверок (по умолчанию LocalExecutor)
            catalog: Список известных проверок (по умолчанию весь каталог)
        """
        self.id = str(uuid.uuid4())
        self.config = ConfigStore()
        self.checks = CheckRegistry(catalog)
        self.executor = executor or LocalExecutor()
        self.state = VerifierState.CONFIGURING
        self.chart_uri = ""
        self._report: Optional[Report] = None

    def _ensure_configuring(self) -> None:
        if self.state != VerifierState.CONFIGURING:
            raise VerifierStateError(f"verifier {self.id} is {self.state.value}, configuration is closed")

    def set_boolean(self, key: FlagKey, value: bool) -> None:
        self._ensure_configuring()
        self.config.set_boolean(key, value)

    def set_duration(self, key: FlagKey, duration: timedelta) -> None:
        self._ensure_configuring()
        self.config.set_duration(key, duration)

    def set_string(self, key: FlagKey, value: List[str]) -> None:
        self._ensure_configuring()
        self.config.set_string(key, value)

    def set_values(self, key: FlagKey, values: Mapping[str, Any]) -> None:
        self._ensure_configuring()
        self.config.set_values(key, values)

    def enable_checks(self, names: Iterable[Union[CheckName, str]]) -> None:
        self._ensure_configuring()
        self.checks.enable_checks(names)

    def unenable_checks(self, names: Iterable[Union[CheckName, str]]) -> None:
        self._ensure_configuring()
        self.checks.unenable_checks(names)

    def build_run_options(self, chart_uri: str) -> RunOptions:
        """Снимок ConfigStore для исполнителя."""
        values = self.config.values_flags
        return RunOptions(
            bundle_uri=chart_uri,
            checks_to_run=tuple(self.checks.selected()),
            chart_set=tuple(map_to_string_list(values.get(ValuesKey.CHART_SET.value))),
            chart_set_file=tuple(map_to_string_list(values.get(ValuesKey.CHART_SET_FILE.value))),
            chart_set_string=tuple(map_to_string_list(values.get(ValuesKey.CHART_SET_STRING.value))),
            value_files=tuple(self.config.string_flags.get(StringKey.CHART_VALUES.value, [])),
            overrides=dict(values.get(ValuesKey.COMMAND_SET.value, {})),
            string_settings={k: list(v) for k, v in self.config.string_flags.items()},
            openshift_version=self.config.get_string(StringKey.OPENSHIFT_VERSION),
            provider_delivery=self.config.boolean_flags.get(BooleanKey.PROVIDER_DELIVERY.value, False),
            suppress_error_log=self.config.boolean_flags.get(BooleanKey.SUPPRESS_ERROR_LOG.value, False),
            client_timeout=self.config.get_duration(DurationKey.TIMEOUT),
            api_version=API_VERSION,
        )

    def _start(self, chart_uri: str) -> RunOptions:
        """Проверить конфигурацию и перейти в EXECUTING."""
        self._ensure_configuring()

        if not chart_uri:
            self.state = VerifierState.FAILED
            raise MissingArgumentError("chart_uri")

        self.chart_uri = chart_uri
        self.config.freeze()

        try:
            self.config.validate(self.checks)
        except Exception:
            self.state = VerifierState.FAILED
            raise
        self.state = VerifierState.VALIDATED

        options = self.build_run_options(chart_uri)
        logger.info(f"Chart Verifier {__version__}")
        logger.info(f"Verify : {chart_uri}")
        logger.info(f"Client timeout: {options.client_timeout}")

        self.state = VerifierState.EXECUTING
        return options

    def _fail(self) -> None:
        self.state = VerifierState.FAILED
        logger.error(f"Verification of {self.chart_uri} failed", exc_info=True)

    def _complete(self, report: Report) -> Report:
        self._report = report.init(tool_version=__version__)
        self.state = VerifierState.COMPLETED
        logger.info(f"Verification of {self.chart_uri} completed: {len(self._report.results)} checks")
        return self._report

    def run(self, chart_uri: str) -> Report:
        """
        Запустить проверку чарта.

        Args:
            chart_uri: Путь или URL чарта

        Returns:
            Итоговый Report

        Raises:
            VerifierStateError: run уже вызывался
            MissingArgumentError: пустой chart_uri
            InvalidKeyError: недопустимый ключ конфигурации или имя проверки
            Exception: любая ошибка исполнителя передаётся без изменений
        """
        options = self._start(chart_uri)
        try:
            report = self.executor.execute(options)
        except Exception:
            self._fail()
            raise
        return self._complete(report)

    async def run_async(self, chart_uri: str) -> Report:
        """
        Асинхронный вариант run для вызова из event loop.

        Исполнитель с execute_async ожидается напрямую, иначе execute
        выполняется в отдельном потоке.
        """
        options = self._start(chart_uri)
        execute_async = getattr(self.executor, "execute_async", None)
        try:
            if execute_async is not None:
                report = await execute_async(options)
            else:
                report = await asyncio.to_thread(self.executor.execute, options)
        except Exception:
            self._fail()
            raise
        return self._complete(report)

    def get_report(self) -> Optional[Report]:
        return self._report
