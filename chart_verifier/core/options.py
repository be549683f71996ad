"""Execution options handed from the Verifier to the check executor."""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Tuple


@dataclass(frozen=True)
class RunOptions:
    """
    Снимок конфигурации одного запуска (только для чтения).

    Группы значений чарта (chart-set, chart-set-file, chart-set-string)
    хранятся отдельно в виде "key=value", overrides - значения команды (--set).
    """

    bundle_uri: str
    checks_to_run: Tuple[str, ...] = ()
    chart_set: Tuple[str, ...] = ()
    chart_set_file: Tuple[str, ...] = ()
    chart_set_string: Tuple[str, ...] = ()
    value_files: Tuple[str, ...] = ()
    overrides: Mapping[str, Any] = field(default_factory=dict)
    string_settings: Mapping[str, List[str]] = field(default_factory=dict)
    openshift_version: str = ""
    provider_delivery: bool = False
    suppress_error_log: bool = False
    client_timeout: timedelta = timedelta(minutes=30)
    api_version: str = "1.0.0"

    def chart_values(self) -> Dict[str, List[str]]:
        """Группы значений чарта для передачи в проверки."""
        return {
            "chart-set": list(self.chart_set),
            "chart-set-file": list(self.chart_set_file),
            "chart-set-string": list(self.chart_set_string),
            "chart-values": list(self.value_files),
        }
