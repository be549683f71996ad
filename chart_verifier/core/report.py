"""
Report data model.

The report is the full structured output of one verification run: tool
metadata, chart metadata and the ordered list of per-check outcomes. It is
persisted as JSON or YAML with the field names below; a handful of tool
metadata fields are dropped from the output when empty.
"""

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .checks import CheckId, CheckType
from .errors import InvalidKeyError, SerializationError

logger = logging.getLogger(__name__)

REPORT_API_VERSION = "v1"
REPORT_KIND = "verify-report"
YAML_VENDOR_TYPE_KEY = "VendorType"

# Поля tool metadata, которые не выводятся если пустые
OMIT_IF_EMPTY = (
    "lastCertifiedTimestamp",
    "certifiedOpenShiftVersions",
    "testedOpenShiftVersion",
    "supportedOpenShiftVersions",
)


class ReportFormat(str, Enum):
    JSON = "json"
    YAML = "yaml"


class OutcomeType(str, Enum):
    UNKNOWN = "Unknown"
    PASS = "Pass"
    FAIL = "Fail"


def _as_text(value: Any) -> Any:
    # YAML превращает 1.0 и даты без кавычек в float/datetime
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class _ReportModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Digests(_ReportModel):
    chart: str = ""
    package: str = ""


class ProfileInfo(_ReportModel):
    vendor_type: str = Field(
        "",
        alias="vendorType",
        validation_alias=AliasChoices("vendorType", "VendorType", "vendor_type"),
    )
    version: str = ""

    coerce_text = field_validator("vendor_type", "version", mode="before")(_as_text)


class Maintainer(_ReportModel):
    name: str = ""
    email: Optional[str] = None
    url: Optional[str] = None


class ChartData(_ReportModel):
    """Метаданные чарта (Chart.yaml), встраиваются в отчёт как есть."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    name: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None
    api_version: Optional[str] = Field(None, alias="apiVersion")
    app_version: Optional[str] = Field(None, alias="appVersion")
    kube_version: Optional[str] = Field(None, alias="kubeVersion")
    type: Optional[str] = None
    keywords: Optional[List[str]] = None
    home: Optional[str] = None
    sources: Optional[List[str]] = None
    icon: Optional[str] = None
    deprecated: Optional[bool] = None
    annotations: Optional[Dict[str, str]] = None
    maintainers: Optional[List[Maintainer]] = None

    coerce_text = field_validator(
        "name", "version", "api_version", "app_version", "kube_version", mode="before"
    )(_as_text)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ToolMetadata(_ReportModel):
    version: str = Field("", alias="verifier-version")
    profile: ProfileInfo = Field(default_factory=ProfileInfo)
    chart_uri: str = Field("", alias="chart-uri")
    digests: Digests = Field(default_factory=Digests)
    last_certified_timestamp: str = Field("", alias="lastCertifiedTimestamp")
    certified_openshift_versions: str = Field("", alias="certifiedOpenShiftVersions")
    tested_openshift_version: str = Field("", alias="testedOpenShiftVersion")
    supported_openshift_versions: str = Field("", alias="supportedOpenShiftVersions")
    provider_delivery: bool = Field(False, alias="providerControlledDelivery")

    coerce_text = field_validator(
        "version",
        "last_certified_timestamp",
        "certified_openshift_versions",
        "tested_openshift_version",
        "supported_openshift_versions",
        mode="before",
    )(_as_text)


class ReportMetadata(_ReportModel):
    tool: ToolMetadata = Field(default_factory=ToolMetadata)
    chart: Optional[ChartData] = None
    overrides: str = Field("", alias="chart-overrides")


class CheckReport(_ReportModel):
    check: str
    type: CheckType
    outcome: OutcomeType = OutcomeType.UNKNOWN
    reason: str = ""


class Report(_ReportModel):
    """
    Отчёт о проверке чарта.

    Порядок results соответствует порядку выполнения проверок,
    идентификатор проверки уникален в пределах отчёта.
    """

    apiversion: str = ""
    kind: str = ""
    metadata: ReportMetadata = Field(default_factory=ReportMetadata)
    results: List[CheckReport] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_checks(self) -> "Report":
        seen = set()
        for result in self.results:
            if result.check in seen:
                raise ValueError(f"duplicate check in report: {result.check}")
            seen.add(result.check)
        return self

    def init(self, tool_version: str = "") -> "Report":
        """Вернуть копию с заполненными значениями по умолчанию."""
        tool = self.metadata.tool
        if not tool.version and tool_version:
            tool = tool.model_copy(update={"version": tool_version})
        return self.model_copy(update={
            "apiversion": self.apiversion or REPORT_API_VERSION,
            "kind": self.kind or REPORT_KIND,
            "metadata": self.metadata.model_copy(update={"tool": tool}),
        })

    def find_result(self, check: str) -> Optional[CheckReport]:
        for result in self.results:
            if result.check == check:
                return result
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Преобразовать в словарь для JSON/YAML."""
        data = self.model_dump(mode="json", by_alias=True, exclude={"metadata": {"chart"}})
        tool = data["metadata"]["tool"]
        for key in OMIT_IF_EMPTY:
            if not tool.get(key):
                tool.pop(key, None)
        if not tool["digests"].get("package"):
            tool["digests"].pop("package", None)

        chart = self.metadata.chart
        metadata = data["metadata"]
        data["metadata"] = {
            "tool": metadata["tool"],
            "chart": chart.to_dict() if chart is not None else None,
            "chart-overrides": metadata["chart-overrides"],
        }
        return data

    def get_content(self, format: Union[ReportFormat, str] = ReportFormat.YAML) -> str:
        fmt = parse_format(format)
        data = self.to_dict()
        if fmt == ReportFormat.YAML:
            # В YAML ключ vendor type пишется с заглавной буквы
            profile = data["metadata"]["tool"]["profile"]
            data["metadata"]["tool"]["profile"] = {
                YAML_VENDOR_TYPE_KEY: profile["vendorType"],
                "version": profile["version"],
            }
        return encode_content(data, fmt)

    @classmethod
    def load(cls, content: str) -> "Report":
        """
        Загрузить отчёт из JSON или YAML.

        Raises:
            SerializationError: содержимое не разбирается или не является отчётом
        """
        data = decode_content(content)
        if not isinstance(data, dict):
            raise SerializationError("report content is empty or not a mapping")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise SerializationError(f"invalid report: {e}") from e

    @classmethod
    def load_file(cls, path: Union[str, Path]) -> "Report":
        path = Path(path)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise SerializationError(f"report path {path}: error reading file {e}") from e
        return cls.load(content)


def parse_format(format: Union[ReportFormat, str]) -> ReportFormat:
    """Неизвестный формат -> YAML (с предупреждением)."""
    try:
        return ReportFormat(format)
    except ValueError:
        logger.warning(f"Unsupported output format {format!r}, falling back to yaml")
        return ReportFormat.YAML


def encode_content(data: Any, format: Union[ReportFormat, str]) -> str:
    fmt = parse_format(format)
    try:
        if fmt == ReportFormat.JSON:
            return json.dumps(data, indent=2, ensure_ascii=False)
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    except (TypeError, ValueError, yaml.YAMLError) as e:
        raise SerializationError(f"error encoding {fmt.value} content: {e}") from e


def decode_content(content: str) -> Any:
    try:
        return json.loads(content)
    except ValueError:
        pass
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SerializationError(f"content is neither json nor yaml: {e}") from e


@dataclass
class CheckReportHandle:
    """Изменяемая запись проверки, пока отчёт собирается."""
    check: str
    type: CheckType
    outcome: OutcomeType = OutcomeType.UNKNOWN
    reason: str = ""

    def set_result(self, ok: bool, reason: str) -> None:
        self.outcome = OutcomeType.PASS if ok else OutcomeType.FAIL
        self.reason = reason

    def to_check_report(self) -> CheckReport:
        return CheckReport(check=self.check, type=self.type, outcome=self.outcome, reason=self.reason)


class ReportBuilder:
    """Собирает Report по мере выполнения проверок."""

    def __init__(self):
        self.tool = ToolMetadata()
        self.chart: Optional[ChartData] = None
        self.overrides = ""
        self.checks: List[CheckReportHandle] = []

    def add_check(self, check_id: CheckId, check_type: CheckType) -> CheckReportHandle:
        """
        Добавить проверку с исходом Unknown.

        Raises:
            InvalidKeyError: проверка с таким id уже добавлена
        """
        name = str(check_id)
        if any(handle.check == name for handle in self.checks):
            raise InvalidKeyError("check", name, f"duplicate check in report: {name}")
        handle = CheckReportHandle(check=name, type=check_type)
        self.checks.append(handle)
        return handle

    def build(self) -> Report:
        return Report(
            apiversion=REPORT_API_VERSION,
            kind=REPORT_KIND,
            metadata=ReportMetadata(tool=self.tool, chart=self.chart, overrides=self.overrides),
            results=[handle.to_check_report() for handle in self.checks],
        )
