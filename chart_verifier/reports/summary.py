"""
Report summaries.

Derives four projections from a Report:
- metadata: profile, chart uri, chart metadata, delivery mode
- digests: chart and package digests
- annotations: "<prefix>/<field>" annotations for non-empty tool metadata
- results: passed/failed tally of the profile's mandatory checks
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from chart_verifier.core.errors import InvalidKeyError, NoReportError
from chart_verifier.core.profiles import (
    VENDOR_TYPE_CONFIG_NAME,
    VERSION_CONFIG_NAME,
    get_profile,
)
from chart_verifier.core.report import ChartData, OutcomeType, Report, ReportFormat, encode_content

logger = logging.getLogger(__name__)

ANNOTATIONS_PREFIX_CONFIG_NAME = "annotations.prefix"
DEFAULT_ANNOTATIONS_PREFIX = "charts.openshift.io"

DIGESTS_ANNOTATION_NAME = "digest"
LAST_CERTIFIED_TIMESTAMP_ANNOTATION_NAME = "lastCertifiedTimestamp"
CERTIFIED_OCP_VERSIONS_ANNOTATION_NAME = "certifiedOpenShiftVersions"
TESTED_OCP_VERSION_ANNOTATION_NAME = "testedOpenShiftVersion"
SUPPORTED_OCP_VERSIONS_ANNOTATION_NAME = "supportedOpenShiftVersions"

MISSING_MANDATORY_CHECK = "Missing mandatory check : {name}"


class SummaryKind(str, Enum):
    METADATA = "metadata"
    DIGESTS = "digests"
    RESULTS = "results"
    ANNOTATIONS = "annotations"
    ALL = "all"


SummaryFormat = ReportFormat


class _SummaryModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Annotation(_SummaryModel):
    name: str
    value: str


class DigestsReport(_SummaryModel):
    chart_digest: str = Field("", alias="chart")
    package_digest: str = Field("", alias="package")


class MetadataReport(_SummaryModel):
    profile_vendor_type: str = Field("", alias="vendorType")
    profile_version: str = Field("", alias="profileVersion")
    provider_delivery: bool = Field(False, alias="providerControlledDelivery")
    chart_uri: str = Field("", alias="chart-uri")
    chart: Optional[ChartData] = None


class ResultsReport(_SummaryModel):
    passed: str = "0"
    failed: str = "0"
    messages: List[str] = Field(default_factory=list, alias="message")


class ReportSummary(_SummaryModel):
    """Набор сводок; отсутствующие части не выводятся."""

    metadata: Optional[MetadataReport] = None
    digests: Optional[DigestsReport] = None
    annotations: Optional[List[Annotation]] = None
    results: Optional[ResultsReport] = None

    def select(self, kind: SummaryKind) -> "ReportSummary":
        if kind == SummaryKind.ALL:
            return self
        return ReportSummary(**{kind.value: getattr(self, kind.value)})

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        if self.metadata is not None:
            chart = self.metadata.chart
            data["metadata"]["chart"] = chart.to_dict() if chart is not None else None
        return data


def flatten_reason(reason: str) -> str:
    """Многострочную причину в одну строку."""
    return reason.rstrip("\n").replace("\n", ", ")


class ReportSummarizer:
    """
    Генератор сводок по отчёту.

    Все четыре сводки считаются вместе и кэшируются до следующего
    set_report / set_values.
    """

    def __init__(self, profiles_dir: Path = None):
        self.profiles_dir = profiles_dir
        self._report: Optional[Report] = None
        self._values: Dict[str, Any] = {}
        self._summary: Optional[ReportSummary] = None
        self._cache_valid = False

    @property
    def report(self) -> Optional[Report]:
        return self._report

    @property
    def values(self) -> Dict[str, Any]:
        return dict(self._values)

    def set_report(self, report: Report) -> None:
        self._report = report
        self._invalidate()

    def set_values(self, values: Mapping[str, Any]) -> None:
        """Слить значения (ключи без учёта регистра) с уже заданными."""
        for key, value in (values or {}).items():
            self._values[str(key).lower()] = value
        self._invalidate()

    def _invalidate(self) -> None:
        self._summary = None
        self._cache_valid = False

    def get_summary(self) -> ReportSummary:
        if self._report is None:
            raise NoReportError()
        if not self._cache_valid:
            logger.debug("Computing report summaries")
            self._summary = ReportSummary(
                metadata=self._metadata(),
                digests=self._digests(),
                annotations=self._annotations(),
                results=self._results(),
            )
            self._cache_valid = True
        return self._summary

    def get_content(
        self,
        kind: Union[SummaryKind, str] = SummaryKind.ALL,
        format: Union[ReportFormat, str] = ReportFormat.JSON,
    ) -> str:
        """
        Получить сводку в виде JSON/YAML.

        Args:
            kind: metadata, digests, results, annotations или all
            format: json или yaml (неизвестный формат -> yaml)

        Raises:
            NoReportError: отчёт не установлен
            InvalidKeyError: неизвестный вид сводки
            SerializationError: ошибка кодирования
        """
        try:
            kind = SummaryKind(kind)
        except ValueError:
            raise InvalidKeyError("summary", str(kind), f"summary kind {kind} not recognized") from None

        summary = self.get_summary()
        return encode_content(summary.select(kind).to_dict(), format)

    def _value(self, key: str) -> str:
        value = self._values.get(key)
        return f"{value}" if value is not None else ""

    def _profile_vendor_type(self) -> str:
        return self._value(VENDOR_TYPE_CONFIG_NAME) or self._report.metadata.tool.profile.vendor_type

    def _profile_version(self) -> str:
        return self._value(VERSION_CONFIG_NAME) or self._report.metadata.tool.profile.version

    def _annotations(self) -> List[Annotation]:
        prefix = self._value(ANNOTATIONS_PREFIX_CONFIG_NAME) or DEFAULT_ANNOTATIONS_PREFIX
        tool = self._report.metadata.tool

        fields = [
            (DIGESTS_ANNOTATION_NAME, tool.digests.chart),
            (LAST_CERTIFIED_TIMESTAMP_ANNOTATION_NAME, tool.last_certified_timestamp),
            (CERTIFIED_OCP_VERSIONS_ANNOTATION_NAME, tool.certified_openshift_versions),
            (TESTED_OCP_VERSION_ANNOTATION_NAME, tool.tested_openshift_version),
            (SUPPORTED_OCP_VERSIONS_ANNOTATION_NAME, tool.supported_openshift_versions),
        ]
        return [
            Annotation(name=f"{prefix}/{field_key}", value=value)
            for field_key, value in fields
            if value
        ]

    def _digests(self) -> DigestsReport:
        digests = self._report.metadata.tool.digests
        return DigestsReport(chart_digest=digests.chart, package_digest=digests.package)

    def _metadata(self) -> MetadataReport:
        metadata = self._report.metadata
        return MetadataReport(
            profile_vendor_type=self._profile_vendor_type(),
            profile_version=self._profile_version(),
            provider_delivery=metadata.tool.provider_delivery,
            chart_uri=metadata.tool.chart_uri,
            chart=metadata.chart,
        )

    def _results(self) -> ResultsReport:
        profile = get_profile(
            {
                VENDOR_TYPE_CONFIG_NAME: self._profile_vendor_type(),
                VERSION_CONFIG_NAME: self._profile_version(),
            },
            self.profiles_dir,
        )

        passed = 0
        failed = 0
        messages = []

        for profile_check in profile.mandatory_checks():
            result = self._report.find_result(profile_check.name)
            if result is None:
                failed += 1
                messages.append(MISSING_MANDATORY_CHECK.format(name=profile_check.name))
            elif result.outcome == OutcomeType.PASS:
                passed += 1
            else:
                failed += 1
                messages.append(flatten_reason(result.reason))

        return ResultsReport(passed=str(passed), failed=str(failed), messages=messages)
