"""
Pytest configuration and fixtures.

Использование:
    pytest tests/ -v
"""

import sys
from pathlib import Path
from typing import Callable, List

import pytest
import yaml

# Добавить корень проекта в path
sys.path.insert(0, str(Path(__file__).parent.parent))

from chart_verifier.core.options import RunOptions
from chart_verifier.core.report import Report


# ═══════════════════════════════════════════════════════
# PROFILES
# ═══════════════════════════════════════════════════════

TEST_PROFILES = {
    "profile-testvendor-1.0.yaml": {
        "apiversion": "v1",
        "kind": "verifier-profile",
        "name": "profile-testvendor-1.0",
        "vendorType": "testvendor",
        "version": "v1.0",
        "checks": [
            {"name": "v1.0/images-are-certified", "type": "Mandatory"},
            {"name": "v1.0/has-readme", "type": "Optional"},
        ],
    },
    "profile-testvendor-1.1.yaml": {
        "apiversion": "v1",
        "kind": "verifier-profile",
        "name": "profile-testvendor-1.1",
        "vendorType": "testvendor",
        "version": "v1.1",
        "checks": [
            {"name": "v1.0/images-are-certified", "type": "Mandatory"},
            {"name": "v1.0/helm-lint", "type": "Mandatory"},
            {"name": "v1.0/has-readme", "type": "Optional"},
        ],
    },
    "profile-partner-1.0.yaml": {
        "apiversion": "v1",
        "kind": "verifier-profile",
        "name": "profile-partner-1.0",
        "vendorType": "partner",
        "version": "v1.0",
        "checks": [
            {"name": "v1.0/has-readme", "type": "Mandatory"},
        ],
    },
}


@pytest.fixture(scope="session")
def profiles_dir(tmp_path_factory) -> Path:
    """Директория с маленькими тестовыми профилями."""
    directory = tmp_path_factory.mktemp("profiles")
    for file_name, profile in TEST_PROFILES.items():
        (directory / file_name).write_text(yaml.safe_dump(profile), encoding="utf-8")
    return directory


# ═══════════════════════════════════════════════════════
# REPORTS
# ═══════════════════════════════════════════════════════

def build_report(results: List[dict] = None, tool: dict = None, chart: dict = None) -> Report:
    tool_data = {
        "verifier-version": "1.2.0",
        "profile": {"vendorType": "partner", "version": "v1.0"},
        "chart-uri": "charts/demo",
        "digests": {"chart": "sha256:abc"},
    }
    tool_data.update(tool or {})
    return Report.model_validate({
        "apiversion": "v1",
        "kind": "verify-report",
        "metadata": {
            "tool": tool_data,
            "chart": chart if chart is not None else {"name": "demo", "version": "0.1.0"},
            "chart-overrides": "",
        },
        "results": results or [],
    })


@pytest.fixture(scope="session")
def report_factory() -> Callable[..., Report]:
    """Фабрика отчётов: report_factory(results=[...], tool={...})."""
    return build_report


@pytest.fixture
def sample_report() -> Report:
    return build_report(
        results=[
            {"check": "v1.0/has-readme", "type": "Mandatory", "outcome": "Pass", "reason": "Chart has a README"},
            {"check": "v1.0/helm-lint", "type": "Mandatory", "outcome": "Fail", "reason": "Helm lint has failed\nline 2\n"},
        ],
        tool={
            "lastCertifiedTimestamp": "2024-05-01T10:00:00+00:00",
            "testedOpenShiftVersion": "4.14",
        },
    )


# ═══════════════════════════════════════════════════════
# CHARTS
# ═══════════════════════════════════════════════════════

@pytest.fixture
def chart_dir(tmp_path) -> Path:
    """Минимальный распакованный чарт."""
    directory = tmp_path / "demo"
    directory.mkdir()
    (directory / "Chart.yaml").write_text(
        "apiVersion: v2\nname: demo\nversion: 0.1.0\nappVersion: '1.0'\n",
        encoding="utf-8",
    )
    (directory / "README.md").write_text("# demo\n", encoding="utf-8")
    (directory / "values.yaml").write_text("replicas: 1\n", encoding="utf-8")
    return directory


# ═══════════════════════════════════════════════════════
# MOCK EXECUTOR
# ═══════════════════════════════════════════════════════

class FakeExecutor:
    """Исполнитель, который запоминает RunOptions и возвращает готовый отчёт."""

    def __init__(self, report: Report = None, error: Exception = None):
        self.report = report if report is not None else build_report()
        self.error = error
        self.calls: List[RunOptions] = []

    def execute(self, options: RunOptions) -> Report:
        self.calls.append(options)
        if self.error is not None:
            raise self.error
        return self.report


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()
