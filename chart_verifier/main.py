"""
CLI interface for Chart Verifier.

Usage:
    chart-verifier verify ./mychart                       # Verify, YAML report to stdout
    chart-verifier verify ./mychart -o json -w            # JSON report to chartverifier/report.json
    chart-verifier verify ./mychart -x chart-testing      # All checks except chart-testing
    chart-verifier verify ./mychart -f config.yaml        # Profile and check values from a YAML file
    chart-verifier report results report.yaml             # Pass/fail summary
    chart-verifier report annotations report.yaml -s annotations.prefix=example.com
"""

import logging
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
import yaml
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from chart_verifier import __version__
from chart_verifier.config import get_settings
from chart_verifier.core.checks import build_check_selection
from chart_verifier.core.errors import ChartVerifierError, SerializationError
from chart_verifier.core.flags import BooleanKey, DurationKey, StringKey, ValuesKey
from chart_verifier.core.report import OutcomeType, Report, ReportFormat, parse_format
from chart_verifier.executor import LocalExecutor
from chart_verifier.reports.summary import ReportSummarizer, SummaryKind
from chart_verifier.verifier import Verifier

load_dotenv()

app = typer.Typer(
    name="chart-verifier",
    help="Chart Verifier: проверка Helm чартов и отчёты о проверке",
)
err_console = Console(stderr=True)

REPORT_DIR = Path("chartverifier")

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, level: str = "INFO"):
    """Настроить логирование."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def split_values(values: Optional[List[str]]) -> List[str]:
    """["a,b", "c"] -> ["a", "b", "c"]"""
    result = []
    for value in values or []:
        result.extend(part.strip() for part in value.split(",") if part.strip())
    return result


def convert_to_map(values: Optional[List[str]]) -> Dict[str, str]:
    """["key=value"] -> {"key": "value"}"""
    value_map = {}
    for item in split_values(values):
        key, sep, value = item.partition("=")
        if not sep:
            raise typer.BadParameter(f"expected key=value, got {item}")
        value_map[key.lower()] = value
    return value_map


def flatten_values(data: Dict[Any, Any], prefix: str = "") -> Dict[str, Any]:
    """{"profile": {"vendorType": "redhat"}} -> {"profile.vendortype": "redhat"}"""
    flat = {}
    for key, value in data.items():
        name = f"{prefix}{str(key).lower()}"
        if isinstance(value, dict):
            flat.update(flatten_values(value, f"{name}."))
        else:
            flat[name] = value
    return flat


def load_values_files(paths: Optional[List[str]]) -> Dict[str, Any]:
    """
    Прочитать значения конфигурации из YAML файлов (--set-values).

    Более поздние файлы перекрывают более ранние.

    Raises:
        SerializationError: файл не читается или не является YAML словарём
    """
    values = {}
    for path in split_values(paths):
        try:
            data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise SerializationError(f"values file {path}: {e}") from e
        if data is None:
            continue
        if not isinstance(data, dict):
            raise SerializationError(f"values file {path}: expected a mapping")
        values.update(flatten_values(data))
    return values


def output_format(output: Optional[str], default: str) -> ReportFormat:
    return parse_format(output or default)


def fail(error) -> None:
    err_console.print(f"[red]❌ {error}[/]")
    raise typer.Exit(1)


def print_results(report: Report) -> None:
    """Вывести краткую сводку проверок."""
    table = Table(title=f"Chart Verifier {__version__}: {report.metadata.tool.chart_uri}")
    table.add_column("Check", style="cyan")
    table.add_column("Type", style="dim")
    table.add_column("Outcome")

    styles = {
        OutcomeType.PASS: "[green]✅ Pass[/]",
        OutcomeType.FAIL: "[red]❌ Fail[/]",
        OutcomeType.UNKNOWN: "[yellow]? Unknown[/]",
    }
    for result in report.results:
        table.add_row(result.check, result.type.value, styles[result.outcome])

    err_console.print(table)


@app.command()
def verify(
    chart_uri: str = typer.Argument(..., help="Chart directory or packaged chart"),
    enable: Optional[List[str]] = typer.Option(None, "--enable", "-e", help="only the informed checks will be enabled"),
    disable: Optional[List[str]] = typer.Option(None, "--disable", "-x", help="all checks will be enabled except the informed ones"),
    set_values: Optional[List[str]] = typer.Option(None, "--set", "-s", help="overrides a configuration, e.g: profile.vendortype=redhat"),
    values_files: Optional[List[str]] = typer.Option(None, "--set-values", "-f", help="application and check configuration values in a YAML file (can specify multiple)"),
    chart_set: Optional[List[str]] = typer.Option(None, "--chart-set", "-S", help="set values for the chart (key1=val1,key2=val2)"),
    chart_set_string: Optional[List[str]] = typer.Option(None, "--chart-set-string", "-X", help="set STRING values for the chart"),
    chart_set_file: Optional[List[str]] = typer.Option(None, "--chart-set-file", "-G", help="set values from files (key1=path1)"),
    chart_values: Optional[List[str]] = typer.Option(None, "--chart-values", "-F", help="values YAML files"),
    openshift_version: str = typer.Option("", "--openshift-version", "-V", help="version of OpenShift used in the cluster"),
    namespace: Optional[str] = typer.Option(None, "--namespace", "-n", help="namespace to install the chart into"),
    kube_context: Optional[str] = typer.Option(None, "--kube-context", help="kubeconfig context"),
    kubeconfig: Optional[str] = typer.Option(None, "--kubeconfig", help="path to the kubeconfig file"),
    timeout: Optional[int] = typer.Option(None, "--timeout", help="seconds to wait for chart install and test"),
    provider_delivery: bool = typer.Option(False, "--provider-delivery", "-d", help="chart provider will provide the chart delivery mechanism"),
    suppress_error_log: bool = typer.Option(False, "--suppress-error-log", "-E", help="suppress the error log"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="the output format: json or yaml"),
    write_to_file: bool = typer.Option(False, "--write-to-file", "-w", help="write report to ./chartverifier/report.<format>"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """🔍 Проверить чарт и вывести отчёт."""
    settings = get_settings()
    setup_logging(verbose, settings.log_level)

    try:
        enabled, disabled = build_check_selection(split_values(enable), split_values(disable))
        file_values = load_values_files(values_files)
    except ChartVerifierError as e:
        fail(e)

    verifier = Verifier(executor=LocalExecutor(parallel=settings.parallel_checks))

    if enabled:
        verifier.enable_checks(enabled)
    elif disabled:
        verifier.unenable_checks(disabled)

    seconds = timeout if timeout is not None else settings.timeout_seconds

    verifier.set_boolean(BooleanKey.PROVIDER_DELIVERY, provider_delivery)
    verifier.set_boolean(BooleanKey.SUPPRESS_ERROR_LOG, suppress_error_log)
    verifier.set_duration(DurationKey.TIMEOUT, timedelta(seconds=seconds))
    verifier.set_string(StringKey.OPENSHIFT_VERSION, [openshift_version])
    verifier.set_string(StringKey.CHART_VALUES, split_values(chart_values))
    for key, value in [
        (StringKey.NAMESPACE, namespace),
        (StringKey.KUBE_CONTEXT, kube_context),
        (StringKey.KUBECONFIG, kubeconfig),
    ]:
        if value:
            verifier.set_string(key, [value])

    verifier.set_values(
        ValuesKey.COMMAND_SET,
        {**settings.profile_values(), **file_values, **convert_to_map(set_values)},
    )
    verifier.set_values(ValuesKey.CHART_SET, convert_to_map(chart_set))
    verifier.set_values(ValuesKey.CHART_SET_FILE, convert_to_map(chart_set_file))
    verifier.set_values(ValuesKey.CHART_SET_STRING, convert_to_map(chart_set_string))

    try:
        report = verifier.run(chart_uri)
        fmt = output_format(output, settings.output_format)
        content = report.get_content(fmt)
    except ChartVerifierError as e:
        fail(e)

    if write_to_file:
        REPORT_DIR.mkdir(parents=True, exist_ok=True)
        report_path = REPORT_DIR / f"report.{fmt.value}"
        report_path.write_text(content, encoding="utf-8")
        print_results(report)
        err_console.print(f"[green]✅ Report: {report_path}[/]")
    else:
        typer.echo(content)


@app.command()
def report(
    kind: str = typer.Argument(..., help="all, annotations, digests, metadata or results"),
    report_uri: Path = typer.Argument(..., help="Report file (json or yaml)"),
    set_values: Optional[List[str]] = typer.Option(None, "--set", "-s", help="set report configuration values: profile vendor type and version"),
    values_files: Optional[List[str]] = typer.Option(None, "--set-values", "-f", help="report configuration values in a YAML file (can specify multiple)"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="the output format: json (default) or yaml"),
    write_to_file: bool = typer.Option(False, "--write-to-file", "-w", help="write to report-info.<format>"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """📊 Информация из отчёта о проверке."""
    settings = get_settings()
    setup_logging(verbose, settings.log_level)

    try:
        summary_kind = SummaryKind(kind)
    except ValueError:
        fail(f"Error: command {kind} not recognized")

    fmt = output_format(output, settings.summary_format)

    try:
        loaded = Report.load_file(report_uri)
        summarizer = ReportSummarizer()
        summarizer.set_values({
            **settings.profile_values(),
            **load_values_files(values_files),
            **convert_to_map(set_values),
        })
        summarizer.set_report(loaded)
        content = summarizer.get_content(summary_kind, fmt)
    except ChartVerifierError as e:
        fail(f"Error executing command: {e}")

    if write_to_file:
        info_path = Path(f"report-info.{fmt.value}")
        info_path.write_text(content, encoding="utf-8")
        err_console.print(f"[green]✅ Report info: {info_path}[/]")
    else:
        typer.echo(content)


@app.command()
def version():
    """Показать версию."""
    typer.echo(__version__)


if __name__ == "__main__":
    app()
