"""
Tests for the Verifier lifecycle.

Исполнитель подменяется FakeExecutor, чтобы проверить только
конфигурацию, валидацию и переходы состояний.
"""

from datetime import timedelta

import pytest

from chart_verifier import __version__
from chart_verifier.core.checks import CheckName, get_checks
from chart_verifier.core.errors import (
    ExecutionError,
    InvalidKeyError,
    MissingArgumentError,
    VerifierStateError,
)
from chart_verifier.core.flags import BooleanKey, DurationKey, StringKey, ValuesKey
from chart_verifier.core.report import Report
from chart_verifier.executor import LocalExecutor
from chart_verifier.verifier import Verifier, VerifierState

from conftest import FakeExecutor


class TestRun:

    def test_successful_run(self, fake_executor):
        verifier = Verifier(executor=fake_executor)

        report = verifier.run("charts/demo")

        assert verifier.state == VerifierState.COMPLETED
        assert verifier.get_report() is report
        assert verifier.chart_uri == "charts/demo"
        assert len(fake_executor.calls) == 1

    def test_report_is_initialized(self):
        executor = FakeExecutor(report=Report())
        verifier = Verifier(executor=executor)

        report = verifier.run("charts/demo")

        assert report.apiversion == "v1"
        assert report.kind == "verify-report"
        assert report.metadata.tool.version == __version__

    def test_missing_chart_uri(self, fake_executor):
        verifier = Verifier(executor=fake_executor)

        with pytest.raises(MissingArgumentError) as exc_info:
            verifier.run("")

        assert str(exc_info.value) == "run error: chart_uri is required"
        assert verifier.state == VerifierState.FAILED
        assert fake_executor.calls == []

    def test_invalid_key_skips_executor(self, fake_executor):
        verifier = Verifier(executor=fake_executor)
        verifier.set_string("no-such-flag", ["x"])

        with pytest.raises(InvalidKeyError) as exc_info:
            verifier.run("charts/demo")

        assert exc_info.value.kind == "string"
        assert verifier.state == VerifierState.FAILED
        assert fake_executor.calls == []
        assert verifier.get_report() is None

    def test_invalid_check_name(self, fake_executor):
        verifier = Verifier(executor=fake_executor)
        verifier.enable_checks(["not-a-check"])

        with pytest.raises(InvalidKeyError):
            verifier.run("charts/demo")
        assert fake_executor.calls == []

    def test_executor_error_propagates_unchanged(self):
        error = ExecutionError("cluster unreachable")
        verifier = Verifier(executor=FakeExecutor(error=error))

        with pytest.raises(ExecutionError) as exc_info:
            verifier.run("charts/demo")

        assert exc_info.value is error
        assert verifier.state == VerifierState.FAILED
        assert verifier.get_report() is None

    def test_foreign_error_propagates_unchanged(self):
        error = RuntimeError("boom")
        verifier = Verifier(executor=FakeExecutor(error=error))

        with pytest.raises(RuntimeError) as exc_info:
            verifier.run("charts/demo")
        assert exc_info.value is error

    def test_runs_once(self, fake_executor):
        verifier = Verifier(executor=fake_executor)
        verifier.run("charts/demo")

        with pytest.raises(VerifierStateError):
            verifier.run("charts/demo")
        assert len(fake_executor.calls) == 1

    def test_configuration_closed_after_run(self, fake_executor):
        verifier = Verifier(executor=fake_executor)
        verifier.run("charts/demo")

        with pytest.raises(VerifierStateError):
            verifier.set_boolean(BooleanKey.PROVIDER_DELIVERY, True)
        with pytest.raises(VerifierStateError):
            verifier.unenable_checks([CheckName.HELM_LINT])

    def test_verifiers_have_unique_ids(self):
        assert Verifier().id != Verifier().id


class TestRunOptions:

    def test_defaults(self, fake_executor):
        Verifier(executor=fake_executor).run("charts/demo")
        options = fake_executor.calls[0]

        assert options.bundle_uri == "charts/demo"
        assert list(options.checks_to_run) == get_checks()
        assert options.client_timeout == timedelta(minutes=30)
        assert options.provider_delivery is False
        assert options.overrides == {"profile.vendortype": "partner", "profile.version": "v1.0"}
        assert options.api_version == "1.0.0"

    def test_configuration_projection(self, fake_executor):
        verifier = Verifier(executor=fake_executor)
        verifier.set_boolean(BooleanKey.PROVIDER_DELIVERY, True)
        verifier.set_duration(DurationKey.TIMEOUT, timedelta(minutes=5))
        verifier.set_string(StringKey.OPENSHIFT_VERSION, ["4.14"])
        verifier.set_string(StringKey.CHART_VALUES, ["values-a.yaml", "values-b.yaml"])
        verifier.set_values(ValuesKey.COMMAND_SET, {"profile.VendorType": "redhat"})
        verifier.set_values(ValuesKey.CHART_SET, {"image.tag": "1.0", "replicas": 2})
        verifier.set_values(ValuesKey.CHART_SET_STRING, {"name": "x"})

        verifier.run("charts/demo")
        options = fake_executor.calls[0]

        assert options.provider_delivery is True
        assert options.client_timeout == timedelta(minutes=5)
        assert options.openshift_version == "4.14"
        assert options.value_files == ("values-a.yaml", "values-b.yaml")
        assert options.overrides["profile.vendortype"] == "redhat"
        assert options.chart_set == ("image.tag=1.0", "replicas=2")
        assert options.chart_set_string == ("name=x",)
        assert options.chart_set_file == ()
        assert options.chart_values()["chart-values"] == ["values-a.yaml", "values-b.yaml"]

    def test_selected_checks_in_catalog_order(self, fake_executor):
        verifier = Verifier(executor=fake_executor)
        verifier.enable_checks([CheckName.CHART_TESTING, CheckName.HAS_README])

        verifier.run("charts/demo")

        assert fake_executor.calls[0].checks_to_run == ("has-readme", "chart-testing")

    def test_deny_list(self, fake_executor):
        verifier = Verifier(executor=fake_executor)
        verifier.unenable_checks(["chart-testing"])

        verifier.run("charts/demo")

        assert "chart-testing" not in fake_executor.calls[0].checks_to_run
        assert len(fake_executor.calls[0].checks_to_run) == len(get_checks()) - 1


class TestRunAsync:

    @pytest.mark.asyncio
    async def test_run_async_with_local_executor(self, chart_dir, profiles_dir):
        """Внутри event loop используется execute_async исполнителя."""
        verifier = Verifier(executor=LocalExecutor(profiles_dir=profiles_dir))
        verifier.set_values(ValuesKey.COMMAND_SET, {"profile.vendortype": "testvendor"})

        report = await verifier.run_async(str(chart_dir))

        assert verifier.state == VerifierState.COMPLETED
        assert report.metadata.tool.profile.vendor_type == "testvendor"
        assert [r.check for r in report.results] == ["v1.0/has-readme", "v1.0/images-are-certified"]

    @pytest.mark.asyncio
    async def test_run_async_with_sync_executor(self, fake_executor):
        verifier = Verifier(executor=fake_executor)

        report = await verifier.run_async("charts/demo")

        assert verifier.get_report() is report
        assert fake_executor.calls[0].bundle_uri == "charts/demo"

    @pytest.mark.asyncio
    async def test_run_async_error_propagates(self):
        error = ExecutionError("cluster unreachable")
        verifier = Verifier(executor=FakeExecutor(error=error))

        with pytest.raises(ExecutionError) as exc_info:
            await verifier.run_async("charts/demo")

        assert exc_info.value is error
        assert verifier.state == VerifierState.FAILED

    @pytest.mark.asyncio
    async def test_sync_run_inside_loop_is_execution_error(self, chart_dir, profiles_dir):
        verifier = Verifier(executor=LocalExecutor(profiles_dir=profiles_dir))

        with pytest.raises(ExecutionError, match="execute_async"):
            verifier.run(str(chart_dir))
        assert verifier.state == VerifierState.FAILED
