"""
Check executor for local charts.

Features:
- Sequential or parallel execution of check implementations
- Client timeout applied to the whole check phase
- Sync checks run on a per-run thread pool that is abandoned on timeout
- Results kept in selection order regardless of completion order
"""

import asyncio
import inspect
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from chart_verifier.bundle import BundleLoader, LocalBundleLoader
from chart_verifier.core.checks import CheckFunc, CheckId, CheckOptions, CheckResult
from chart_verifier.core.errors import ExecutionError
from chart_verifier.core.options import RunOptions
from chart_verifier.core.profiles import Profile, get_profile
from chart_verifier.core.report import (
    CheckReportHandle,
    Digests,
    ProfileInfo,
    Report,
    ReportBuilder,
    ToolMetadata,
)

logger = logging.getLogger(__name__)

NOT_IMPLEMENTED_REASON = "No implementation available for this check"


class CheckExecutor(Protocol):
    """Внешний исполнитель: загружает чарт, запускает проверки, строит Report."""

    def execute(self, options: RunOptions) -> Report:
        ...


class LocalExecutor:
    """
    Исполнитель проверок для локальных чартов.

    Реализации проверок передаются словарём {имя проверки: функция}.
    Проверка без реализации остаётся в отчёте с исходом Unknown.

    Args:
        checks: Реализации проверок
        loader: Загрузчик метаданных чарта
        parallel: Запускать проверки параллельно
        profiles_dir: Директория профилей (по умолчанию встроенные)
    """

    def __init__(
        self,
        checks: Dict[str, CheckFunc] = None,
        loader: BundleLoader = None,
        parallel: bool = False,
        profiles_dir: Path = None,
    ):
        self.checks: Dict[str, CheckFunc] = dict(checks or {})
        self.loader = loader or LocalBundleLoader()
        self.parallel = parallel
        self.profiles_dir = profiles_dir

    def register(self, name: str) -> Callable[[CheckFunc], CheckFunc]:
        """Декоратор для регистрации реализации проверки."""
        def decorator(func: CheckFunc) -> CheckFunc:
            self.checks[name] = func
            return func
        return decorator

    def execute(self, options: RunOptions) -> Report:
        """
        Синхронный запуск. Внутри работающего event loop используйте execute_async.

        Raises:
            ExecutionError: вызван из работающего event loop
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.execute_async(options))
        raise ExecutionError("execute() called from a running event loop, await execute_async() instead")

    async def execute_async(self, options: RunOptions) -> Report:
        """
        Выполнить выбранные проверки и собрать отчёт.

        Raises:
            ExecutionError: чарт не загружен, проверка упала или истёк timeout
        """
        profile = get_profile(options.overrides, self.profiles_dir)
        logger.info(f"Using profile {profile.vendor_type} {profile.version}")

        bundle = self.loader.load(options.bundle_uri)

        builder = ReportBuilder()
        planned = self._plan(builder, profile, options.checks_to_run)

        timeout = options.client_timeout.total_seconds()
        pool = ThreadPoolExecutor(thread_name_prefix="chart-check")
        completed = False
        try:
            results = await asyncio.wait_for(
                self._run_checks(planned, options, pool),
                timeout=timeout if timeout > 0 else None,
            )
            completed = True
        except asyncio.TimeoutError as e:
            raise ExecutionError(f"checks did not complete within {options.client_timeout}") from e
        finally:
            # Зависшие синхронные проверки не ждём
            pool.shutdown(wait=completed, cancel_futures=not completed)

        for (handle, check_id), result in zip(planned, results):
            if result is None:
                handle.reason = NOT_IMPLEMENTED_REASON
                continue
            handle.set_result(result.ok, result.reason)
            logger.debug(f"{check_id}: {handle.outcome.value}")

        builder.tool = ToolMetadata(
            profile=ProfileInfo(vendor_type=profile.vendor_type, version=profile.version),
            chart_uri=options.bundle_uri,
            digests=Digests(chart=bundle.chart_digest, package=bundle.package_digest),
            last_certified_timestamp=datetime.now(timezone.utc).isoformat(),
            certified_openshift_versions=options.openshift_version,
            tested_openshift_version=options.openshift_version,
            provider_delivery=options.provider_delivery,
        )
        builder.chart = bundle.chart_data
        builder.overrides = ",".join(options.chart_set)
        return builder.build()

    def _plan(
        self,
        builder: ReportBuilder,
        profile: Profile,
        checks_to_run,
    ) -> List[Tuple[CheckReportHandle, CheckId]]:
        planned = []
        for name in checks_to_run:
            profile_check = profile.find_check(name)
            if profile_check is None:
                logger.debug(f"Check {name} is not part of profile {profile.name}, skipping")
                continue
            check_id = profile_check.check_id
            planned.append((builder.add_check(check_id, profile_check.type), check_id))
        return planned

    async def _run_checks(
        self,
        planned: List[Tuple[CheckReportHandle, CheckId]],
        options: RunOptions,
        pool: ThreadPoolExecutor,
    ) -> List[Optional[CheckResult]]:
        if not planned:
            return []

        if not self.parallel:
            logger.info(f"Running {len(planned)} checks sequentially...")
            return [await self._run_one(check_id, options, pool) for _, check_id in planned]

        logger.info(f"Running {len(planned)} checks in parallel...")
        # gather сохраняет порядок задач
        results = await asyncio.gather(
            *(self._run_one(check_id, options, pool) for _, check_id in planned),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return list(results)

    async def _run_one(
        self,
        check_id: CheckId,
        options: RunOptions,
        pool: ThreadPoolExecutor,
    ) -> Optional[CheckResult]:
        func = self.checks.get(check_id.name)
        if func is None:
            logger.warning(f"No implementation registered for check {check_id}")
            return None

        check_options = CheckOptions(
            check_id=check_id,
            bundle_uri=options.bundle_uri,
            values=options.chart_values(),
            overrides=dict(options.overrides),
            string_settings=dict(options.string_settings),
            openshift_version=options.openshift_version,
            client_timeout=options.client_timeout,
        )

        try:
            if inspect.iscoroutinefunction(func):
                result = await func(check_options)
            else:
                result = await asyncio.get_running_loop().run_in_executor(pool, func, check_options)
        except ExecutionError:
            raise
        except Exception as e:
            raise ExecutionError(f"check {check_id} failed: {type(e).__name__}: {e}") from e

        if not isinstance(result, CheckResult):
            raise ExecutionError(f"check {check_id} returned {type(result).__name__}, expected CheckResult")
        return result
