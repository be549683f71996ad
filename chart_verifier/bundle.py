"""
Bundle metadata loading.

Only local charts are supported: an unpacked chart directory containing
Chart.yaml, or a packaged archive file whose bytes are digested as-is.
"""

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

import yaml
from pydantic import ValidationError

from chart_verifier.core.errors import ExecutionError
from chart_verifier.core.report import ChartData

logger = logging.getLogger(__name__)

CHART_FILE = "Chart.yaml"


@dataclass(frozen=True)
class LoadedBundle:
    chart_data: Optional[ChartData]
    chart_digest: str = ""
    package_digest: str = ""


class BundleLoader(Protocol):
    def load(self, uri: str) -> LoadedBundle:
        ...


def _sha256_dir(directory: Path) -> str:
    digest = hashlib.sha256()
    for path in sorted(p for p in directory.rglob("*") if p.is_file()):
        digest.update(path.relative_to(directory).as_posix().encode("utf-8"))
        digest.update(path.read_bytes())
    return f"sha256:{digest.hexdigest()}"


def _sha256_file(path: Path) -> str:
    return f"sha256:{hashlib.sha256(path.read_bytes()).hexdigest()}"


class LocalBundleLoader:
    """Загрузчик чартов из локальной файловой системы."""

    def load(self, uri: str) -> LoadedBundle:
        """
        Прочитать метаданные и вычислить digests.

        Raises:
            ExecutionError: путь не существует или Chart.yaml не читается
        """
        path = Path(uri)
        if not path.exists():
            raise ExecutionError(f"chart not found: {uri}")

        if path.is_file():
            logger.debug(f"Loading packaged chart {path}")
            return LoadedBundle(chart_data=None, package_digest=_sha256_file(path))

        chart_file = path / CHART_FILE
        if not chart_file.is_file():
            raise ExecutionError(f"{CHART_FILE} not found in {uri}")

        try:
            data = yaml.safe_load(chart_file.read_text(encoding="utf-8")) or {}
            chart_data = ChartData.model_validate(data)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            raise ExecutionError(f"error reading {chart_file}: {e}") from e

        logger.debug(f"Loaded chart {chart_data.name} {chart_data.version} from {path}")
        return LoadedBundle(chart_data=chart_data, chart_digest=_sha256_dir(path))
