"""
Check catalog and enable/disable selection.

The catalog is the static list of check names the engine knows about.
What each check tests is defined by its implementation, which is supplied
from outside as a plain callable (sync or async) taking CheckOptions and
returning CheckResult.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Tuple, Union

from .errors import ConflictingSelectionError, InvalidKeyError

logger = logging.getLogger(__name__)


class CheckName(str, Enum):
    """Известные проверки (порядок определяет порядок запуска)."""
    HAS_README = "has-readme"
    IS_HELM_V3 = "is-helm-v3"
    CONTAINS_TEST = "contains-test"
    CONTAINS_VALUES = "contains-values"
    CONTAINS_VALUES_SCHEMA = "contains-values-schema"
    HAS_KUBEVERSION = "has-kubeversion"
    NOT_CONTAINS_CRDS = "not-contains-crds"
    HELM_LINT = "helm-lint"
    NOT_CONTAIN_CSI_OBJECTS = "not-contain-csi-objects"
    IMAGES_ARE_CERTIFIED = "images-are-certified"
    CHART_TESTING = "chart-testing"
    REQUIRED_ANNOTATIONS_PRESENT = "required-annotations-present"
    SIGNATURE_IS_VALID = "signature-is-valid"


class CheckType(str, Enum):
    """Классификация проверки в профиле."""
    MANDATORY = "Mandatory"
    OPTIONAL = "Optional"


def get_checks() -> List[str]:
    """Все известные имена проверок в порядке каталога."""
    return [check.value for check in CheckName]


def _name(check: Union[CheckName, str]) -> str:
    return check.value if isinstance(check, CheckName) else str(check)


@dataclass(frozen=True)
class CheckId:
    """Versioned check identifier, rendered as "<version>/<name>"."""
    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.version}/{self.name}"

    @classmethod
    def parse(cls, value: str) -> "CheckId":
        version, sep, name = value.partition("/")
        if not sep:
            return cls(name=value, version="")
        return cls(name=name, version=version)


@dataclass
class CheckStatus:
    enabled: bool = True


@dataclass(frozen=True)
class CheckOptions:
    """Входные данные для реализации проверки."""
    check_id: CheckId
    bundle_uri: str
    values: Dict[str, List[str]] = field(default_factory=dict)
    overrides: Dict[str, Any] = field(default_factory=dict)
    string_settings: Dict[str, List[str]] = field(default_factory=dict)
    openshift_version: str = ""
    client_timeout: timedelta = timedelta(minutes=30)


@dataclass(frozen=True)
class CheckResult:
    ok: bool
    reason: str = ""


CheckFunc = Callable[[CheckOptions], Union[CheckResult, Awaitable[CheckResult]]]


class CheckRegistry:
    """
    Per-run enabled/disabled status for every known check.

    All checks start enabled. `enable_checks` turns the given names into an
    allow-list, `unenable_checks` into a deny-list.
    """

    def __init__(self, catalog: Iterable[str] = None):
        self.catalog = list(catalog) if catalog is not None else get_checks()
        self.statuses: Dict[str, CheckStatus] = {
            name: CheckStatus(True) for name in self.catalog
        }

    def enable_checks(self, names: Iterable[Union[CheckName, str]]) -> None:
        """Включить только указанные проверки; пустой список включает все."""
        names = [_name(n) for n in names]
        if names:
            for check_name in self.catalog:
                self.statuses[check_name] = CheckStatus(False)
            for check_name in names:
                self.statuses[check_name] = CheckStatus(True)
        else:
            for check_name in self.catalog:
                self.statuses[check_name] = CheckStatus(True)

    def unenable_checks(self, names: Iterable[Union[CheckName, str]]) -> None:
        """Выключить указанные проверки и включить все остальные."""
        names = [_name(n) for n in names]
        if names:
            for check_name in self.catalog:
                self.statuses[check_name] = CheckStatus(True)
            for check_name in names:
                self.statuses[check_name] = CheckStatus(False)

    def is_enabled(self, name: Union[CheckName, str]) -> bool:
        status = self.statuses.get(_name(name))
        return bool(status and status.enabled)

    def validate(self) -> None:
        for check_name in self.statuses:
            if check_name not in self.catalog:
                raise InvalidKeyError("check", check_name, f"Invalid check name : {check_name}")

    def selected(self) -> List[str]:
        """Включённые проверки в порядке каталога."""
        return [name for name in self.catalog if self.statuses[name].enabled]


def convert_checks(names: Iterable[str], catalog: Iterable[str] = None) -> List[str]:
    known = list(catalog) if catalog is not None else get_checks()
    converted = []
    for name in names:
        if name not in known:
            raise InvalidKeyError("check", name, f"enabled check is invalid :{name}")
        converted.append(name)
    return converted


def build_check_selection(
    enabled: Iterable[str],
    disabled: Iterable[str],
    catalog: Iterable[str] = None,
) -> Tuple[List[str], List[str]]:
    """
    Проверить и преобразовать списки --enable / --disable.

    Args:
        enabled: Проверки, которые нужно оставить
        disabled: Проверки, которые нужно исключить
        catalog: Допустимые имена (по умолчанию весь каталог)

    Returns:
        (enabled_checks, disabled_checks)

    Raises:
        ConflictingSelectionError: заданы оба списка
        InvalidKeyError: имя проверки не найдено в каталоге
    """
    enabled = list(enabled or [])
    disabled = list(disabled or [])

    if enabled and disabled:
        raise ConflictingSelectionError()
    if enabled:
        return convert_checks(enabled, catalog), []
    if disabled:
        return [], convert_checks(disabled, catalog)
    return [], []
