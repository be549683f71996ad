"""
Typed run flags for a single verification.

ConfigStore accumulates settings from several sources (CLI, settings file,
library calls). Insertion never fails; keys are checked against the allowed
set of each category by `validate()` right before a run.
"""

import logging
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, List, Mapping, Type, Union

from .checks import CheckRegistry
from .errors import InvalidKeyError, VerifierStateError
from .profiles import profile_defaults

logger = logging.getLogger(__name__)


class BooleanKey(str, Enum):
    PROVIDER_DELIVERY = "provider-delivery"
    SUPPRESS_ERROR_LOG = "suppress-error-log"


class DurationKey(str, Enum):
    TIMEOUT = "timeout"


class StringKey(str, Enum):
    KUBE_API_SERVER = "kube-apiserver"
    KUBE_AS_USER = "kube-as-user"
    KUBE_CA_FILE = "kube-ca-file"
    KUBE_CONTEXT = "kube-context"
    KUBE_TOKEN = "kube-token"
    KUBECONFIG = "kubeconfig"
    NAMESPACE = "namespace"
    OPENSHIFT_VERSION = "openshift-version"
    REGISTRY_CONFIG = "registry-config"
    REPOSITORY_CONFIG = "repository-config"
    REPOSITORY_CACHE = "repository-cache"
    CONFIG = "config"
    CHART_VALUES = "chart-values"
    KUBE_AS_GROUPS = "kube-as-group"


class ValuesKey(str, Enum):
    COMMAND_SET = "set"
    CHART_SET = "chart-set"
    CHART_SET_FILE = "chart-set-file"
    CHART_SET_STRING = "chart-set-string"


DEFAULT_TIMEOUT = timedelta(minutes=30)

FlagKey = Union[Enum, str]


def _key(key: FlagKey) -> str:
    return key.value if isinstance(key, Enum) else str(key)


def _first_invalid(kind: str, keys, allowed: Type[Enum]) -> None:
    valid = {member.value for member in allowed}
    for key in keys:
        if key not in valid:
            raise InvalidKeyError(kind, key)


class ConfigStore:
    """
    Хранилище флагов запуска (boolean, duration, string, values).

    Ключи хранятся как строки. Boolean/duration/string setters перезаписывают
    значение, values setter сливает словари (ключи приводятся к нижнему регистру).
    """

    def __init__(self):
        self.boolean_flags: Dict[str, bool] = {
            BooleanKey.PROVIDER_DELIVERY.value: False,
            BooleanKey.SUPPRESS_ERROR_LOG.value: False,
        }
        self.duration_flags: Dict[str, timedelta] = {}
        self.string_flags: Dict[str, List[str]] = {}
        self.values_flags: Dict[str, Dict[str, Any]] = {}
        self._frozen = False

        self.set_values(ValuesKey.COMMAND_SET, profile_defaults())

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Запретить дальнейшие изменения (вызывается при старте run)."""
        self._frozen = True

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise VerifierStateError("configuration is read-only once a run has started")

    def set_boolean(self, key: FlagKey, value: bool) -> None:
        self._ensure_mutable()
        self.boolean_flags[_key(key)] = bool(value)

    def set_duration(self, key: FlagKey, duration: timedelta) -> None:
        self._ensure_mutable()
        self.duration_flags[_key(key)] = duration

    def set_string(self, key: FlagKey, value: List[str]) -> None:
        self._ensure_mutable()
        self.string_flags[_key(key)] = list(value)

    def set_values(self, key: FlagKey, values: Mapping[str, Any]) -> None:
        """Добавить/заменить значения внутри группы values."""
        self._ensure_mutable()
        name = _key(key)
        lowered = {str(k).lower(): v for k, v in (values or {}).items()}
        if name in self.values_flags:
            self.values_flags[name].update(lowered)
        else:
            self.values_flags[name] = lowered

    def get_string(self, key: FlagKey) -> str:
        """Первое значение строкового флага или пустая строка."""
        value = self.string_flags.get(_key(key))
        return value[0] if value else ""

    def get_duration(self, key: FlagKey, default: timedelta = DEFAULT_TIMEOUT) -> timedelta:
        return self.duration_flags.get(_key(key), default)

    def validate(self, checks: CheckRegistry) -> None:
        """
        Проверить все ключи перед запуском.

        Порядок: boolean -> checks -> duration -> values -> string.
        Первое найденное нарушение прерывает проверку.

        Raises:
            InvalidKeyError: ключ вне допустимого набора
        """
        _first_invalid("boolean", self.boolean_flags, BooleanKey)
        checks.validate()
        _first_invalid("duration", self.duration_flags, DurationKey)
        _first_invalid("values", self.values_flags, ValuesKey)
        _first_invalid("string", self.string_flags, StringKey)
        logger.debug("Run flags validated")
