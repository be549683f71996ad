"""
Verification profiles.

A profile is a named, versioned classification of checks into Mandatory and
Optional for one vendor type. Profiles are YAML files shipped with the
package in `chart_verifier/profiles/`.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .checks import CheckId, CheckType
from .errors import SerializationError

logger = logging.getLogger(__name__)

VENDOR_TYPE_CONFIG_NAME = "profile.vendortype"
VERSION_CONFIG_NAME = "profile.version"

DEFAULT_PROFILE = "partner"
DEFAULT_PROFILE_VERSION = "v1.0"

PROFILES_DIR = Path(__file__).parent.parent / "profiles"


class ProfileCheck(BaseModel):
    """Проверка в составе профиля."""
    name: str = Field(..., description="Versioned check id, e.g. v1.0/has-readme")
    type: CheckType = Field(..., description="Mandatory or Optional")

    @property
    def check_id(self) -> CheckId:
        return CheckId.parse(self.name)


class Profile(BaseModel):
    """Профиль: набор проверок с их типами для одного vendor type."""

    model_config = ConfigDict(populate_by_name=True)

    apiversion: str = "v1"
    kind: str = "verifier-profile"
    name: str = ""
    vendor_type: str = Field(..., alias="vendorType")
    version: str
    annotations: List[str] = Field(default_factory=list)
    checks: List[ProfileCheck] = Field(default_factory=list)

    def mandatory_checks(self) -> List[ProfileCheck]:
        return [c for c in self.checks if c.type == CheckType.MANDATORY]

    def find_check(self, check_name: str) -> Optional[ProfileCheck]:
        """Найти проверку по имени без версии."""
        for check in self.checks:
            if check.check_id.name == check_name:
                return check
        return None


def _version_key(version: str) -> Tuple[int, ...]:
    parts = []
    for part in version.lstrip("vV").split("."):
        try:
            parts.append(int(part))
        except ValueError:
            parts.append(0)
    return tuple(parts)


@lru_cache(maxsize=None)
def _load_profiles_cached(directory: str) -> Tuple[Profile, ...]:
    profiles = []
    for path in sorted(Path(directory).glob("*.yaml")):
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
            profiles.append(Profile.model_validate(data))
        except (yaml.YAMLError, ValidationError) as e:
            raise SerializationError(f"profile {path.name}: {e}") from e
    logger.debug(f"Loaded {len(profiles)} profiles from {directory}")
    return tuple(profiles)


def load_profiles(directory: Path = None) -> List[Profile]:
    """Загрузить все профили из директории (по умолчанию встроенные)."""
    return list(_load_profiles_cached(str(directory or PROFILES_DIR)))


def _lookup(values: Mapping[str, Any], key: str) -> str:
    for name, value in values.items():
        if name.lower() == key and value is not None:
            return f"{value}"
    return ""


def get_profile(values: Mapping[str, Any] = None, directory: Path = None) -> Profile:
    """
    Подобрать профиль по значениям profile.vendortype / profile.version.

    Vendor type не найден -> профиль по умолчанию.
    Версия не найдена -> последняя версия этого vendor type.
    """
    values = values or {}
    vendor_type = _lookup(values, VENDOR_TYPE_CONFIG_NAME) or DEFAULT_PROFILE
    version = _lookup(values, VERSION_CONFIG_NAME) or DEFAULT_PROFILE_VERSION

    profiles = load_profiles(directory)
    candidates = [p for p in profiles if p.vendor_type.lower() == vendor_type.lower()]
    if not candidates:
        logger.warning(f"Profile vendor type {vendor_type} not found, using {DEFAULT_PROFILE}")
        candidates = [p for p in profiles if p.vendor_type == DEFAULT_PROFILE]
    if not candidates:
        raise SerializationError(f"no profiles available for vendor type {DEFAULT_PROFILE}")

    for profile in candidates:
        if profile.version == version:
            return profile

    latest = max(candidates, key=lambda p: _version_key(p.version))
    logger.warning(
        f"Profile version {version} not found for {latest.vendor_type}, using {latest.version}"
    )
    return latest


def profile_defaults() -> Dict[str, str]:
    return {
        VENDOR_TYPE_CONFIG_NAME: DEFAULT_PROFILE,
        VERSION_CONFIG_NAME: DEFAULT_PROFILE_VERSION,
    }
