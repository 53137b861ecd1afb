"""Per-call backend connection parameters.

The Inventory Server sends the full parameter set (name/value pairs) with every
catalog and booking call. ``resolve_configuration`` turns them into a typed
``Configuration``; the same schema table feeds the plugin definition.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel

from core.config import settings
from core.errors import ConfigurationError


class ParameterDataType(str, Enum):
    STRING = "STRING"
    LONG = "LONG"


class PluginConfigurationParameter(BaseModel):
    name: str
    type: ParameterDataType
    required: bool = True


class PluginConfigurationParameterValue(BaseModel):
    name: str
    value: str


# (suffix, Configuration field, type); full name is <PREFIX>_<suffix>
PARAMETER_SCHEMA = (
    ("API_SCHEME", "scheme", ParameterDataType.STRING),      # e.g. https
    ("API_HOST", "host", ParameterDataType.STRING),          # e.g. your-api.your-company.com
    ("API_PORT", "port", ParameterDataType.LONG),            # e.g. 443
    ("API_PATH", "api_path", ParameterDataType.STRING),      # e.g. /api/1
    ("API_USERNAME", "username", ParameterDataType.STRING),
    ("API_PASSWORD", "password", ParameterDataType.STRING),
)


def _parameter_name(suffix: str, prefix: Optional[str] = None) -> str:
    return f"{prefix or settings.parameter_prefix}_{suffix}"


def parameter_definitions(prefix: Optional[str] = None) -> list[PluginConfigurationParameter]:
    """Parameters advertised in the plugin definition, in schema order."""
    return [
        PluginConfigurationParameter(name=_parameter_name(suffix, prefix), type=data_type, required=True)
        for suffix, _field, data_type in PARAMETER_SCHEMA
    ]


# ASCII digits only, no sign or underscores
_DIGITS = re.compile(r"[0-9]+")


@dataclass
class Configuration:
    scheme: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    api_path: str = ""
    username: Optional[str] = None
    password: Optional[str] = None

    def base_url(self) -> str:
        """Backend root URL, e.g. ``https://api.example.com:443/api/1``."""
        if not self.scheme or not self.host:
            raise ConfigurationError("Backend scheme and host parameters are required")
        authority = self.host if self.port is None else f"{self.host}:{self.port}"
        path = self.api_path.strip("/")
        url = f"{self.scheme}://{authority}"
        return f"{url}/{path}" if path else url

    def __repr__(self) -> str:
        # password is never rendered
        return (
            f"Configuration(scheme={self.scheme!r}, host={self.host!r}, port={self.port!r}, "
            f"api_path={self.api_path!r}, username={self.username!r})"
        )


def _parse_long(name: str, value: str) -> int:
    digits = value.strip()
    if not _DIGITS.fullmatch(digits):
        raise ConfigurationError(f"Parameter {name} must be a non-negative integer, got {value!r}")
    return int(digits)


def resolve_configuration(
    parameters: Iterable[PluginConfigurationParameterValue],
    prefix: Optional[str] = None,
) -> Configuration:
    """Build a Configuration from name/value pairs. Unknown names are ignored."""
    fields = {
        _parameter_name(suffix, prefix): (field_name, data_type)
        for suffix, field_name, data_type in PARAMETER_SCHEMA
    }
    configuration = Configuration()
    for parameter in parameters:
        known = fields.get(parameter.name)
        if known is None:
            continue
        field_name, data_type = known
        value = _parse_long(parameter.name, parameter.value) if data_type is ParameterDataType.LONG else parameter.value
        setattr(configuration, field_name, value)
    return configuration
