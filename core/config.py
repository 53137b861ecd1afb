from pydantic import field_validator
from pydantic_settings import BaseSettings


def _strip_inline_comment(value: str) -> str:
    """Strip trailing inline comments that python-dotenv keeps for unquoted values."""
    idx = value.find(" #")
    if idx != -1:
        value = value[:idx]
    return value.strip()


class Settings(BaseSettings):
    plugin_name: str = "Sample inventory plugin"
    plugin_description: str = (
        "Provides availability and accepts bookings into <YourCompany> booking system."
    )
    # Declared once at startup; see core.capabilities.CapabilitySet
    plugin_capabilities: list[str] = ["AVAILABILITY", "RESERVATIONS", "RESERVATION_CANCELLATION"]
    # Configuration parameters are named <PREFIX>_API_HOST etc.
    parameter_prefix: str = "SAMPLE"

    database_url: str = "sqlite+aiosqlite:///./inventory_plugin.db"
    use_real_backend: bool = False
    backend_timeout_seconds: float = 30.0
    reservation_ttl_minutes: int = 30
    log_level: str = "INFO"

    # Checked against the sharedSecret header when non-empty
    shared_secret: str = ""

    @field_validator("shared_secret", "parameter_prefix", mode="before")
    @classmethod
    def clean_value(cls, v: str) -> str:
        if isinstance(v, str):
            return _strip_inline_comment(v)
        return v

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
