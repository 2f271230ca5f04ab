from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class QGBaseSettings(BaseSettings):
    """Base class for environment backed queryguard settings.

    Variables use the ``QUERYGUARD_`` prefix; nested domain settings are
    addressed with a double underscore, e.g.
    ``QUERYGUARD_POLLING__INTERVAL_SECONDS=1.5``.
    """
    model_config = SettingsConfigDict(
        env_prefix="QUERYGUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__"
    )

    app_env: str = Field(
        default="dev",
        description="Deployment environment, added to every log record"
    )
