"""Configuration schema models using Pydantic."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from castfeed.utils.errors import InvalidConfigError

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
ExplicitFlag = Literal["yes", "no", "clean"]

DEFAULT_REGION = "us-east-1"
DEFAULT_FEED_FILENAME = "feed.xml"


class ShowConfig(BaseModel):
    """Show-level settings for one run.

    Immutable once constructed. Semantic validation (non-empty title,
    well-formed base URL, destination present) happens when a run is
    planned, so a partially filled config can still be loaded and merged.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    description: str | None = None
    author: str | None = None
    image_url: str | None = None
    link: str | None = None
    language: str | None = None
    explicit: ExplicitFlag | None = None
    block: bool = True  # Keep private feeds out of the iTunes directory

    # Destination
    bucket: str | None = None
    region: str = DEFAULT_REGION
    endpoint_url: str | None = None
    base_url: str | None = None  # May use {bucket} and {region} placeholders
    key_prefix: str = ""
    feed_filename: str = DEFAULT_FEED_FILENAME

    @field_validator("explicit", mode="before")
    @classmethod
    def coerce_yaml_bool(cls, v: Any) -> Any:
        """Accept unquoted YAML ``yes``/``no``, which load as booleans."""
        if isinstance(v, bool):
            return "yes" if v else "no"
        return v

    def resolved_base_url(self) -> str:
        """Public URL under which objects of this show are served.

        Returns:
            Base URL without a trailing slash

        Raises:
            InvalidConfigError: If ``base_url`` uses an unknown placeholder
        """
        if self.base_url:
            try:
                base = self.base_url.format(bucket=self.bucket or "", region=self.region)
            except (KeyError, IndexError, AttributeError, ValueError) as e:
                raise InvalidConfigError(
                    f"Invalid base URL template {self.base_url!r}: "
                    f"only {{bucket}} and {{region}} are supported ({e!r})",
                    field="base_url",
                ) from e
        elif self.endpoint_url:
            base = f"{self.endpoint_url.rstrip('/')}/{self.bucket or ''}"
        else:
            base = f"https://{self.bucket or ''}.s3.{self.region}.amazonaws.com"
        return base.rstrip("/")


class PublishSettings(BaseModel):
    """Pipeline and store tuning."""

    extract_concurrency: int = Field(default=4, ge=1)
    upload_concurrency: int = Field(default=4, ge=1)
    extract_timeout_seconds: float = Field(default=30.0, gt=0)
    upload_timeout_seconds: float = Field(default=600.0, gt=0)
    connect_timeout_seconds: float = Field(default=10.0, gt=0)
    max_upload_attempts: int = Field(default=3, ge=1)
    public_read: bool = False
    feed_cache_control: str | None = "max-age=300"


class GlobalConfig(BaseModel):
    """Global castfeed configuration."""

    version: str = "1"
    log_level: LogLevel = "WARNING"
    publish: PublishSettings = Field(default_factory=PublishSettings)

    # Defaults merged under every show file (e.g. a shared bucket)
    show_defaults: dict[str, str | bool | None] = Field(default_factory=dict)
