import logging

from croniter import croniter
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from masjid_engine.services.engine_types import PrayerConfig
from masjid_engine.services.prayer_calculator import resolve_method
from masjid_engine.utils.timezone import resolve_timezone


logger = logging.getLogger(__name__)


class CustomSettings(BaseSettings):
    """Application settings loaded from environment variables.

    Validates configuration at startup to catch misconfiguration early.
    """

    latitude: float = 38.5816  # Sacramento City Hall
    longitude: float = -121.4944
    timezone: str = "America/Los_Angeles"
    calculation_method: str = "Jafari"
    asr_method: str = "standard"
    location_label: str = "Sacramento, CA"
    schedule_refresh_cron: str = "0 0 * * *"  # Local midnight

    countdown_interval_sec: float = 1.0
    live_stream_poll_interval_sec: float = 30.0  # ~2,880 polls per day

    youtube_channel_id: str = "UCPuYa6IFOW3zcVxH1bRXa8g"
    youtube_feed_url: str = "https://www.youtube.com/feeds/videos.xml"
    video_cache_url: str | None = None
    live_stream_scan_count: int = 5
    video_feed_count: int = 10
    http_timeout_sec: float = 8.0

    host: str = "0.0.0.0"
    port: int = 8000

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("latitude")
    @classmethod
    def validate_latitude(cls, value: float) -> float:
        """Latitude must be within [-90, 90]."""
        if not -90.0 <= value <= 90.0:
            raise ValueError(f"latitude must be within [-90, 90], got {value}")
        return value

    @field_validator("longitude")
    @classmethod
    def validate_longitude(cls, value: float) -> float:
        """Longitude must be within [-180, 180]."""
        if not -180.0 <= value <= 180.0:
            raise ValueError(f"longitude must be within [-180, 180], got {value}")
        return value

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Validate IANA timezone or fixed UTC offset."""
        resolve_timezone(value)
        return value

    @field_validator("calculation_method")
    @classmethod
    def validate_calculation_method(cls, value: str) -> str:
        """Validate calculation method against the known convention table."""
        return resolve_method(value)

    @field_validator("asr_method")
    @classmethod
    def validate_asr_method(cls, value: str) -> str:
        """Validate asr juristic method."""
        normalized = value.lower()
        allowed = {"standard", "hanafi"}
        if normalized not in allowed:
            raise ValueError(f"asr_method must be one of {sorted(allowed)}")
        return normalized

    @field_validator("location_label", "youtube_channel_id")
    @classmethod
    def validate_non_empty(cls, value: str, info) -> str:
        """Ensure required strings are not blank."""
        if not value.strip():
            raise ValueError(f"{info.field_name} must not be empty")
        return value.strip()

    @field_validator("schedule_refresh_cron")
    @classmethod
    def validate_cron_expression(cls, value: str) -> str:
        """Validate cron expression is valid."""
        try:
            croniter(value)
            return value
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Invalid cron expression '{value}': {exc}") from exc

    @field_validator(
        "countdown_interval_sec",
        "live_stream_poll_interval_sec",
        "http_timeout_sec",
    )
    @classmethod
    def validate_positive_floats(cls, value: float, info) -> float:
        """Ensure intervals and timeouts are positive."""
        if value <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return value

    @field_validator("live_stream_scan_count", "video_feed_count")
    @classmethod
    def validate_positive_ints(cls, value: int, info) -> int:
        """Ensure feed sizes are positive integers."""
        if value <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return value

    @field_validator("youtube_feed_url", "video_cache_url")
    @classmethod
    def validate_urls(cls, value: str | None, info) -> str | None:
        """Validate source URLs are HTTP/HTTPS."""
        if value is None:
            return value
        if not value.lower().startswith(("http://", "https://")):
            raise ValueError(f"{info.field_name} must be HTTP/HTTPS: {value}")
        return value

    @field_validator("port")
    @classmethod
    def validate_port(cls, value: int) -> int:
        """Port must be a valid TCP port."""
        if not 1 <= value <= 65535:
            raise ValueError(f"port must be within [1, 65535], got {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate logging level name."""
        normalized = value.upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if normalized not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}")
        return normalized

    @model_validator(mode="after")
    def validate_engine_configuration(self):
        """Validate cross-field configuration."""
        if self.countdown_interval_sec > self.live_stream_poll_interval_sec:
            logger.warning(
                "Countdown interval (%ss) is longer than live stream poll interval (%ss)",
                self.countdown_interval_sec,
                self.live_stream_poll_interval_sec,
            )
        if self.video_cache_url is None:
            logger.info("No video cache URL configured - video listing reads the channel feed directly")
        return self

    def __init__(self, **data):
        """Initialize settings and log configuration."""
        super().__init__(**data)

        logger.info("Configuration loaded:")
        logger.info("  Location: %s (%.4f, %.4f)", self.location_label, self.latitude, self.longitude)
        logger.info("  Timezone: %s", self.timezone)
        logger.info("  Calculation Method: %s (asr: %s)", self.calculation_method, self.asr_method)
        logger.info("  Schedule Refresh: %s", self.schedule_refresh_cron)
        logger.info("  Countdown Interval: %ss", self.countdown_interval_sec)
        logger.info("  Live Stream Poll Interval: %ss", self.live_stream_poll_interval_sec)
        logger.info("  YouTube Channel: %s", self.youtube_channel_id)
        logger.info("  Video Cache: %s", self.video_cache_url or "disabled")
        logger.info("  HTTP Timeout: %ss", self.http_timeout_sec)
        logger.info("  Listening on: %s:%s", self.host, self.port)

    def to_prayer_config(self) -> PrayerConfig:
        """Location and convention inputs for the prayer calculator."""
        return PrayerConfig(
            latitude=self.latitude,
            longitude=self.longitude,
            timezone=self.timezone,
            method=self.calculation_method,
            asr_method=self.asr_method,
            location_label=self.location_label,
        )


settings = CustomSettings()


def setup_logging() -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
