# src/chipqc/core/config.py
"""
Configuration schema and loading for chip test runs.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator


class ChipSettings(BaseModel):
    """Chip definition source and channel exclusion policy.

    ``bad_channels`` are removed from the adjacency graph before planning.
    Which channels are "bad by default" is a property of the chip/controller
    pairing and belongs here, never in the executor.
    """

    model_config = {"frozen": True}

    path: Path = Field(description="Chip definition file (YAML or JSON)")
    bad_channels: list[int] = Field(
        default_factory=list,
        description="Channels excluded from the graph before planning",
    )


class RouteSettings(BaseModel):
    """Test route through the chip.

    Example YAML:
        route:
          waypoints: [110, 109, 115]
          start: 109
          loop: true

    ``waypoints`` may instead name a test route from the chip definition
    (``test_route: default``); exactly one of the two must be given.
    """

    model_config = {"frozen": True}

    waypoints: list[int] | None = Field(default=None, description="Channels to visit in order")
    test_route: str | None = Field(default=None, description="Name of a test route in the chip definition")
    start: int | None = Field(default=None, description="Waypoint to start from (default: first)")
    loop: bool = Field(default=True, description="Close the tour back to the first waypoint")

    @field_validator("waypoints")
    @classmethod
    def validate_waypoints_not_empty(cls, v: list[int] | None) -> list[int] | None:
        if v is not None and not v:
            raise ValueError("waypoints must not be empty")
        return v

    @model_validator(mode="after")
    def validate_route_source(self) -> "RouteSettings":
        if (self.waypoints is None) == (self.test_route is None):
            raise ValueError("exactly one of 'waypoints' or 'test_route' must be set")
        if self.start is not None and self.waypoints is not None and self.start not in self.waypoints:
            raise ValueError(f"start channel {self.start} must be one of the waypoints {self.waypoints}")
        return self


class RetrySettings(BaseModel):
    """Per-hop retry behavior.

    max_attempts is the TOTAL number of tries per hop, not the number of
    retries.
    """

    model_config = {"frozen": True}

    max_attempts: int = Field(default=3, gt=0, description="Attempts per hop before the target electrode fails")
    hop_timeout_seconds: float = Field(default=4.0, gt=0, description="Deadline for a single hop attempt")
    backoff_seconds: float = Field(default=1.0, ge=0, description="Pause between attempts of the same hop")


class EventLogSettings(BaseModel):
    """Persisted event log (one JSON object per line)."""

    model_config = {"frozen": True}

    path: Path | None = Field(default=None, description="JSONL file to write events to")


class SimulationSettings(BaseModel):
    """Behavior of the simulated chip used when no controller is attached."""

    model_config = {"frozen": True}

    dead_channels: list[int] = Field(
        default_factory=list,
        description="Channels liquid never reaches (every attempt times out)",
    )
    flaky_channels: dict[int, int] = Field(
        default_factory=dict,
        description="Channel -> number of timeouts before liquid reaches it",
    )

    @field_validator("flaky_channels")
    @classmethod
    def validate_flaky_counts(cls, v: dict[int, int]) -> dict[int, int]:
        negative = sorted(channel for channel, count in v.items() if count < 0)
        if negative:
            raise ValueError(f"flaky channel timeout counts must be >= 0: {negative}")
        return v


class ChipQCSettings(BaseModel):
    """Top-level chipqc configuration.

    All settings are validated and frozen after construction.
    """

    model_config = {"frozen": True}

    chip: ChipSettings = Field(description="Chip definition and exclusions")
    route: RouteSettings = Field(description="Test route")
    retry: RetrySettings = Field(default_factory=RetrySettings, description="Hop retry policy")
    event_log: EventLogSettings = Field(default_factory=EventLogSettings, description="Event log output")
    simulation: SimulationSettings = Field(default_factory=SimulationSettings, description="Simulated chip")


def load_settings(config_path: Path) -> ChipQCSettings:
    """Load settings from a YAML file with environment variable overrides.

    Precedence (highest first):
    1. Environment variables (CHIPQC_*), e.g. CHIPQC_RETRY__MAX_ATTEMPTS=2
    2. Config file
    3. Defaults from the Pydantic schema

    Relative ``chip.path`` and ``event_log.path`` values are resolved
    against the config file's directory.

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="CHIPQC",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; also drop its internal settings
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    settings = ChipQCSettings(**raw_config)
    base = config_path.parent
    if not settings.chip.path.is_absolute():
        chip = settings.chip.model_copy(update={"path": base / settings.chip.path})
        settings = settings.model_copy(update={"chip": chip})
    log_path = settings.event_log.path
    if log_path is not None and not log_path.is_absolute():
        event_log = settings.event_log.model_copy(update={"path": base / log_path})
        settings = settings.model_copy(update={"event_log": event_log})
    return settings
