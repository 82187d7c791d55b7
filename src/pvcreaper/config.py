"""Application configuration for the reaper."""

from datetime import timedelta
from pathlib import Path
from typing import Annotated, Any, Self

import yaml
from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from safir.logging import LogLevel, Profile, configure_logging
from safir.pydantic import HumanTimedelta

from .constants import (
    DEFAULT_REAP_INTERVAL,
    DEFAULT_STORAGE_CLASSES,
    DEFAULT_STORAGE_PROVISIONER,
    DEFAULT_UNSCHEDULABLE_POD_THRESHOLD,
    ENV_PREFIX,
    ROOT_LOGGER,
)

__all__ = ["Config", "EnvFirstSettings"]


class EnvFirstSettings(BaseSettings):
    """Base class for Pydantic settings with environment overrides.

    Classes that inherit from this base class will prioritize environment
    variables over arguments to the class constructor.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX, extra="forbid", validate_by_name=True
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Override the sources of settings.

        Deactivate :file:`.env` and secret file support, since deployments
        configure the reaper through a mounted YAML file and the environment.
        Allow environment variables to override init parameters, since init
        parameters come from the YAML configuration file and we want
        environment variables to take precedent.
        """
        return (env_settings, init_settings)


class Config(EnvFirstSettings):
    """Configuration for the reaper."""

    storage_classes: Annotated[
        list[str],
        NoDecode,
        Field(
            title="Managed storage classes",
            description=(
                "Only claims using one of these storage classes are"
                " considered. In the environment, give a comma-separated"
                " list."
            ),
            validation_alias=AliasChoices(
                ENV_PREFIX + "STORAGE_CLASSES", "storageClasses"
            ),
        ),
    ] = DEFAULT_STORAGE_CLASSES

    storage_provisioner: Annotated[
        str,
        Field(
            title="Managed storage provisioner",
            description=(
                "Only claims whose provisioner annotation equals this value"
                " are considered"
            ),
            validation_alias=AliasChoices(
                ENV_PREFIX + "STORAGE_PROVISIONER", "storageProvisioner"
            ),
        ),
    ] = DEFAULT_STORAGE_PROVISIONER

    reap_interval: Annotated[
        HumanTimedelta,
        Field(
            title="Interval between reconciliation passes",
            validation_alias=AliasChoices(
                ENV_PREFIX + "REAP_INTERVAL", "reapInterval"
            ),
        ),
    ] = DEFAULT_REAP_INTERVAL

    dry_run: Annotated[
        bool,
        Field(
            title="Report rather than delete",
            validation_alias=AliasChoices(ENV_PREFIX + "DRY_RUN", "dryRun"),
        ),
    ] = False

    check_unschedulable_pods: Annotated[
        bool,
        Field(
            title="Delete claims of long-unschedulable pods",
            description=(
                "If True, a claim on a healthy node is still deleted when the"
                " pod using it has been unschedulable for longer than the"
                " threshold"
            ),
            validation_alias=AliasChoices(
                ENV_PREFIX + "CHECK_UNSCHEDULABLE_PODS",
                "checkUnschedulablePods",
            ),
        ),
    ] = True

    unschedulable_pod_threshold: Annotated[
        HumanTimedelta,
        Field(
            title="How long a pod must be unschedulable",
            validation_alias=AliasChoices(
                ENV_PREFIX + "UNSCHEDULABLE_POD_THRESHOLD",
                "unschedulablePodThreshold",
            ),
        ),
    ] = DEFAULT_UNSCHEDULABLE_POD_THRESHOLD

    debug: Annotated[
        bool,
        Field(
            title="Show debug output and log style",
            description=(
                "If True, then log level will be set to debug and will"
                " non-structured, human-readable output."
            ),
        ),
    ] = False

    log_profile: Annotated[
        Profile,
        Field(
            title="Logging profile",
            validation_alias=AliasChoices(
                ENV_PREFIX + "LOG_PROFILE", "logProfile"
            ),
        ),
    ] = Profile.production

    log_level: Annotated[
        LogLevel,
        Field(
            title="Log level",
            validation_alias=AliasChoices(
                ENV_PREFIX + "LOG_LEVEL", "logLevel"
            ),
        ),
    ] = LogLevel.INFO

    add_timestamp: Annotated[
        bool,
        Field(
            title="Add timestamp to log lines",
            validation_alias=AliasChoices(
                ENV_PREFIX + "ADD_TIMESTAMP", "addTimestamp"
            ),
        ),
    ] = False

    alert_hook: Annotated[
        SecretStr | None,
        Field(
            title="Slack webhook URL used for sending alerts",
            description=(
                "An https URL, which should be considered secret."
                " If not set or set to `None`, this feature will be disabled."
            ),
            validation_alias=AliasChoices(
                ENV_PREFIX + "ALERT_HOOK", "alertHook"
            ),
        ),
    ] = None

    @field_validator("storage_classes", mode="before")
    @classmethod
    def _split_storage_classes(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [c.strip() for c in v.split(",") if c.strip()]
        return v

    @field_validator("storage_classes")
    @classmethod
    def _require_storage_classes(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("At least one storage class must be configured")
        return v

    @field_validator("reap_interval", "unschedulable_pod_threshold")
    @classmethod
    def _require_positive(cls, v: timedelta) -> timedelta:
        if v <= timedelta(0):
            raise ValueError("Duration must be positive")
        return v

    @classmethod
    def from_file(cls, path: Path | None = None) -> Self:
        """Construct the configuration, optionally from a YAML file.

        Parameters
        ----------
        path
            Path to the configuration file in YAML. If `None`, only the
            environment and the defaults are used.

        Returns
        -------
        Config
            The corresponding configuration.
        """
        data: dict[str, Any] = {}
        if path is not None:
            with path.open("r") as f:
                data = yaml.safe_load(f) or {}
        config = cls(**data)
        config.configure_logging()
        return config

    def configure_logging(self) -> None:
        """Configure logging based on the reaper configuration."""
        if self.debug:
            log_level = LogLevel.DEBUG
            log_profile = Profile.development
        else:
            log_level = self.log_level
            log_profile = self.log_profile

        configure_logging(
            profile=log_profile,
            log_level=log_level,
            add_timestamp=self.add_timestamp,
            name=ROOT_LOGGER,
        )

    def to_logging_dict(self) -> dict[str, Any]:
        """Return the configuration in a form safe to log."""
        result = self.model_dump(mode="json")
        if self.alert_hook:
            result["alert_hook"] = "<SECRET>"
        return result
