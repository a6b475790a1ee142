"""Configuration models for the fetch layer."""

from typing import TYPE_CHECKING, Annotated

from pydantic import BaseModel, ConfigDict, Field

from futurefetch.features.fetch.constants import DEFAULT_USER_AGENT


if TYPE_CHECKING:
    from futurefetch.settings.app import AppSettings


class FetchConfig(BaseModel):
    """Configuration for the fetch layer.

    No timeout and no response size limit apply unless configured.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = (
        DEFAULT_USER_AGENT
    )
    timeout_seconds: Annotated[float, Field(gt=0.0, le=3600.0)] | None = Field(
        default=None, description="Per-request transport timeout, None to disable"
    )
    max_response_size_bytes: Annotated[int, Field(ge=1)] | None = Field(
        default=None, description="Reject responses larger than this"
    )

    @classmethod
    def from_settings(cls, settings: "AppSettings") -> "FetchConfig":
        """Build the configuration from environment settings.

        Args:
            settings: Loaded application settings.

        Returns:
            FetchConfig with unset settings left at their defaults.
        """
        values: dict[str, str | float | int] = {}
        if settings.user_agent:
            values["user_agent"] = settings.user_agent
        if settings.timeout_seconds is not None:
            values["timeout_seconds"] = settings.timeout_seconds
        if settings.max_response_size_bytes is not None:
            values["max_response_size_bytes"] = settings.max_response_size_bytes
        return cls(**values)  # type: ignore[arg-type]
