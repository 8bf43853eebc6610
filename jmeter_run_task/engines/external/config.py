"""Configuration for the external engine."""

from collections.abc import Mapping, Sequence

from pydantic import BaseModel, Field


class ExternalConfig(BaseModel):
    """Configuration for the external engine."""

    command: Sequence[str] = Field(
        default=("jmeter",),
        min_length=1,
        description="Engine launcher and any fixed leading arguments",
    )
    env: Mapping[str, str] = Field(
        default_factory=dict,
        description="Extra environment variables for the engine process",
    )
