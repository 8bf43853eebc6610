"""Configuration for the in-process engine."""

from pydantic import BaseModel, Field


class InProcessConfig(BaseModel):
    """Configuration for the in-process engine."""

    entry: str = Field(
        ...,
        description="Engine main function as 'package.module:callable'",
        pattern=r"^[\w.]+:[\w.]+$",
    )
