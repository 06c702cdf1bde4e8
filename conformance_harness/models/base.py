"""Base model configuration for corpus data."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Immutable model; validation errors never echo test source text."""

    model_config = ConfigDict(frozen=True, hide_input_in_errors=True)
