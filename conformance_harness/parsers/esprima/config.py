"""Configuration for the esprima parser."""

from pydantic import BaseModel


class EsprimaConfig(BaseModel):
    """Configuration for the esprima parser."""

    # Tolerant mode keeps parsing after recoverable errors and reports them all
    tolerant: bool = False
