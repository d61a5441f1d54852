"""Compile options.

Unknown keys are kept on the model so custom engines can read their own
settings from the options passed to ``Engine.init``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from eex.engine import Engine, SmartEngine
from eex.parser import ExpressionParser


class CompileOptions(BaseModel):
    """Options for compiling one template."""

    model_config = {"arbitrary_types_allowed": True, "extra": "allow", "frozen": True}

    file: str = Field(default="nofile", description="File name reported in errors")
    line: int = Field(default=1, ge=0, description="Line number of the first template line")
    trim: bool = Field(
        default=False, description="Trim whitespace around tags that sit alone on a line"
    )
    engine: Engine = Field(
        default_factory=SmartEngine, description="Engine that builds the compiled artifact"
    )
    parser: ExpressionParser = Field(
        default_factory=ExpressionParser, description="Parser for the code inside tags"
    )

    @field_validator("engine", mode="before")
    @classmethod
    def instantiate_engine(cls, value: Any) -> Any:
        """Accept an Engine subclass in place of an instance."""
        if isinstance(value, type) and issubclass(value, Engine):
            return value()
        return value
