"""Logging section of the treedigest configuration."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class LoggingConfig(BaseModel):
    """Where diagnostics go and how much of them."""

    model_config = ConfigDict(extra='forbid')

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum level written to stderr"
    )
    format: Literal["simple", "detailed", "json"] = Field(
        default="simple",
        description="Console format; log files are always JSON"
    )
    file: Optional[str] = Field(default=None, description="Optional rotating log file")
    max_file_size_mb: int = Field(default=10, gt=0, description="Rotate the log file at this size")
    backup_count: int = Field(default=5, ge=0, description="Rotated log files to keep")

    @field_validator('level', 'format', mode='before')
    @classmethod
    def normalize_case(cls, v: object, info: ValidationInfo) -> object:
        """Accept any letter case: levels are upper case, formats lower case."""
        if not isinstance(v, str):
            return v
        return v.upper() if info.field_name == 'level' else v.lower()
