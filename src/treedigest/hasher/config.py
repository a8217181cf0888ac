"""Configuration models for the tree hasher."""

from pydantic import BaseModel, Field, ConfigDict
from treedigest.common import LoggingConfig

from .digests import DEFAULT_ALGORITHM, DIGEST_CHUNK_SIZE


class HasherConfig(BaseModel):
    """Traversal and hashing configuration."""

    model_config = ConfigDict(extra='forbid')

    root_path: str = Field(
        default=".",
        description="Directory tree to hash"
    )
    concurrency: int = Field(
        default=8,
        description="Maximum number of files hashed at once (<= 0 for unlimited)"
    )
    follow_symlinks: bool = Field(
        default=False,
        description="Hash the targets of symbolic links instead of skipping them"
    )
    hash_algorithm: str = Field(
        default=DEFAULT_ALGORITHM.value,
        description="Digest algorithm identifier; unknown values fall back to sha256"
    )
    exclude_pattern: str | None = Field(
        default=None,
        description="Regular expression matched against full paths; matches are skipped"
    )
    chunk_size: int = Field(
        default=DIGEST_CHUNK_SIZE,
        gt=0,
        description="Read size in bytes when streaming file contents"
    )


class TreeDigestConfig(BaseModel):
    """Root configuration for treedigest."""

    model_config = ConfigDict(extra='forbid')

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    hasher: HasherConfig = Field(default_factory=HasherConfig)
