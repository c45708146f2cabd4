"""Pydantic models for backup configuration."""

from pydantic import BaseModel, Field, field_validator, model_validator

RESERVED_SCHEMAS = ("main", "temp")


class BackupProfile(BaseModel):
    """Backup profile from hotbackup.toml.

    The destination file always receives the copy in its ``main`` schema.
    ``source_schema`` is ``main``, ``temp``, or an alias listed in
    ``attach``, whose files are attached to the source connection before
    the copy.
    """

    source: str
    destination: str
    source_schema: str = "main"
    attach: dict[str, str] = Field(default_factory=dict)  # alias -> file
    pages_per_step: int = -1  # Negative copies everything in one step
    busy_retries: int = Field(default=0, ge=0)
    busy_sleep: float = Field(default=0.25, ge=0)
    verify: bool = False
    description: str = ""

    @field_validator("pages_per_step")
    @classmethod
    def _non_zero_pages(cls, value: int) -> int:
        if value == 0:
            raise ValueError("pages_per_step must be non-zero")
        return value

    @field_validator("source_schema")
    @classmethod
    def _non_empty_schema(cls, value: str) -> str:
        if not value:
            raise ValueError("schema name must not be empty")
        return value

    @field_validator("attach")
    @classmethod
    def _valid_aliases(cls, value: dict[str, str]) -> dict[str, str]:
        for alias in value:
            if not alias:
                raise ValueError("attach alias must not be empty")
            if alias.lower() in RESERVED_SCHEMAS:
                raise ValueError(f"attach alias '{alias}' is reserved")
        return value

    @model_validator(mode="after")
    def _schema_is_reachable(self) -> "BackupProfile":
        reserved = self.source_schema.lower() in RESERVED_SCHEMAS
        if not reserved and self.source_schema not in self.attach:
            raise ValueError(
                f"source_schema '{self.source_schema}' is not main, temp, "
                "or an alias listed in attach"
            )
        if self.verify and self.source_schema.lower() == "temp":
            raise ValueError("verify is not supported for the temp schema (it has no file)")
        return self

    @property
    def source_file(self) -> str:
        """Database file holding ``source_schema`` (``source`` for main)."""
        return self.attach.get(self.source_schema, self.source)


class BackupConfig(BaseModel):
    """Complete configuration from hotbackup.toml."""

    profiles: dict[str, BackupProfile] = Field(default_factory=dict)
