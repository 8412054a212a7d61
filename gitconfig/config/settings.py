"""
Settings for GitConfigurationService.

Validated, immutable pydantic model; construct through ``build_settings`` to
get ConfigurationError instead of a raw pydantic ValidationError.
"""

from __future__ import annotations

import codecs
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from gitconfig.core.utility import validation_error_parser
from gitconfig.errors.errors import ConfigurationError
from gitconfig.types.types import ReadErrorPolicy

LOCAL_REPOSITORY_PATH_IN_TEMP = "nort-config-git-config-repository"
CONFIGURATION_FILE_NAME = "application.properties"
# Properties files are Latin-1 unless stated otherwise.
DEFAULT_ENCODING = "iso-8859-1"
_DEFAULTED_FIELDS = frozenset({"local_repository_path_in_temp", "read_error_policy", "encoding"})


class GitConfigurationSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    repository_uri: str = Field(
        min_length=1, description="URI of the git repository (https, git, ssh or local path)"
    )
    tmp_path: Optional[Path] = Field(
        default=None, description="Root for the local clone; platform temp dir when None"
    )
    local_repository_path_in_temp: str = Field(
        default=LOCAL_REPOSITORY_PATH_IN_TEMP,
        min_length=1,
        description="Name prefix of the local clone directory",
    )
    read_error_policy: ReadErrorPolicy = Field(
        default=ReadErrorPolicy.RETURN_EMPTY,
        description="Raise or swallow errors reading application.properties",
    )
    encoding: str = Field(default=DEFAULT_ENCODING, description="Encoding of the properties file")

    @field_validator("repository_uri")
    @classmethod
    def _strip_uri(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("repository_uri must not be blank")
        return stripped

    @field_validator("local_repository_path_in_temp")
    @classmethod
    def _plain_name(cls, value: str) -> str:
        separators = {os.sep, "/"} | ({os.altsep} if os.altsep else set())
        if any(sep in value for sep in separators):
            raise ValueError("local_repository_path_in_temp must not contain a path separator")
        return value

    @field_validator("encoding")
    @classmethod
    def _known_codec(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError as exc:
            raise ValueError(f"unknown encoding: {value}") from exc
        return value


def build_settings(**values: Any) -> GitConfigurationSettings:
    """Validate ``values`` into settings, dropping None for fields that have defaults."""
    cleaned = {
        key: value
        for key, value in values.items()
        if value is not None or key not in _DEFAULTED_FIELDS
    }
    try:
        return GitConfigurationSettings(**cleaned)
    except ValidationError as e:
        parsed_error = validation_error_parser(e)
        first = parsed_error[0] if parsed_error else {}
        raise ConfigurationError(
            f"Invalid git configuration settings: {first.get('path', '?')}: {first.get('message', '')}",
            field=first.get("path"),
            errors=parsed_error,
            component="config.settings",
        ) from e
