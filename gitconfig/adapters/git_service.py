from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any, Optional

from git import Repo
from git.exc import GitError

from gitconfig.adapters.staging import allocate_staging_path
from gitconfig.config import properties
from gitconfig.config.settings import (
    CONFIGURATION_FILE_NAME,
    LOCAL_REPOSITORY_PATH_IN_TEMP,
    GitConfigurationSettings,
    build_settings,
)
from gitconfig.core.utility import redact_uri
from gitconfig.errors.errors import (
    CloneError,
    ConfigLoadError,
    ConfigReadError,
    ReleaseError,
)
from gitconfig.ports.config_provider import ConfigProvider
from gitconfig.ports.configuration_service import ConfigurationService
from gitconfig.ports.telemetry import Telemetry
from gitconfig.types.types import ReadErrorPolicy, ServiceState

_LOGGER = logging.getLogger(__name__)


class GitConfigurationService(ConfigurationService, ConfigProvider):
    def __init__(
        self,
        repository_uri: str,
        tmp_path: Optional[Path | str] = None,
        local_repository_path_in_temp: str = LOCAL_REPOSITORY_PATH_IN_TEMP,
        *,
        read_error_policy: ReadErrorPolicy | str = ReadErrorPolicy.RETURN_EMPTY,
        encoding: Optional[str] = None,
        telemetry: Optional[Telemetry] = None,
    ) -> None:
        """
        Read configuration from the git repository at ``repository_uri``.

        Clones the default branch into a fresh directory named after
        ``local_repository_path_in_temp`` under ``tmp_path`` (platform temp dir
        by default). Blocks until the clone finishes.

        Raises ConfigurationError for invalid arguments, StagingPathError when the
        local directory cannot be prepared and CloneError when cloning fails.
        """
        settings = build_settings(
            repository_uri=repository_uri,
            tmp_path=tmp_path,
            local_repository_path_in_temp=local_repository_path_in_temp,
            read_error_policy=read_error_policy,
            encoding=encoding,
        )
        self._settings = settings
        self._telemetry = telemetry
        self._repo: Optional[Repo] = None
        self._cloned_repo_path: Optional[Path] = None
        self._state = ServiceState.UNINITIALIZED

        self._state = ServiceState.CLONING
        try:
            self._cloned_repo_path = allocate_staging_path(
                settings.tmp_path, settings.local_repository_path_in_temp
            )
            self._emit("staging_path_allocated", path=str(self._cloned_repo_path))
            self._repo = self._clone(settings.repository_uri, self._cloned_repo_path)
        except ConfigLoadError:
            self._state = ServiceState.FAILED
            raise
        self._state = ServiceState.READY

    @classmethod
    def from_settings(
        cls, settings: GitConfigurationSettings, telemetry: Optional[Telemetry] = None
    ) -> GitConfigurationService:
        return cls(
            settings.repository_uri,
            settings.tmp_path,
            settings.local_repository_path_in_temp,
            read_error_policy=settings.read_error_policy,
            encoding=settings.encoding,
            telemetry=telemetry,
        )

    # --- lifecycle -----------------------------------------

    def _clone(self, repository_uri: str, path: Path) -> Repo:
        try:
            repo = Repo.clone_from(repository_uri, path)
        except (GitError, OSError) as exc:
            # drop whatever a failed clone left behind
            shutil.rmtree(path, ignore_errors=True)
            self._emit(
                "repository_clone_failed",
                level=logging.WARNING,
                repository_uri=redact_uri(repository_uri),
                error=exc.__class__.__name__,
            )
            raise CloneError(
                f"Unable to clone repository: {redact_uri(repository_uri)}",
                repository_uri=redact_uri(repository_uri),
                component="adapters.git_service",
            ) from exc

        self._emit(
            "repository_cloned",
            repository_uri=redact_uri(repository_uri),
            path=str(path),
        )
        return repo

    def close(self) -> None:
        """
        Release the clone handle. The local clone directory stays on disk.
        A second call is a no-op.
        """
        if self._state is not ServiceState.READY or self._repo is None:
            return
        try:
            self._repo.close()
        except (GitError, OSError) as exc:
            raise ReleaseError(
                f"Unable to release local clone: {self._cloned_repo_path}",
                component="adapters.git_service",
                details={"path": str(self._cloned_repo_path)},
            ) from exc
        self._state = ServiceState.CLOSED
        self._emit("repository_released", path=str(self._cloned_repo_path))

    def __enter__(self) -> GitConfigurationService:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # --- reading -------------------------------------------

    def get_configuration(self) -> dict[str, str]:
        """
        Parse application.properties from the clone root.

        With the default ``return_empty`` policy, a missing, unreadable or
        malformed file is logged and whatever was parsed so far (usually
        nothing) is returned. Callers cannot tell a broken configuration
        from an empty one. With ``propagate``, ConfigReadError is raised.
        """
        config: dict[str, str] = {}
        path = self.configuration_path

        try:
            with path.open("r", encoding=self._settings.encoding, newline="") as handle:
                properties.load(handle, into=config)
        except ConfigReadError as exc:
            self._read_failed(exc, path)
        except (OSError, UnicodeDecodeError) as exc:
            self._read_failed(
                ConfigReadError(
                    f"Unable to read configuration: {path}",
                    path=path,
                    component="adapters.git_service",
                ),
                path,
                cause=exc,
            )
        else:
            self._emit("configuration_read", path=str(path), keys_total=len(config))

        return config

    def get(self, key: str) -> Any:
        return self.get_configuration().get(key)

    def _read_failed(
        self, error: ConfigReadError, path: Path, cause: Optional[BaseException] = None
    ) -> None:
        if error.path is None:
            error.path = path
            error.details["path"] = str(path)
        if self._settings.read_error_policy is ReadErrorPolicy.PROPAGATE:
            if cause is not None:
                raise error from cause
            raise error

        _LOGGER.error(
            "configuration_read_failed",
            exc_info=cause or error,
            extra={
                "event": "configuration_read_failed",
                "path": str(path),
                "reason": str(error),
            },
        )
        self._publish(
            "configuration_read_failed",
            path=str(path),
            error=(cause or error).__class__.__name__,
        )

    # --- introspection -------------------------------------

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def settings(self) -> GitConfigurationSettings:
        return self._settings

    @property
    def repository_uri(self) -> str:
        return self._settings.repository_uri

    @property
    def local_path(self) -> Path:
        if self._cloned_repo_path is None:
            raise RuntimeError("local clone path not allocated")
        return self._cloned_repo_path

    @property
    def configuration_path(self) -> Path:
        return self.local_path / CONFIGURATION_FILE_NAME

    def _emit(self, event: str, level: int = logging.DEBUG, **fields: Any) -> None:
        _LOGGER.log(level, event, extra={"event": event, **fields})
        self._publish(event, **fields)

    def _publish(self, event: str, **fields: Any) -> None:
        """Forward ``event`` to telemetry. A failing sink is logged, never raised."""
        if self._telemetry is None:
            return
        try:
            self._telemetry.log(event, **fields)
        except Exception:
            _LOGGER.warning(
                "telemetry_log_failed",
                exc_info=True,
                extra={"event": "telemetry_log_failed", "telemetry_event": event},
            )
