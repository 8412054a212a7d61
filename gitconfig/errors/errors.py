"""
Custom exceptions for the git configuration service.

Exception hierarchy:
- GitConfigurationError (base)
  - ConfigurationError: Invalid service settings
  - ConfigLoadError: Fatal construction failure
    - StagingPathError: Local clone directory cannot be allocated/cleared
    - CloneError: Remote repository cannot be cloned
  - ConfigReadError: application.properties missing, unreadable or malformed
    - PropertiesParseError: Malformed properties content
  - ReleaseError: Clone handle cannot be released
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional


class GitConfigurationError(Exception):
    """Base exception for all git configuration errors."""

    def __init__(
        self,
        message: str,
        *,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.component = component
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.component:
            parts.append(f"[component={self.component}]")
        if self.details:
            parts.append(f"[details={self.details}]")
        return " ".join(parts)


# --- Settings ---


class ConfigurationError(GitConfigurationError, ValueError):
    """Raised when the service is constructed with invalid settings."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        errors: Optional[list[dict[str, str]]] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.field = field
        self.errors = errors or []
        details = details or {}
        if field:
            details["field"] = field
        if self.errors:
            details["errors"] = self.errors
        super().__init__(message, component=component, details=details)


# --- Construction ---


class ConfigLoadError(GitConfigurationError):
    """
    Fatal failure while preparing the local clone. The instance that raised it
    never becomes usable.
    """


class StagingPathError(ConfigLoadError):
    """Raised when the local staging directory cannot be allocated or cleared."""

    def __init__(
        self,
        message: str,
        *,
        path: Optional[Path | str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.path = Path(path) if path is not None else None
        details = details or {}
        if path is not None:
            details["path"] = str(path)
        super().__init__(message, component=component, details=details)


class CloneError(ConfigLoadError):
    """Raised when the remote repository cannot be cloned."""

    def __init__(
        self,
        message: str,
        *,
        repository_uri: Optional[str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.repository_uri = repository_uri
        details = details or {}
        if repository_uri:
            details["repository_uri"] = repository_uri
        super().__init__(message, component=component, details=details)


# --- Read ---


class ConfigReadError(GitConfigurationError):
    """
    Raised when application.properties is missing, unreadable or malformed.
    Only surfaces under the ``propagate`` read error policy.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Optional[Path | str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.path = Path(path) if path is not None else None
        details = details or {}
        if path is not None:
            details["path"] = str(path)
        super().__init__(message, component=component, details=details)


class PropertiesParseError(ConfigReadError):
    """Raised for malformed properties content (e.g. a broken \\uXXXX escape)."""

    def __init__(
        self,
        message: str,
        *,
        line_number: Optional[int] = None,
        path: Optional[Path | str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.line_number = line_number
        details = details or {}
        if line_number is not None:
            details["line_number"] = line_number
        super().__init__(message, path=path, component=component, details=details)


# --- Close ---


class ReleaseError(GitConfigurationError):
    """Raised when the clone handle cannot be released on close."""
