"""
Shared types and enums for the git configuration service.
"""

from __future__ import annotations

from enum import Enum


class ServiceState(str, Enum):
    """State machine for GitConfigurationService. Transitions only move forward."""

    UNINITIALIZED = "uninitialized"
    CLONING = "cloning"
    READY = "ready"
    CLOSED = "closed"
    FAILED = "failed"


class ReadErrorPolicy(str, Enum):
    """What get_configuration() does when application.properties cannot be read."""

    # Raise ConfigReadError to the caller.
    PROPAGATE = "propagate"
    # Log the failure and return whatever was parsed (usually nothing).
    RETURN_EMPTY = "return_empty"
