"""ConfigurationService Port Interface.

Contract: Produce the current configuration as a flat string mapping and
release whatever resource backs it on close.
"""

from __future__ import annotations

from typing import Protocol


class ConfigurationService(Protocol):
    def get_configuration(self) -> dict[str, str]: ...

    """
    Return the configuration as a fresh key -> value mapping.
    Every call re-reads the underlying source; nothing is cached.
    """

    def close(self) -> None: ...

    """
    Release the resource backing the configuration source.
    """
