"""ConfigProvider Port Interface.

Contract: Retrieve configuration values by key.
"""

from __future__ import annotations

from typing import Any, Protocol


class ConfigProvider(Protocol):
    def get(self, key: str) -> Any: ...

    """
    Fetch a configuration value using a key (a string). It returns the value
    associated with that key from the configuration source
    (e.g., a properties file in a cloned repository), or None if absent.
    """
