from pathlib import Path
from typing import Any, Mapping

import pytest
from git import Actor, Repo

AUTHOR = Actor("Config Tests", "config-tests@example.com")


def make_repository(path: Path | str, files: Mapping[str, str | bytes]) -> Path:
    """
    Create a local git repository at ``path`` with one commit holding ``files``.
    Returns the repository path, usable as a clone URI.
    """
    path = Path(path)
    repo = Repo.init(path)
    for name, content in files.items():
        target = path / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content.encode("utf-8") if isinstance(content, str) else content)
    repo.index.add(list(files))
    repo.index.commit("initial configuration", author=AUTHOR, committer=AUTHOR)
    repo.close()
    return path


class RecordingTelemetry:
    """Telemetry double that keeps every logged event in memory."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def log(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    def names(self) -> list[str]:
        return [event for event, _ in self.events]


@pytest.fixture
def config_repo(tmp_path: Path) -> Path:
    return make_repository(tmp_path / "remote", {"application.properties": "a=1\nb=2\n"})


@pytest.fixture
def clone_root(tmp_path: Path) -> Path:
    root = tmp_path / "clones"
    root.mkdir()
    return root
