import logging

import pytest

from gitconfig.adapters.git_service import GitConfigurationService
from gitconfig.adapters.telemetry.jsonl import JsonlTelemetry
from gitconfig.config.settings import GitConfigurationSettings
from gitconfig.errors.errors import (
    CloneError,
    ConfigLoadError,
    ConfigReadError,
    ConfigurationError,
    PropertiesParseError,
    ReleaseError,
)
from gitconfig.types.types import ReadErrorPolicy, ServiceState
from tests.fixtures.fixtures import (  # noqa: F401
    RecordingTelemetry,
    clone_root,
    config_repo,
    make_repository,
)


@pytest.fixture(autouse=True)
def reset_logging_handlers():
    # Keep test logging deterministic and avoid leaking handlers between tests.
    logging.getLogger("gitconfig.adapters.git_service").handlers = []


def test_reads_properties_from_clone(config_repo, clone_root):
    service = GitConfigurationService(str(config_repo), clone_root, "cfg-")

    assert service.get_configuration() == {"a": "1", "b": "2"}
    assert service.state is ServiceState.READY
    service.close()


def test_clone_lives_under_tmp_path_with_prefix(config_repo, clone_root):
    with GitConfigurationService(str(config_repo), clone_root, "cfg-") as service:
        assert service.local_path.parent == clone_root
        assert service.local_path.name.startswith("cfg-")
        assert (service.local_path / ".git").is_dir()


def test_each_call_parses_fresh(config_repo, clone_root):
    with GitConfigurationService(str(config_repo), clone_root) as service:
        first = service.get_configuration()
        first["a"] = "changed"
        (service.local_path / "application.properties").write_text("a=3\n", encoding="utf-8")

        assert service.get_configuration() == {"a": "3"}


def test_missing_properties_returns_empty(tmp_path, clone_root, caplog):
    repo = make_repository(tmp_path / "no-props", {"README.md": "nothing here\n"})
    service = GitConfigurationService(str(repo), clone_root)

    with caplog.at_level(logging.ERROR, logger="gitconfig.adapters.git_service"):
        assert service.get_configuration() == {}

    assert any(rec.message == "configuration_read_failed" for rec in caplog.records)
    service.close()


def test_missing_properties_propagates_when_requested(tmp_path, clone_root):
    repo = make_repository(tmp_path / "no-props", {"README.md": "nothing here\n"})
    service = GitConfigurationService(
        str(repo), clone_root, read_error_policy=ReadErrorPolicy.PROPAGATE
    )

    with pytest.raises(ConfigReadError) as exc:
        service.get_configuration()

    assert exc.value.path == service.local_path / "application.properties"
    assert isinstance(exc.value.__cause__, FileNotFoundError)
    service.close()


def test_malformed_properties_keeps_entries_parsed_before_error(tmp_path, clone_root):
    repo = make_repository(
        tmp_path / "broken", {"application.properties": "a=1\nb=\\u12\nc=3\n"}
    )
    with GitConfigurationService(str(repo), clone_root) as service:
        assert service.get_configuration() == {"a": "1"}


def test_malformed_properties_propagates_parse_error(tmp_path, clone_root):
    repo = make_repository(tmp_path / "broken", {"application.properties": "a=\\uZZZZ\n"})
    with GitConfigurationService(str(repo), clone_root, read_error_policy="propagate") as service:
        with pytest.raises(PropertiesParseError) as exc:
            service.get_configuration()

    assert exc.value.line_number == 1
    assert exc.value.path is not None


def test_latin1_is_the_default_encoding(tmp_path, clone_root):
    repo = make_repository(
        tmp_path / "latin", {"application.properties": "name=caf\xe9\n".encode("iso-8859-1")}
    )
    with GitConfigurationService(str(repo), clone_root) as service:
        assert service.get_configuration() == {"name": "caf\xe9"}


def test_utf8_encoding_can_be_selected(tmp_path, clone_root):
    repo = make_repository(tmp_path / "utf8", {"application.properties": "name=caf\xe9\n"})
    with GitConfigurationService(str(repo), clone_root, encoding="utf-8") as service:
        assert service.get("name") == "caf\xe9"
        assert service.get("missing") is None


def test_unreachable_repository_raises_clone_error(tmp_path, clone_root):
    missing = tmp_path / "does-not-exist"

    with pytest.raises(CloneError) as exc:
        GitConfigurationService(str(missing), clone_root)

    assert isinstance(exc.value, ConfigLoadError)
    assert exc.value.repository_uri == str(missing)
    # failed clone leaves nothing behind
    assert list(clone_root.iterdir()) == []


def test_blank_uri_rejected(clone_root):
    with pytest.raises(ConfigurationError) as exc:
        GitConfigurationService("   ", clone_root)

    assert exc.value.field == "repository_uri"


def test_close_is_idempotent(config_repo, clone_root):
    service = GitConfigurationService(str(config_repo), clone_root)
    service.close()
    service.close()

    assert service.state is ServiceState.CLOSED
    # the clone directory is not removed on close
    assert service.local_path.is_dir()


def test_close_surfaces_release_failure(config_repo, clone_root, monkeypatch):
    service = GitConfigurationService(str(config_repo), clone_root)

    def broken_close():
        raise OSError("object database handle already invalid")

    monkeypatch.setattr(service._repo, "close", broken_close)

    with pytest.raises(ReleaseError) as exc:
        service.close()

    assert isinstance(exc.value.__cause__, OSError)
    assert service.state is ServiceState.READY


def test_read_after_close_still_uses_local_clone(config_repo, clone_root):
    service = GitConfigurationService(str(config_repo), clone_root)
    service.close()

    assert service.get_configuration() == {"a": "1", "b": "2"}


def test_instances_do_not_share_clones(tmp_path, clone_root):
    first_repo = make_repository(tmp_path / "first", {"application.properties": "name=first\n"})
    second_repo = make_repository(
        tmp_path / "second", {"application.properties": "name=second\nextra=yes\n"}
    )

    with GitConfigurationService(str(first_repo), clone_root, "same-") as first:
        with GitConfigurationService(str(second_repo), clone_root, "same-") as second:
            assert first.local_path != second.local_path
            assert first.get_configuration() == {"name": "first"}
            assert second.get_configuration() == {"name": "second", "extra": "yes"}


def test_from_settings_emits_lifecycle_telemetry(config_repo, clone_root):
    telemetry = RecordingTelemetry()
    settings = GitConfigurationSettings(repository_uri=str(config_repo), tmp_path=clone_root)

    service = GitConfigurationService.from_settings(settings, telemetry=telemetry)
    service.get_configuration()
    service.close()

    assert telemetry.names() == [
        "staging_path_allocated",
        "repository_cloned",
        "configuration_read",
        "repository_released",
    ]
    assert telemetry.events[2][1]["keys_total"] == 2


def test_clone_failure_emits_telemetry(tmp_path, clone_root):
    telemetry = RecordingTelemetry()

    with pytest.raises(CloneError):
        GitConfigurationService.from_settings(
            GitConfigurationSettings(repository_uri=str(tmp_path / "nope"), tmp_path=clone_root),
            telemetry=telemetry,
        )

    assert telemetry.names() == ["staging_path_allocated", "repository_clone_failed"]


class FailingTelemetry(RecordingTelemetry):
    """Telemetry double whose sink fails for the given events."""

    def __init__(self, failing: set[str] | None = None) -> None:
        super().__init__()
        self.failing = failing

    def log(self, event, **fields):
        if self.failing is None or event in self.failing:
            raise OSError("sink unavailable")
        super().log(event, **fields)


def test_invalid_utf8_returns_empty(tmp_path, clone_root, caplog):
    repo = make_repository(tmp_path / "bad-bytes", {"application.properties": b"a=\xff\xfe\n"})

    with GitConfigurationService(str(repo), clone_root, encoding="utf-8") as service:
        with caplog.at_level(logging.ERROR, logger="gitconfig.adapters.git_service"):
            assert service.get_configuration() == {}

    assert any(rec.message == "configuration_read_failed" for rec in caplog.records)


def test_invalid_utf8_propagates_decode_error(tmp_path, clone_root):
    repo = make_repository(tmp_path / "bad-bytes", {"application.properties": b"a=\xff\xfe\n"})

    with GitConfigurationService(
        str(repo), clone_root, encoding="utf-8", read_error_policy=ReadErrorPolicy.PROPAGATE
    ) as service:
        with pytest.raises(ConfigReadError) as exc:
            service.get_configuration()

    assert isinstance(exc.value.__cause__, UnicodeDecodeError)


def test_failing_sink_does_not_break_successful_read(config_repo, clone_root, caplog):
    telemetry = FailingTelemetry({"configuration_read"})

    with GitConfigurationService(str(config_repo), clone_root, telemetry=telemetry) as service:
        with caplog.at_level(logging.WARNING, logger="gitconfig.adapters.git_service"):
            assert service.get_configuration() == {"a": "1", "b": "2"}

    assert any(rec.message == "telemetry_log_failed" for rec in caplog.records)


def test_failing_sink_does_not_break_swallowed_read_failure(tmp_path, clone_root):
    repo = make_repository(tmp_path / "no-props", {"README.md": "nothing here\n"})
    telemetry = FailingTelemetry({"configuration_read_failed"})

    with GitConfigurationService(str(repo), clone_root, telemetry=telemetry) as service:
        assert service.get_configuration() == {}


def test_failing_sink_does_not_break_construction(config_repo, clone_root):
    service = GitConfigurationService(str(config_repo), clone_root, telemetry=FailingTelemetry())

    assert service.state is ServiceState.READY
    assert service.get_configuration() == {"a": "1", "b": "2"}
    service.close()
    assert service.state is ServiceState.CLOSED


def test_failing_sink_keeps_clone_error_type(tmp_path, clone_root):
    with pytest.raises(CloneError):
        GitConfigurationService(
            str(tmp_path / "missing"), clone_root, telemetry=FailingTelemetry()
        )


def test_jsonl_sink_pointing_at_directory_is_tolerated(config_repo, clone_root, tmp_path):
    sink_dir = tmp_path / "events"
    sink_dir.mkdir()
    telemetry = JsonlTelemetry(session_id="s", sink_path=sink_dir)

    with GitConfigurationService(str(config_repo), clone_root, telemetry=telemetry) as service:
        assert service.get_configuration() == {"a": "1", "b": "2"}
