import pytest

from netscope.config import NetscopeConfig
from netscope.errors import ConfigError


def test_defaults() -> None:
    config = NetscopeConfig()

    assert config.capture.interface == ""
    assert config.capture.snapshot_length == 65536
    assert config.capture.promiscuous is True
    assert config.capture.read_timeout_ms == 50
    assert config.batch.max_batch_size == 200
    assert config.batch.max_buffer_time == 0.3
    assert config.logging.level == "INFO"


def test_from_dict_partial_sections() -> None:
    config = NetscopeConfig.from_dict({
        "capture": {"interface": "eth1", "bpf_filter": "tcp"},
        "logging": {"level": "debug"},
    })

    assert config.capture.interface == "eth1"
    assert config.capture.bpf_filter == "tcp"
    assert config.capture.snapshot_length == 65536
    assert config.batch.max_batch_size == 200
    assert config.logging.level == "DEBUG"


def test_empty_sections_use_defaults() -> None:
    config = NetscopeConfig.from_dict({"capture": None, "batch": None})
    assert config.to_dict() == NetscopeConfig().to_dict()


@pytest.mark.parametrize("data", [
    {"capture": {"snapshot_length": 0}},
    {"capture": {"read_timeout_ms": -1}},
    {"capture": {"duration": -10}},
    {"batch": {"max_batch_size": 0}},
    {"batch": {"max_buffer_time": -0.5}},
    {"logging": {"level": "LOUD"}},
])
def test_invalid_values(data) -> None:
    with pytest.raises(ConfigError):
        NetscopeConfig.from_dict(data)


def test_yaml_round_trip(tmp_path) -> None:
    config = NetscopeConfig.from_dict({
        "capture": {"interface": "wlan0", "duration": 30},
        "batch": {"max_batch_size": 50, "max_buffer_time": 1.5},
    })
    path = tmp_path / "nested" / "netscope.yaml"
    config.save_yaml(str(path))

    loaded = NetscopeConfig.load(str(path))

    assert loaded.to_dict() == config.to_dict()
    assert loaded.capture.interface == "wlan0"
    assert loaded.batch.max_buffer_time == 1.5


def test_yaml_must_be_a_mapping(tmp_path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("- just\n- a list\n")

    with pytest.raises(ConfigError):
        NetscopeConfig.from_yaml(str(path))


def test_empty_yaml_gives_defaults(tmp_path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert NetscopeConfig.from_yaml(str(path)).to_dict() == NetscopeConfig().to_dict()


def test_missing_explicit_path(tmp_path) -> None:
    with pytest.raises(ConfigError):
        NetscopeConfig.load(str(tmp_path / "nope.yaml"))


def test_load_searches_working_directory(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    (tmp_path / "netscope.yml").write_text("capture:\n  interface: lo\n")

    assert NetscopeConfig.load().capture.interface == "lo"


def test_load_without_files_gives_defaults(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))

    assert NetscopeConfig.load().capture.interface == ""
