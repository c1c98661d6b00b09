import pytest

from solscan.config import DEFAULT_CONFIG_CONTENT, Config, load_config, write_default_config
from solscan.errors import ConfigError
from solscan.severity import Severity


def test_defaults_when_no_config_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    config = load_config()

    assert config == Config()
    assert config.scope == ["src"]
    assert config.exclude == ["lib", "test"]
    assert config.min_severity is Severity.NC
    assert config.workers == 1


def test_file_values_and_cli_overrides(tmp_path):
    config_path = tmp_path / "solscan.yaml"
    config_path.write_text(
        """
scope: [contracts]
min_severity: low
exclude_detectors: [floating-pragma]
workers: 4
        """.strip(),
        encoding="utf-8",
    )

    config = load_config(str(config_path), scope=["other"], workers=None, detectors=None)

    assert config.scope == ["other"]
    assert config.min_severity is Severity.LOW
    assert config.exclude_detectors == ["floating-pragma"]
    assert config.workers == 4
    assert config.detectors == []


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "min_severity: severe\n",
        "workers: 0\n",
        "unknown_key: 1\n",
        "scope: {a: 1}\n",
        "scope: [unterminated\n",
    ],
)
def test_invalid_config_is_rejected(tmp_path, content):
    config_path = tmp_path / "solscan.yaml"
    config_path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(str(config_path))


def test_explicit_missing_config_is_an_error(tmp_path):
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "missing.yaml"))


def test_default_config_round_trips(tmp_path):
    target = write_default_config(str(tmp_path / "solscan.yaml"))

    assert target.read_text(encoding="utf-8") == DEFAULT_CONFIG_CONTENT
    assert load_config(str(target)) == Config()
    with pytest.raises(ConfigError):
        write_default_config(str(target))
    write_default_config(str(target), force=True)
