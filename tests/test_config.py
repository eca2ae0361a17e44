import pytest
from pydantic import ValidationError

from workspace_state_integrity.config import (
    CONFIG_PATH_ENV,
    IntegrityConfig,
    IntegrityConfigError,
    load_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        CONFIG_PATH_ENV,
        "STATE_INTEGRITY_PROTOCOL_VERSION",
        "STATE_INTEGRITY_MAX_TIMESTAMP_AGE_YEARS",
        "STATE_INTEGRITY_EXTRACTION_MAX_DEPTH",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = load_config()

    assert config == IntegrityConfig()
    assert config.current_protocol_version == 1
    assert config.valid_networks == ("public", "testnet", "futurenet", "local")
    assert config.default_network == "testnet"
    assert config.extraction_max_depth == 5
    assert config.max_timestamp_age_ms == pytest.approx(100 * 365.25 * 86_400_000)


def test_yaml_file(tmp_path):
    path = tmp_path / "integrity.yaml"
    path.write_text(
        "current_protocol_version: 3\n"
        "valid_networks: [dev, prod]\n"
        "default_network: prod\n",
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.current_protocol_version == 3
    assert config.valid_networks == ("dev", "prod")
    assert config.default_network == "prod"


def test_path_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "integrity.yaml"
    path.write_text("extraction_max_depth: 2\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_PATH_ENV, str(path))

    assert load_config().extraction_max_depth == 2


def test_environment_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "integrity.yaml"
    path.write_text("current_protocol_version: 3\n", encoding="utf-8")
    monkeypatch.setenv("STATE_INTEGRITY_PROTOCOL_VERSION", "4")
    monkeypatch.setenv("STATE_INTEGRITY_MAX_TIMESTAMP_AGE_YEARS", "50")

    config = load_config(path)

    assert config.current_protocol_version == 4
    assert config.max_timestamp_age_years == 50


def test_empty_file_uses_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == IntegrityConfig()


def test_missing_file(tmp_path):
    with pytest.raises(IntegrityConfigError, match="Cannot read config file"):
        load_config(tmp_path / "nope.yaml")


def test_malformed_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("valid_networks: [unclosed\n", encoding="utf-8")
    with pytest.raises(IntegrityConfigError):
        load_config(path)


def test_non_mapping_yaml(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(IntegrityConfigError, match="must contain a mapping"):
        load_config(path)


def test_invalid_values(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("default_network: mainnet\n", encoding="utf-8")
    with pytest.raises(IntegrityConfigError, match="Invalid integrity config"):
        load_config(path)


def test_unknown_keys_are_rejected(tmp_path):
    path = tmp_path / "typo.yaml"
    path.write_text("protocol_verison: 2\n", encoding="utf-8")
    with pytest.raises(IntegrityConfigError):
        load_config(path)


def test_invalid_environment_value(monkeypatch):
    monkeypatch.setenv("STATE_INTEGRITY_EXTRACTION_MAX_DEPTH", "deep")
    with pytest.raises(IntegrityConfigError):
        load_config()


def test_config_error_is_value_error():
    assert issubclass(IntegrityConfigError, ValueError)


def test_config_is_frozen():
    config = IntegrityConfig()
    with pytest.raises(ValidationError):
        config.current_protocol_version = 2
