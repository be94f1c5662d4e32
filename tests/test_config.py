import pytest
import yaml

from memecli import config
from memecli.config import DEFAULT_CONFIG, config_sources, get_cache_dir, load_config, write_default_config
from memecli.errors import ConfigError
from memecli.sources import SOURCE_GIT, SOURCE_LOCAL


def test_missing_file_returns_defaults(tmp_path) -> None:
    cfg = load_config(tmp_path / "absent.yaml")

    assert cfg == DEFAULT_CONFIG
    assert cfg is not DEFAULT_CONFIG


def test_user_values_override_defaults(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("watermark: hello\nmax_font_size: 120\nsources:\n  - local: /memes\n", encoding="utf-8")

    cfg = load_config(path)

    assert cfg["watermark"] == "hello"
    assert cfg["max_font_size"] == 120.0
    assert cfg["watermark_size_fraction"] == DEFAULT_CONFIG["watermark_size_fraction"]
    assert [source.kind for source in config_sources(cfg)] == [SOURCE_LOCAL]


def test_json_config_is_accepted(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text('{"sources": [{"GitUrl": {"url": "https://example.org/memes.git", "alias": "x"}}]}', encoding="utf-8")

    sources = config_sources(load_config(path))

    assert sources[0].kind == SOURCE_GIT
    assert sources[0].alias == "x"


def test_empty_file_returns_defaults(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")

    assert load_config(path) == DEFAULT_CONFIG


@pytest.mark.parametrize("text", ["sources: [unclosed", "- just\n- a list\n", "max_font_size: big\n"])
def test_broken_config_raises(tmp_path, text: str) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")

    with pytest.raises(ConfigError, match="broken"):
        load_config(path)


def test_write_default_config_round_trips(tmp_path) -> None:
    path = write_default_config(tmp_path / "nested" / "config.yaml")

    assert yaml.safe_load(path.read_text(encoding="utf-8")) == DEFAULT_CONFIG
    assert load_config(path) == DEFAULT_CONFIG


def test_write_default_config_keeps_existing_file_unless_forced(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("watermark: mine\n", encoding="utf-8")

    write_default_config(path)
    assert load_config(path)["watermark"] == "mine"

    write_default_config(path, force=True)
    assert load_config(path)["watermark"] == DEFAULT_CONFIG["watermark"]


def test_cache_dir_follows_xdg(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(config.platform, "system", lambda: "Linux")
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))

    assert get_cache_dir() == tmp_path / "memecli"


def test_config_path_follows_xdg(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(config.platform, "system", lambda: "Linux")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    assert config.get_config_path() == tmp_path / "memecli" / "config.yaml"
