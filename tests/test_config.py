from __future__ import annotations

from pathlib import Path

import pytest

from latextools.core.config import (
    CONFIG_ENV_VAR,
    DEFAULT_AUX_EXTENSIONS,
    BuildConfig,
    LatexToolsConfig,
    default_config_path,
    load_config,
)
from latextools.core.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


def test_defaults_without_any_file() -> None:
    config = load_config()

    assert config == LatexToolsConfig()
    assert config.build.engine is None
    assert config.build.enable_synctex is True
    assert config.clean.aux_file_extensions == DEFAULT_AUX_EXTENSIONS


def test_default_path_honours_xdg(tmp_path: Path) -> None:
    assert default_config_path() == tmp_path / "xdg" / "latextools" / "config.yml"


def test_loads_user_file(tmp_path: Path) -> None:
    path = default_config_path()
    path.parent.mkdir(parents=True)
    path.write_text(
        "build:\n  engine: XeLaTeX\n  shell_escape: true\nlinter:\n  suppress_infos: true\n",
        encoding="utf-8",
    )

    config = load_config()

    assert config.build.engine == "xelatex"
    assert config.build.shell_escape is True
    assert config.linter.suppress_infos is True


def test_environment_variable_takes_precedence(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / "env.yml"
    env_file.write_text("debug: true\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(env_file))

    assert load_config().debug is True


def test_explicit_path_must_exist(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(tmp_path / "nope.yml")


def test_empty_file_yields_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")

    assert load_config(path) == LatexToolsConfig()


def test_invalid_yaml_is_chained(tmp_path: Path) -> None:
    path = tmp_path / "broken.yml"
    path.write_text("build: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigurationError) as excinfo:
        load_config(path)

    assert excinfo.value.__cause__ is not None


def test_non_mapping_document(tmp_path: Path) -> None:
    path = tmp_path / "list.yml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="mapping"):
        load_config(path)


def test_unknown_keys_are_rejected(tmp_path: Path) -> None:
    path = tmp_path / "extra.yml"
    path.write_text("build:\n  turbo: true\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        load_config(path)


def test_engine_validation() -> None:
    assert BuildConfig(engine="  ").engine is None
    with pytest.raises(ValueError, match="unsupported engine"):
        BuildConfig(engine="tectonic")
