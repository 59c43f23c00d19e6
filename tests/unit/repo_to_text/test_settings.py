from pathlib import Path

import pytest

from repo_to_text.exceptions import ConfigError
from repo_to_text.settings import Settings, load_project_config


@pytest.mark.unit
def test_settings_defaults() -> None:
    settings = Settings()

    assert settings.root.resolve() == Path.cwd().resolve()
    assert settings.output == Path("repo_content.txt")
    assert settings.ignore == []
    assert settings.include == []
    assert settings.workers is None
    assert settings.assume_yes is False


@pytest.mark.unit
def test_settings_output_path_is_relative_to_root(tmp_path: Path) -> None:
    settings = Settings(root=tmp_path)
    absolute = Settings(root=tmp_path, output=tmp_path / "elsewhere.txt")

    assert settings.output_path == tmp_path / "repo_content.txt"
    assert absolute.output_path == tmp_path / "elsewhere.txt"


@pytest.mark.unit
def test_settings_reads_api_defaults_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REPO_TO_TEXT_API_KEY", "sk-env")
    monkeypatch.setenv("REPO_TO_TEXT_MODEL", "local-model")

    settings = Settings()

    assert settings.api_key == "sk-env"
    assert settings.model == "local-model"


@pytest.mark.unit
def test_settings_rejects_zero_workers() -> None:
    with pytest.raises(ValueError, match="workers"):
        Settings(workers=0)


@pytest.mark.unit
def test_load_project_config_missing_default_is_empty(tmp_path: Path) -> None:
    config = load_project_config(tmp_path)

    assert config.ignore == []
    assert config.include == []


@pytest.mark.unit
def test_load_project_config_reads_lists(tmp_path: Path) -> None:
    (tmp_path / ".repo_to_text.yaml").write_text("ignore:\n  - docs\n  - .md\ninclude: [json]\n", encoding="utf-8")

    config = load_project_config(tmp_path)

    assert config.ignore == ["docs", ".md"]
    assert config.include == ["json"]


@pytest.mark.unit
@pytest.mark.parametrize("content", ["- just\n- a list\n", "ignore: [a\n", "ignore: [a]\nunknown: 1\n"])
def test_load_project_config_rejects_malformed(tmp_path: Path, content: str) -> None:
    (tmp_path / ".repo_to_text.yaml").write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_project_config(tmp_path)


@pytest.mark.unit
def test_load_project_config_missing_explicit_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_project_config(tmp_path, tmp_path / "custom.yaml")
