from __future__ import annotations

import argparse
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from repo_to_text import __version__, cli
from repo_to_text.settings import Settings

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.mark.unit
def test_parse_args_accepts_space_and_comma_separated_lists() -> None:
    settings = cli.parse_args(["-i", "docs", "md,txt", "--include", ".json", "-I", "svg", "--workers", "4", "-y"])

    assert settings.ignore == ["docs", "md,txt"]
    assert settings.include == [".json", "svg"]
    assert settings.workers == 4
    assert settings.assume_yes is True


@pytest.mark.unit
def test_parse_args_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["--version"])

    assert exc_info.value.code == 0
    captured = capsys.readouterr()
    assert __version__ in captured.out


@pytest.mark.unit
def test_resolve_rules_merges_config_file_and_cli(tmp_path: Path) -> None:
    (tmp_path / ".repo_to_text.yaml").write_text("ignore: [docs]\ninclude: [yaml]\n", encoding="utf-8")
    settings = Settings(root=tmp_path, ignore=["md,txt"], include=["json"])

    rules = cli.resolve_rules(settings)

    assert {"docs", "md", "txt"} <= rules.ignored_dirs
    assert {"md", "txt"} <= rules.ignored_exts
    assert rules.included_exts == frozenset({"yaml", "json"})


@pytest.mark.unit
def test_resolve_rules_uses_suggestions_only_without_explicit_lists(tmp_path: Path, mocker: MockerFixture) -> None:
    suggester = mocker.Mock()
    suggester.suggest.return_value = ["fixtures", "snap"]

    rules = cli.resolve_rules(Settings(root=tmp_path), suggester)

    suggester.suggest.assert_called_once()
    assert "fixtures" in rules.ignored_dirs
    assert "snap" in rules.ignored_exts

    suggester.reset_mock()
    cli.resolve_rules(Settings(root=tmp_path, ignore=["docs"]), suggester)
    suggester.suggest.assert_not_called()

    cli.resolve_rules(Settings(root=tmp_path, no_suggest=True), suggester)
    suggester.suggest.assert_not_called()


@pytest.mark.unit
def test_resolve_rules_without_api_key_skips_suggestions(tmp_path: Path, mocker: MockerFixture) -> None:
    build = mocker.patch.object(cli, "OpenAICompatibleSuggester")

    rules = cli.resolve_rules(Settings(root=tmp_path, api_key=""))

    build.assert_not_called()
    assert rules.included_exts == frozenset()


@pytest.mark.unit
def test_resolve_rules_builds_suggester_from_settings(tmp_path: Path, mocker: MockerFixture) -> None:
    build = mocker.patch.object(cli, "OpenAICompatibleSuggester")
    build.return_value.suggest.return_value = ["coverage"]

    rules = cli.resolve_rules(Settings(root=tmp_path, api_key="sk-x", api_base="http://llm", model="m"))

    build.assert_called_once_with("sk-x", api_base="http://llm", model="m")
    assert "coverage" in rules.ignored_dirs


@pytest.mark.unit
def test_main_reports_fatal_errors_with_exit_code(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["--root", str(tmp_path / "missing"), "--output", str(tmp_path / "out.txt"), "--no-suggest"])

    assert exit_code == 1
    assert "Error: cannot list directory" in capsys.readouterr().err


@pytest.mark.unit
@pytest.mark.parametrize("value", ["0", "-3", "many"])
def test_parse_args_rejects_bad_worker_counts(value: str, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["--workers", value])

    assert exc_info.value.code == 2
    assert "--workers" in capsys.readouterr().err


@pytest.mark.unit
def test_positive_int() -> None:
    assert cli.positive_int("3") == 3
    with pytest.raises(argparse.ArgumentTypeError):
        cli.positive_int("0")
