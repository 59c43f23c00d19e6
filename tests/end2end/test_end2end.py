import os
from pathlib import Path

from repo_to_text import cli
from repo_to_text.output_construction import parse_records


def test_end_to_end_export(tmp_path: Path) -> None:
    repo = tmp_path
    (repo / "src").mkdir()
    (repo / "src" / "app.py").write_text("print('hi')\n", encoding="utf-8")
    (repo / "src" / "blob.py").write_text('DATA = b"""\nxxxx\n"""\n', encoding="utf-8")
    (repo / "package.json").write_text("{}\n", encoding="utf-8")
    (repo / "target").mkdir()
    (repo / "target" / "build.rs").write_text("fn main() {}\n", encoding="utf-8")

    exit_code = cli.main(["--root", str(repo), "--yes", "--no-suggest", "--no-progress"])

    assert exit_code == 0
    records = dict(parse_records((repo / "repo_content.txt").read_text(encoding="utf-8")))
    assert records == {
        "src/app.py": "print('hi')",
        "src/blob.py": 'DATA = b"""<binary data removed>"""',
    }


def test_end_to_end_include_overrides_default_ignores(tmp_path: Path) -> None:
    repo = tmp_path
    (repo / "package.json").write_text('{"name": "x"}\n', encoding="utf-8")
    (repo / "docs").mkdir()
    (repo / "docs" / "guide.md").write_text("# Guide\n", encoding="utf-8")
    output = repo / "export.txt"

    exit_code = cli.main(
        [
            "--root",
            str(repo),
            "--output",
            str(output),
            "--ignore",
            "docs",
            "--include",
            "json",
            "--yes",
            "--no-progress",
        ],
    )

    assert exit_code == 0
    paths = [path for path, _ in parse_records(output.read_text(encoding="utf-8"))]
    assert paths == ["package.json"]


def test_end_to_end_exports_files_with_undecodable_names(tmp_path: Path) -> None:
    repo = tmp_path
    (repo / os.fsdecode(b"caf\xe9.py")).write_text("x = 1\n", encoding="utf-8")
    (repo / "ok.py").write_text("y = 2\n", encoding="utf-8")

    exit_code = cli.main(["--root", str(repo), "--yes", "--no-suggest", "--no-progress"])

    assert exit_code == 0
    records = dict(parse_records((repo / "repo_content.txt").read_text(encoding="utf-8")))
    assert records == {"caf�.py": "x = 1", "ok.py": "y = 2"}
