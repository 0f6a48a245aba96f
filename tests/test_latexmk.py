from __future__ import annotations

from pathlib import Path

import pytest

from latextools.adapters.latex.latexmk import (
    build_latexmk_command,
    create_latexmkrc,
    detect_engine_from_magic_comment,
    latexmk_engine_flag,
    latexmkrc_path,
    log_path_for,
    pdf_path_for,
    resolve_engine,
)
from latextools.core.config import BuildConfig
from latextools.core.exceptions import LatexmkrcError


def _write_tex(tmp_path: Path, content: str, name: str = "main.tex") -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def test_default_command(tmp_path: Path) -> None:
    tex = _write_tex(tmp_path, "\\documentclass{article}\n")

    assert build_latexmk_command(tex) == [
        "latexmk",
        "-pdf",
        "-bibtex",
        "-interaction=nonstopmode",
        "-file-line-error",
        "-synctex=1",
        "main.tex",
    ]


def test_command_flags_follow_configuration(tmp_path: Path) -> None:
    tex = _write_tex(tmp_path, "\\documentclass{article}\n")
    config = BuildConfig(
        engine="lualatex",
        enable_synctex=False,
        shell_escape=True,
        clean_aux_files=True,
        bibtex=False,
    )

    assert build_latexmk_command(tex, config) == [
        "latexmk",
        "-lualatex",
        "-interaction=nonstopmode",
        "-file-line-error",
        "-shell-escape",
        "-c",
        "main.tex",
    ]


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        ("% !TEX program = xelatex\n", "xelatex"),
        ("%!TEX TS-program = LuaLaTeX\n", "lualatex"),
        ("% a leading comment\n\n% !TeX program=pdflatex\n", "pdflatex"),
        ("% !TEX program = context\n", None),
        ("\\documentclass{article}\n% !TEX program = xelatex\n", None),
    ],
)
def test_magic_comment_detection(tmp_path: Path, header: str, expected: str | None) -> None:
    tex = _write_tex(tmp_path, header + "\\begin{document}\\end{document}\n")

    assert detect_engine_from_magic_comment(tex) == expected


def test_magic_comment_on_missing_file(tmp_path: Path) -> None:
    assert detect_engine_from_magic_comment(tmp_path / "missing.tex") is None


def test_magic_comment_wins_over_configuration(tmp_path: Path) -> None:
    tex = _write_tex(tmp_path, "% !TEX program = xelatex\n")

    assert resolve_engine(tex, BuildConfig(engine="lualatex")) == "xelatex"
    assert build_latexmk_command(tex, BuildConfig(engine="lualatex"))[1] == "-xelatex"


def test_engine_flags() -> None:
    assert latexmk_engine_flag("pdflatex") == "-pdf"
    assert latexmk_engine_flag("xelatex") == "-xelatex"
    assert latexmk_engine_flag("lualatex") == "-lualatex"


def test_output_paths() -> None:
    tex = Path("/work/paper.tex")

    assert pdf_path_for(tex) == Path("/work/paper.pdf")
    assert log_path_for(tex) == Path("/work/paper.log")


def test_latexmkrc_path_defaults_to_dotfile(tmp_path: Path) -> None:
    assert latexmkrc_path(tmp_path, platform="linux") == tmp_path / ".latexmkrc"


def test_latexmkrc_path_accepts_windows_name(tmp_path: Path) -> None:
    (tmp_path / "latexmkrc").write_text("", encoding="utf-8")

    assert latexmkrc_path(tmp_path, platform="win32") == tmp_path / "latexmkrc"
    assert latexmkrc_path(tmp_path, platform="linux") == tmp_path / ".latexmkrc"


def test_create_latexmkrc(tmp_path: Path) -> None:
    target = tmp_path / ".latexmkrc"

    assert create_latexmkrc(target) is True
    assert target.read_text(encoding="utf-8") == ""
    assert create_latexmkrc(target) is False


def test_create_latexmkrc_failure(tmp_path: Path) -> None:
    target = tmp_path / "missing-dir" / ".latexmkrc"

    with pytest.raises(LatexmkrcError, match="Unable to create"):
        create_latexmkrc(target)
