"""Implementation of the `latextools build` command."""

from __future__ import annotations

import typer

from latextools.adapters.latex.latexmk import log_path_for
from latextools.adapters.latex.runner import LatexmkBuilder
from latextools.core.config import BuildConfig
from latextools.core.registry import BuildRegistry, BuildStatus

from .._options import (
    CleanAuxOption,
    ConfigOption,
    EngineOption,
    JsonOption,
    ShellEscapeOption,
    SynctexOption,
    TexFilesArgument,
)
from ..diagnostics import CliEmitter
from ..presenter import (
    echo_json,
    present_build_failure,
    present_build_summary,
    present_diagnostics,
)
from ..state import debug_enabled, enable_library_logging, get_cli_state
from ..utils import load_cli_config


def _apply_overrides(
    config: BuildConfig,
    *,
    engine: str | None,
    synctex: bool | None,
    shell_escape: bool,
    clean_aux: bool,
) -> BuildConfig:
    updates: dict[str, object] = {}
    if engine is not None:
        updates["engine"] = engine
    if synctex is not None:
        updates["enable_synctex"] = synctex
    if shell_escape:
        updates["shell_escape"] = True
    if clean_aux:
        updates["clean_aux_files"] = True
    if not updates:
        return config
    try:
        return BuildConfig.model_validate({**config.model_dump(), **updates})
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--engine") from exc


def build(
    files: TexFilesArgument,
    engine: EngineOption = None,
    synctex: SynctexOption = None,
    shell_escape: ShellEscapeOption = False,
    clean_aux: CleanAuxOption = False,
    json_output: JsonOption = False,
    config_path: ConfigOption = None,
) -> None:
    """Compile TeX documents with latexmk and report their diagnostics."""
    state = get_cli_state()
    config = load_cli_config(config_path)
    if config.debug:
        enable_library_logging()
    build_config = _apply_overrides(
        config.build,
        engine=engine,
        synctex=synctex,
        shell_escape=shell_escape,
        clean_aux=clean_aux,
    )

    emitter = CliEmitter(state=state, debug_enabled=debug_enabled(), quiet=json_output)
    registry = BuildRegistry()
    builder = LatexmkBuilder(registry, build_config, emitter=emitter)
    try:
        outcomes = builder.build_many(files)
    finally:
        registry.dispose()

    if json_output:
        echo_json(
            [
                {
                    "file": str(outcome.file),
                    "status": outcome.status.value,
                    "returncode": outcome.returncode,
                    "interrupted": outcome.interrupted,
                    "error": outcome.error,
                    "elapsed": outcome.elapsed,
                    "diagnostics": [item.to_dict() for item in outcome.diagnostics],
                }
                for outcome in outcomes
            ]
        )
    else:
        for outcome in outcomes:
            if outcome.diagnostics:
                present_diagnostics(state, outcome.diagnostics, title=outcome.file.name)
            if outcome.status is BuildStatus.ERROR:
                present_build_failure(state, outcome, log_path_for(outcome.file))
        present_build_summary(state, outcomes)

    if any(not outcome.succeeded for outcome in outcomes):
        raise typer.Exit(code=1)


__all__ = ["build"]
