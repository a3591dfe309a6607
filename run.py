import asyncio
import json
import os
import sys
from pathlib import Path

import typer
import yaml
from pydantic import ValidationError

from marrowlab.commons.lab_engine import LabEngine
from marrowlab.commons.logger import setup_logging
from marrowlab.commons.narrative import compose_narrative
from marrowlab.commons.types import Settings
from marrowlab.helpers.report_builder import ReportBuilder
from marrowlab.services.narrative_service import NarrativeService
from marrowlab.services.report_service import ReportService

app = typer.Typer(add_completion=False, help="Marrow report / CBC narrative tools")

DEFAULT_CFG = "marrowlab/configs/settings.yaml"


def resource_path(relative_path: str) -> str:
    """Absolute path to a bundled resource, in development or inside a PyInstaller build."""
    if hasattr(sys, "_MEIPASS"):
        base_path = sys._MEIPASS
    else:
        base_path = os.path.dirname(os.path.abspath(__file__))
    return os.path.join(base_path, relative_path)


def load_cfg(path: str = DEFAULT_CFG) -> Settings:
    config_path = path if os.path.isabs(path) else resource_path(path)
    with open(config_path, "r", encoding="utf-8") as f:
        return Settings(**(yaml.safe_load(f) or {}))


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _bootstrap(config: str):
    cfg = load_cfg(config)
    logger = setup_logging(cfg.paths["logs_root"], os.getenv("LOG_LEVEL", cfg.app.get("log_level", "INFO")))
    return cfg, logger


@app.command()
def parse(
    source: str = typer.Argument("-", help="lab text file, or - for stdin"),
    config: str = typer.Option(DEFAULT_CFG, help="settings YAML"),
):
    """Print the parsed bundle and narrative as JSON."""
    cfg, logger = _bootstrap(config)
    engine = LabEngine(cfg.model_dump())
    payload = engine.parse_and_narrate(_read_input(source))
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
    if not payload["ok"]:
        raise typer.Exit(code=1)


@app.command()
def narrate(
    source: str = typer.Argument("-", help="lab text file, or - for stdin"),
    config: str = typer.Option(DEFAULT_CFG, help="settings YAML"),
):
    """Print only the CBC narrative paragraph."""
    cfg, logger = _bootstrap(config)
    engine = LabEngine(cfg.model_dump())
    outcome = engine.safe_normalize(_read_input(source))
    if not outcome.ok:
        typer.echo(outcome.error, err=True)
        raise typer.Exit(code=1)
    typer.echo(compose_narrative(outcome.bundle))


@app.command()
def report(
    form: str = typer.Argument(..., help="form data as YAML or JSON"),
    export: bool = typer.Option(False, "--export", help="write to the outbox instead of stdout"),
    config: str = typer.Option(DEFAULT_CFG, help="settings YAML"),
):
    """Build the bone marrow report from a form file."""
    cfg, logger = _bootstrap(config)
    svc = ReportService(ReportBuilder(), cfg.paths, cfg.export)
    form_data = yaml.safe_load(_read_input(form)) or {}
    try:
        if export:
            path = svc.export(form_data)
            typer.echo(path)
        else:
            typer.echo(svc.render(form_data), nl=False)
    except ValidationError as ve:
        logger.error(f"Invalid form {form}: {ve}")
        raise typer.Exit(code=2)


@app.command()
def watch(config: str = typer.Option(DEFAULT_CFG, help="settings YAML")):
    """Process the inbox backlog, then keep watching it for new lab-text files."""
    cfg, logger = _bootstrap(config)
    logger.info(f"Starting inbox watcher on {cfg.paths['inbox']}")
    svc = NarrativeService(LabEngine(cfg.model_dump()), cfg.paths)
    asyncio.run(svc.run_file_mode(cfg.watch["filename_glob"]))


if __name__ == "__main__":
    app()
