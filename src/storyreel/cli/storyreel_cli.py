"""Command line interface for splitting novels and running workflows."""
import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from storyreel.adapters import build_adapter_registry
from storyreel.config import get_settings
from storyreel.core.enums import JobStatus
from storyreel.core.exceptions import StoryreelException
from storyreel.core.logging import configure_logging
from storyreel.models.workflow import WorkflowConfig
from storyreel.services.chapter_splitter import RuleBasedChapterSplitter
from storyreel.services.state_machine import JobStateMachine
from storyreel.services.workflow_manager import WorkflowManager

logger = logging.getLogger(__name__)

app = typer.Typer(help="CLI for Storyreel workflows")


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, help="Log level, defaults to LOG_LEVEL"),
) -> None:
    """Storyreel CLI entry point."""
    configure_logging(log_level)


@app.command("split")
def split(
    path: Path,
    threshold: Optional[int] = typer.Option(
        None, help="Characters per chunk when the text has no chapter headings"
    ),
    project: Optional[str] = typer.Option(
        None, help="Store the chapters as assets of this project"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print chapters as JSON"),
) -> None:
    """
    Split a UTF-8 novel file into chapters.

    Example:
        storyreel split novel.txt
        storyreel split novel.txt --project demo --json
    """
    if not path.exists():
        typer.secho(f"File not found: {path}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    settings = get_settings()
    splitter = RuleBasedChapterSplitter(char_threshold=threshold or settings.CHAPTER_CHAR_THRESHOLD)

    if project:
        chapters = asyncio.run(_store_chapters(project, path, splitter))
    else:
        chapters = splitter.split(path.read_text(encoding="utf-8"))

    if as_json:
        typer.echo(json.dumps(chapters, ensure_ascii=False, indent=2))
        return

    if not chapters:
        typer.echo("No chapters found")
        return
    for index, chapter in enumerate(chapters, start=1):
        typer.echo(f"{index}\t{chapter['title']}\t{len(chapter['content'])} chars")


async def _store_chapters(project_id: str, path: Path, splitter: RuleBasedChapterSplitter):
    from storyreel.core.database import SessionLocal, init_db
    from storyreel.services.asset_store import SqlAssetStore
    from storyreel.services.chapter_service import ChapterService

    init_db()
    service = ChapterService(SqlAssetStore(SessionLocal), splitter=splitter)
    try:
        assets = await service.split_chapters_from_file(project_id, path)
    except StoryreelException as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    return [
        {"title": asset.fields["chapter_title"], "content": asset.fields["chapter_content"]}
        for asset in assets
    ]


@app.command("execute")
def execute(
    config_path: Path,
    wait: bool = typer.Option(
        True, help="Poll until the job finishes; --no-wait only checks the backend accepts it"
    ),
    poll_interval: float = typer.Option(1.0, help="Seconds between status polls"),
) -> None:
    """
    Submit a workflow described by a JSON file.

    Only the adapter for the workflow's type is started. Jobs are not
    persisted, so a job still running when the command exits is cancelled.

    Example:
        storyreel execute workflow.json
        storyreel execute workflow.json --no-wait
    """
    try:
        config = WorkflowConfig.model_validate_json(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        typer.secho(f"File not found: {config_path}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    except ValidationError as e:
        typer.secho(f"Invalid workflow file: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    exit_code = asyncio.run(_execute(config, wait, poll_interval))
    if exit_code:
        raise typer.Exit(code=exit_code)


async def _execute(config: WorkflowConfig, wait: bool, poll_interval: float) -> int:
    settings = get_settings().model_copy(
        update={"ENABLED_WORKFLOW_TYPES": [str(config.type)]}
    )
    manager = WorkflowManager(build_adapter_registry(settings))

    try:
        await manager.initialize()
        result = await manager.execute(config)
        if not result.success:
            typer.secho(f"Workflow failed to start: {result.error}", fg=typer.colors.RED)
            return 1

        job_id = result.job_id
        typer.echo(f"Job {job_id} submitted")
        if not wait:
            return 0

        job = await manager.get_status(job_id)
        while not JobStateMachine.is_terminal(job.status):
            typer.echo(f"{job.status}\t{job.progress or 0}%\t{job.message}")
            await asyncio.sleep(poll_interval)
            job = await manager.get_status(job_id)

        typer.echo(f"Job {job_id} {job.status}: {job.message}")
        if job.result is not None:
            typer.echo(json.dumps(job.result, ensure_ascii=False, indent=2))
        return 0 if job.status == JobStatus.COMPLETED else 1
    except StoryreelException as e:
        logger.error(f"Workflow {config.id} failed: {e}")
        typer.secho(str(e), fg=typer.colors.RED)
        return 1
    finally:
        await manager.cleanup()


if __name__ == "__main__":
    app()
