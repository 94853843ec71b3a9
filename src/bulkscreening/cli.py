"""Typer CLI entrypoint for bulk resume screening."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError

from .catalog import JobLoader
from .config import read_yaml
from .container import ScreeningContainer, create_container
from .errors import BatchRejected
from .intake import ResumeFile
from .logging import configure_logging
from .schemas import IntakeViolation, JobRequirements
from .schemas.config import load_config

app = typer.Typer(help="Bulk resume screening CLI.")

PDF_CONTENT_TYPE = "application/pdf"


@app.command()
def run(
    job: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Job requirements JSON path."),
    resumes: Path = typer.Option(..., exists=True, file_okay=False, dir_okay=True, help="Directory of PDF resumes."),
    output: Path = typer.Option(
        ...,
        exists=False,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="Output JSON path.",
    ),
    job_id: Optional[str] = typer.Option(None, help="Job to screen against when the JSON holds several."),
    employer_id: str = typer.Option("cli", help="Employer submitting the batch."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
    timeout: Optional[float] = typer.Option(None, min=0.0, help="Seconds to wait for the batch to finish."),
) -> None:
    """Screen every PDF in a directory and write status, results and analytics."""
    configure_logging(log_level)
    container = create_container(settings=_load_settings(config))
    requirements = _register_jobs(container, job, job_id)
    files = _read_resumes(resumes)

    orchestrator = container.orchestrator()
    try:
        try:
            receipt = orchestrator.submit_batch(
                employer_id=requirements.employer_id or employer_id,
                job_id=requirements.job_id,
                resumes=files,
            )
        except BatchRejected as exc:
            _echo_violations(exc.violations)
            raise typer.Exit(code=2) from exc
        finished = orchestrator.wait_for(receipt.job_id, timeout=timeout)
        payload = _report_payload(container, receipt.job_id)
    finally:
        orchestrator.close()

    output.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    snapshot = payload["status"]
    typer.echo(
        f"Screened {snapshot['processedCount']}/{snapshot['totalResumes']} resumes "
        f"({snapshot['status']}). Results saved to {output}."
    )
    if not finished:
        raise typer.Exit(code=1)


@app.command()
def validate(
    job: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Job requirements JSON path."),
    resumes: Path = typer.Option(..., exists=True, file_okay=False, dir_okay=True, help="Directory of PDF resumes."),
    job_id: Optional[str] = typer.Option(None, help="Job to validate against when the JSON holds several."),
    employer_id: str = typer.Option("cli", help="Employer submitting the batch."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
) -> None:
    """Report intake violations for a batch without screening it."""
    container = create_container(settings=_load_settings(config))
    requirements = _register_jobs(container, job, job_id)
    files = _read_resumes(resumes)

    violations = container.validator().check(
        job_id=requirements.job_id,
        resumes=files,
        employer_id=requirements.employer_id or employer_id,
    )
    if not violations:
        typer.echo(f"Batch of {len(files)} resumes is acceptable.")
        return
    _echo_violations(violations)
    raise typer.Exit(code=1)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    job: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="Jobs to preload."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
) -> None:
    """Serve the screening HTTP API."""
    import uvicorn

    from .api import create_app

    configure_logging(log_level)
    container = create_container(settings=_load_settings(config))
    if job:
        _register_jobs(container, job, None)
    uvicorn.run(create_app(container), host=host, port=port, log_level=log_level.lower())


def _echo_violations(violations: list[IntakeViolation]) -> None:
    for violation in violations:
        location = f" [{violation.filename}]" if violation.filename else ""
        typer.echo(f"{violation.code.value}{location}: {violation.message}", err=True)


def _load_settings(config: Path | None) -> dict[str, Any]:
    if config is None:
        return {}
    try:
        return load_config(read_yaml(config)).to_settings()
    except (ValueError, ValidationError) as exc:
        raise typer.BadParameter(str(exc), param_name="config") from exc


def _register_jobs(container: ScreeningContainer, path: Path, job_id: str | None) -> JobRequirements:
    try:
        jobs = JobLoader().load(path)
    except (ValueError, ValidationError) as exc:
        raise typer.BadParameter(str(exc), param_name="job") from exc
    if not jobs:
        raise typer.BadParameter("Job file holds no jobs", param_name="job")

    catalog = container.job_catalog()
    for item in jobs:
        catalog.add(item)
    if job_id is None:
        return jobs[0]
    for item in jobs:
        if item.job_id == job_id:
            return item
    raise typer.BadParameter(f"Job {job_id!r} not found in {path}", param_name="job_id")


def _read_resumes(directory: Path) -> list[ResumeFile]:
    files: list[ResumeFile] = []
    for path in sorted(directory.iterdir()):
        if not path.is_file() or path.suffix.lower() != ".pdf":
            continue
        content = path.read_bytes()
        files.append(
            ResumeFile(
                filename=path.name,
                content=content,
                declared_size=len(content),
                content_type=PDF_CONTENT_TYPE,
            )
        )
    return files


def _report_payload(container: ScreeningContainer, screening_id: str) -> dict[str, Any]:
    snapshot = container.status_reporter().get_status(screening_id)
    query = container.results_query()
    analytics = query.get_analytics(screening_id).to_wire() if snapshot.status.is_terminal else None
    return {
        "status": snapshot.to_wire(),
        "results": [view.to_wire() for view in query.views(screening_id)],
        "analytics": analytics,
    }


def main() -> None:
    app()


if __name__ == "__main__":
    main()
