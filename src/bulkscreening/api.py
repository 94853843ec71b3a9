"""FastAPI application exposing the screening service over HTTP."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Literal, Optional

import structlog
from fastapi import APIRouter, Depends, FastAPI, File, Form, Query, Request, UploadFile, status
from fastapi.responses import JSONResponse, Response

from .container import ScreeningContainer, create_container
from .errors import BatchRejected, InvalidTransition, JobNotFound, JobNotTerminal, UnknownCandidates
from .export import select_views, to_csv, to_json_payload
from .intake import ResumeFile
from .schemas import MatchCategory, ResultFilters, ResultStatus
from .schemas.base import CamelModel

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/screening", tags=["Screening"])


class ShortlistRequest(CamelModel):
    candidate_ids: list[str]
    action: Literal["add", "remove"] = "add"


def get_container(request: Request) -> ScreeningContainer:
    return request.app.state.container


@router.post("/batch-upload", status_code=status.HTTP_202_ACCEPTED)
async def batch_upload(
    job_id: str = Form(...),
    employer_id: str = Form(...),
    resumes: Optional[list[UploadFile]] = File(None),
    container: ScreeningContainer = Depends(get_container),
):
    """Accept a batch of resumes and start screening it in the background."""
    files: list[ResumeFile] = []
    for upload in resumes or []:
        content = await upload.read()
        files.append(
            ResumeFile(
                filename=upload.filename or "",
                content=content,
                declared_size=upload.size if upload.size is not None else len(content),
                content_type=upload.content_type or "",
            )
        )

    receipt = container.orchestrator().submit_batch(
        employer_id=employer_id,
        job_id=job_id,
        resumes=files,
    )
    return {
        **receipt.to_wire(),
        "message": f"Batch screening started for {receipt.total_resumes} resumes",
    }


@router.get("/{screening_id}")
def get_status(screening_id: str, container: ScreeningContainer = Depends(get_container)):
    return container.status_reporter().get_status(screening_id).to_wire()


@router.get("/{screening_id}/analytics")
def get_analytics(screening_id: str, container: ScreeningContainer = Depends(get_container)):
    return container.results_query().get_analytics(screening_id).to_wire()


@router.get("/{screening_id}/results")
def list_results(
    screening_id: str,
    min_match: float = Query(0.0, alias="minMatch", ge=0.0, le=100.0),
    max_match: float = Query(100.0, alias="maxMatch", ge=0.0, le=100.0),
    category: Optional[MatchCategory] = Query(None),
    result_status: Optional[ResultStatus] = Query(None, alias="status"),
    shortlisted_only: bool = Query(False, alias="shortlistedOnly"),
    sort_by: Literal["rank", "match", "name", "created"] = Query("rank", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("asc", alias="sortOrder"),
    page: int = Query(1, ge=1),
    page_size: int = Query(25, alias="pageSize", ge=1, le=500),
    container: ScreeningContainer = Depends(get_container),
):
    filters = ResultFilters(
        min_match=min_match,
        max_match=max_match,
        category=category,
        status=result_status,
        shortlisted_only=shortlisted_only,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        page_size=page_size,
    )
    return container.results_query().list_results(screening_id, filters).to_wire()


@router.post("/{screening_id}/shortlist")
def update_shortlist(
    screening_id: str,
    body: ShortlistRequest,
    container: ScreeningContainer = Depends(get_container),
):
    job = container.orchestrator().shortlist(screening_id, body.candidate_ids, action=body.action)
    return {
        "id": job.id,
        "action": body.action,
        "shortlistedCandidates": job.shortlisted_candidates,
    }


@router.get("/{screening_id}/export")
def export_results(
    screening_id: str,
    export_format: Literal["csv", "json"] = Query("csv", alias="format"),
    candidate_ids: Optional[list[str]] = Query(None, alias="candidateIds"),
    container: ScreeningContainer = Depends(get_container),
):
    query = container.results_query()
    job = container.store().get_job(screening_id)
    if not job.status.is_terminal:
        raise JobNotTerminal(screening_id, job.status)

    views = select_views(query.views(screening_id), candidate_ids)
    if export_format == "json":
        return to_json_payload(screening_id, views)
    return Response(
        content=to_csv(views),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="screening-{screening_id}.csv"'},
    )


@router.delete("/{screening_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_screening(screening_id: str, container: ScreeningContainer = Depends(get_container)):
    container.orchestrator().delete_job(screening_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(BatchRejected)
    async def batch_rejected(_: Request, exc: BatchRejected) -> JSONResponse:
        return _error(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "Batch rejected",
            violations=[violation.to_wire() for violation in exc.violations],
        )

    @app.exception_handler(JobNotFound)
    async def job_not_found(_: Request, exc: JobNotFound) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(JobNotTerminal)
    async def job_not_terminal(_: Request, exc: JobNotTerminal) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc), status=exc.status.value)

    @app.exception_handler(InvalidTransition)
    async def invalid_transition(_: Request, exc: InvalidTransition) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(UnknownCandidates)
    async def unknown_candidates(_: Request, exc: UnknownCandidates) -> JSONResponse:
        return _error(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "Candidates are not part of this screening",
            candidateIds=exc.candidate_ids,
        )


def create_app(
    container: ScreeningContainer | None = None,
    *,
    sweep_interval_seconds: float | None = 60.0,
) -> FastAPI:
    """Build the HTTP application around ``container`` (a default one when omitted)."""
    if container is None:
        container = create_container()

    @contextlib.asynccontextmanager
    async def lifespan(_: FastAPI):
        sweeper = None
        if sweep_interval_seconds:
            sweeper = asyncio.create_task(_sweep_forever(container, sweep_interval_seconds))
        try:
            yield
        finally:
            if sweeper is not None:
                sweeper.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await sweeper
            container.orchestrator().close()

    app = FastAPI(
        title="Bulk Resume Screening API",
        description="Batch screening of resumes against job requirements",
        lifespan=lifespan,
    )
    app.state.container = container
    register_error_handlers(app)
    app.include_router(router)

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    return app


async def _sweep_forever(container: ScreeningContainer, interval: float) -> None:
    orchestrator = container.orchestrator()
    while True:
        await asyncio.sleep(interval)
        expired = await asyncio.to_thread(orchestrator.sweep_stale)
        if expired:
            logger.info("sweep.completed", expired=len(expired))
