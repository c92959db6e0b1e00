"""
Pipeline run endpoints.

A run executes as a background task: predefined prompts are loaded, then
Generate -> Compile -> Audit. Clients poll the run for per-stage status.
"""

import logging

import orjson
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import PlainTextResponse

from ..dependencies import get_run_registry
from ..middleware.correlation import get_correlation_id
from ..models import ArtifactPart, GenerationRequest, PipelineRunResponse, StageStatusResponse
from ..pipeline import PipelineRun, PipelineRunRegistry
from ..scoring import summarize_audit


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/pipeline", tags=["pipeline"])


def build_run_response(run: PipelineRun) -> PipelineRunResponse:
    pipeline = run.pipeline
    stages = {
        name: StageStatusResponse(
            state=stage.state,
            is_loading=stage.is_loading,
            is_error=stage.is_error,
            is_success=stage.is_success,
            payload=jsonable_encoder(stage.payload),
            error=stage.error,
        )
        for name, stage in pipeline.snapshot().items()
    }

    audit = pipeline.audit.status
    return PipelineRunResponse(
        id=run.id,
        contract_type=run.request.contract_type,
        customization=run.request.customization,
        is_running=pipeline.is_running,
        created_at=run.created_at,
        stages=stages,
        audit_summary=summarize_audit(audit.payload) if audit.is_success else None,
    )


async def execute_run(run: PipelineRun) -> None:
    """Background task body; the pipeline must already be acquired."""
    try:
        await run.pipeline.load_prompts(run.request.contract_type)
        await run.pipeline.run(run.request, acquired=True)
    except Exception as e:
        logger.error(f"Pipeline run {run.id} crashed: {e}", exc_info=True)


def _schedule(run: PipelineRun, request: Request, background_tasks: BackgroundTasks) -> None:
    run.pipeline.correlation_id = get_correlation_id(request)
    run.pipeline.acquire()
    background_tasks.add_task(execute_run, run)


@router.post("/runs", response_model=PipelineRunResponse, status_code=status.HTTP_202_ACCEPTED)
async def create_run(
    body: GenerationRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    runs: PipelineRunRegistry = Depends(get_run_registry),
):
    run = runs.create(body)
    _schedule(run, request, background_tasks)
    logger.info(f"Queued pipeline run {run.id} for {body.contract_type.value}")
    return build_run_response(run)


@router.get("/runs/{run_id}", response_model=PipelineRunResponse)
async def get_run(run_id: str, runs: PipelineRunRegistry = Depends(get_run_registry)):
    return build_run_response(runs.get(run_id))


@router.post("/runs/{run_id}/rerun", response_model=PipelineRunResponse, status_code=status.HTTP_202_ACCEPTED)
async def rerun(
    run_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    runs: PipelineRunRegistry = Depends(get_run_registry),
):
    """Re-trigger a settled run with its original request. Refused with 409 while it is in flight."""
    run = runs.get(run_id)
    _schedule(run, request, background_tasks)
    logger.info(f"Re-queued pipeline run {run.id}")
    return build_run_response(run)


@router.get("/runs/{run_id}/code", response_class=PlainTextResponse)
async def download_code(run_id: str, runs: PipelineRunRegistry = Depends(get_run_registry)):
    run = runs.get(run_id)
    generated = run.pipeline.generate.status
    if not generated.is_success:
        raise HTTPException(status_code=404, detail="Run has no generated code")

    filename = f"{run.request.contract_type.value.lower()}.cairo"
    return PlainTextResponse(
        generated.payload,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/runs/{run_id}/artifact/{part}")
async def download_artifact(
    run_id: str,
    part: ArtifactPart,
    runs: PipelineRunRegistry = Depends(get_run_registry),
):
    run = runs.get(run_id)
    compiled = run.pipeline.compile.status
    if not compiled.is_success:
        raise HTTPException(status_code=404, detail="Run has no compiled artifact")

    artifact = compiled.payload.artifact
    if not isinstance(artifact, dict) or part.value not in artifact:
        raise HTTPException(status_code=404, detail=f"Artifact has no {part.value} part")

    return Response(
        content=orjson.dumps(artifact[part.value]),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{part.value}.json"'},
    )
