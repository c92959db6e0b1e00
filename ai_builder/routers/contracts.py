"""
Direct contract endpoints.

Each call runs a single step outside of a pipeline run. Gateway errors are
not caught here; the exception handlers map them onto HTTP statuses.
"""

import logging

from fastapi import APIRouter, Depends, Request

from ..agents import create_audit_prompt, create_build_resolution_prompt, create_generation_prompt
from ..dependencies import get_compiler_gateway, get_document_store, get_llm_gateway
from ..errors import EmptyGenerationError
from ..gateways import CompilerGateway, LLMGateway
from ..models import (
    AuditReport,
    AuditRequest,
    AuditResult,
    AuditSummary,
    BuildResult,
    CompileRequest,
    GeneratedCode,
    GenerationRequest,
    ResolveRequest,
    ScoreRequest,
)
from ..scoring import summarize_audit
from ..storage import DocumentStore


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/contracts", tags=["contracts"])


@router.post("/generate", response_model=GeneratedCode)
async def generate_contract(
    body: GenerationRequest,
    request: Request,
    llm: LLMGateway = Depends(get_llm_gateway),
    documents: DocumentStore = Depends(get_document_store),
):
    example = await documents.get_example(body.contract_type)
    prompt = create_generation_prompt(
        docs=request.app.state.language_docs,
        example=example.example,
        customization=body.customization,
    )
    code = await llm.generate_code(prompt)
    if not code.strip():
        raise EmptyGenerationError("The model returned no code")

    logger.info(f"Generated {body.contract_type.value} contract ({len(code)} chars)")
    return GeneratedCode(code=code)


@router.post("/compile", response_model=BuildResult)
async def compile_contract(
    body: CompileRequest,
    compiler: CompilerGateway = Depends(get_compiler_gateway),
):
    """Compile source remotely. A failed build is a 200 with ``success: false``."""
    return await compiler.compile(body.code)


@router.post("/resolve", response_model=GeneratedCode)
async def resolve_build_error(
    body: ResolveRequest,
    llm: LLMGateway = Depends(get_llm_gateway),
):
    """Ask the model to fix a compiler error and return the corrected source."""
    code = await llm.generate_code(create_build_resolution_prompt(body.code, body.compiler_error))
    if not code.strip():
        raise EmptyGenerationError("The model returned no code")
    return GeneratedCode(code=code)


@router.post("/audit", response_model=AuditResult)
async def audit_contract(
    body: AuditRequest,
    llm: LLMGateway = Depends(get_llm_gateway),
):
    report = await llm.generate_structured(create_audit_prompt(body.code), AuditReport)
    summary = summarize_audit(report.audits)
    logger.info(f"Audit found {summary.total} issue(s), score {summary.score}")
    return AuditResult(success=True, audits=report.audits, summary=summary)


@router.post("/audit/score", response_model=AuditSummary)
async def score_audit(body: ScoreRequest):
    return summarize_audit(body.audits)
