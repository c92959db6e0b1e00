"""FastAPI dependencies resolving the services created at startup."""

from fastapi import Request

from .gateways import CompilerGateway, LLMGateway
from .pipeline import PipelineRunRegistry
from .storage import DocumentStore


def get_llm_gateway(request: Request) -> LLMGateway:
    return request.app.state.llm


def get_compiler_gateway(request: Request) -> CompilerGateway:
    return request.app.state.compiler


def get_document_store(request: Request) -> DocumentStore:
    return request.app.state.documents


def get_run_registry(request: Request) -> PipelineRunRegistry:
    return request.app.state.runs
