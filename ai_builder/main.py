import logging
from typing import Optional

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .agents import load_language_docs
from .cache.redis_cache import Cache, cache
from .core.config import settings
from .db.session import Database
from .errors import BuilderError
from .gateways import CompilerGateway, LLMGateway
from .llm_providers import list_available_providers, validate_provider_config
from .middleware.correlation import CorrelationIDMiddleware
from .middleware.error_handler import (
    builder_exception_handler,
    database_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from .middleware.metrics import MetricsMiddleware, get_metrics
from .middleware.rate_limit import rate_limiter
from .pipeline import ContractPipeline, PipelineRunRegistry
from .routers import contracts, templates
from .routers import pipeline as pipeline_routes
from .storage import DocumentStore


logger = logging.getLogger(__name__)


app = FastAPI(
    title="AI Smart Contract Builder API",
    description="Generates, compiles and audits Cairo contracts for Starknet",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(CorrelationIDMiddleware)

app.middleware("http")(MetricsMiddleware())


@app.middleware("http")
async def rate_limit_middleware(request, call_next):
    try:
        await rate_limiter.check(request)
    except HTTPException as e:
        return ORJSONResponse(status_code=e.status_code, content=e.detail)
    return await call_next(request)


app.add_exception_handler(BuilderError, builder_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(SQLAlchemyError, database_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

app.include_router(templates.router)
app.include_router(contracts.router)
app.include_router(pipeline_routes.router)


def configure_services(
    target: FastAPI,
    db: Database,
    llm: LLMGateway,
    compiler: CompilerGateway,
    cache_client: Optional[Cache] = None,
    language_docs: str = "",
    max_runs: int = settings.PIPELINE_MAX_RUNS,
) -> None:
    """Place the shared services on ``app.state`` for the request dependencies."""
    documents = DocumentStore(db, cache_client)

    def build_pipeline(run_id: str) -> ContractPipeline:
        return ContractPipeline(llm, compiler, documents, language_docs=language_docs, run_id=run_id)

    target.state.db = db
    target.state.llm = llm
    target.state.compiler = compiler
    target.state.documents = documents
    target.state.language_docs = language_docs
    target.state.runs = PipelineRunRegistry(build_pipeline, max_runs=max_runs)


@app.on_event("startup")
async def startup_event():
    logging.basicConfig(level=settings.LOG_LEVEL)
    logger.info("Starting AI Smart Contract Builder API...")

    settings.validate_production_config()

    db = Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    await db.connect()

    http_client = httpx.AsyncClient(timeout=settings.COMPILER_TIMEOUT_SECONDS)
    app.state.http_client = http_client

    await cache.connect()

    configure_services(
        app,
        db=db,
        llm=LLMGateway(),
        compiler=CompilerGateway(http_client, settings.COMPILER_URL, settings.COMPILER_API_KEY),
        cache_client=cache,
        language_docs=load_language_docs(settings.LANGUAGE_DOCS_PATH),
    )
    logger.info(f"Using model {app.state.llm.config.model_name} via {settings.MODEL_PROVIDER}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down AI Smart Contract Builder API...")

    http_client = getattr(app.state, "http_client", None)
    if http_client is not None:
        await http_client.aclose()

    await cache.disconnect()

    db = getattr(app.state, "db", None)
    if db is not None:
        await db.disconnect()


@app.get("/health", response_class=ORJSONResponse)
async def health():
    health_data = {
        "status": "ok",
        "env": settings.BUILDER_ENV,
        "features": {
            "caching": cache.enabled,
            "rate_limiting": True,
            "metrics": True,
        },
    }

    db = getattr(app.state, "db", None)
    if db is not None and db.connected:
        healthy, latency_ms, error = await db.check_health()
        health_data["database"] = {
            "healthy": healthy,
            "latency_ms": round(latency_ms, 2),
            "error": error,
        }
        if not healthy:
            health_data["status"] = "degraded"
    else:
        health_data["database"] = {"healthy": False, "latency_ms": None, "error": "not connected"}
        health_data["status"] = "degraded"

    return health_data


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return get_metrics()


@app.get("/admin/providers", response_class=ORJSONResponse)
async def get_providers():
    """Get status of configured LLM providers."""
    current = settings.MODEL_PROVIDER
    current_validation = validate_provider_config(current)

    return {
        "current_provider": current,
        "current_model": settings.MODEL_NAME,
        "current_valid": current_validation["valid"],
        "current_missing": current_validation["missing"],
        "providers": list_available_providers(),
    }
