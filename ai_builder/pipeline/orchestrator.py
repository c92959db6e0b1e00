"""
Contract pipeline: Generate -> Compile -> Audit.

Stages run strictly in sequence. A failed generation stops the run; compile
and audit both consume the generated code and settle independently of each
other. Every failure is caught at the stage boundary and becomes that
stage's error state, so ``run`` itself only raises when the pipeline is busy.
"""

import logging
import time
from typing import Dict, List, Optional

from ..activity import ActivityEventType, log_activity
from ..agents import create_audit_prompt, create_generation_prompt
from ..errors import BuilderError, EmptyGenerationError, PipelineBusyError
from ..gateways import CompilerGateway, LLMGateway
from ..middleware.metrics import (
    track_pipeline_run_completed,
    track_pipeline_run_started,
    track_stage_settled,
    track_stage_transition,
)
from ..models import AuditReport, BuildResult, ContractType, GenerationRequest, PredefinedPrompt, Vulnerability
from ..storage import DocumentStore
from .stage import StageAction, StageStatus, StageTracker


logger = logging.getLogger(__name__)

_SETTLING_ACTIONS = {StageAction.success: "success", StageAction.error: "failure"}


def _error_message(exc: Exception) -> str:
    if isinstance(exc, BuilderError):
        return exc.message
    return str(exc) or exc.__class__.__name__


class ContractPipeline:
    """Owns one set of stage trackers and drives them through a run."""

    def __init__(
        self,
        llm: LLMGateway,
        compiler: CompilerGateway,
        documents: DocumentStore,
        language_docs: str = "",
        run_id: Optional[str] = None,
    ):
        self.llm = llm
        self.compiler = compiler
        self.documents = documents
        self.language_docs = language_docs
        self.run_id = run_id
        self.correlation_id: Optional[str] = None

        self.prompts: StageTracker[List[PredefinedPrompt]] = StageTracker("prompts", self._on_transition)
        self.generate: StageTracker[str] = StageTracker("generate", self._on_transition)
        self.compile: StageTracker[BuildResult] = StageTracker("compile", self._on_transition)
        self.audit: StageTracker[List[Vulnerability]] = StageTracker("audit", self._on_transition)

        self._running = False
        self._stage_started: Dict[str, float] = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def trackers(self) -> Dict[str, StageTracker]:
        return {
            "prompts": self.prompts,
            "generate": self.generate,
            "compile": self.compile,
            "audit": self.audit,
        }

    def snapshot(self) -> Dict[str, StageStatus]:
        return {name: tracker.status for name, tracker in self.trackers.items()}

    def acquire(self) -> None:
        """
        Mark the pipeline busy and reset generate, compile and audit to idle.

        Raises:
            PipelineBusyError: If a run is already in flight
        """
        if self._running:
            log_activity(
                ActivityEventType.PIPELINE_REJECTED,
                run_id=self.run_id,
                outcome="failure",
                correlation_id=self.correlation_id,
            )
            raise PipelineBusyError(
                "A run is already in progress for this pipeline",
                details={"run_id": self.run_id},
            )
        self._running = True
        self.reset()

    def reset(self) -> None:
        for tracker in (self.generate, self.compile, self.audit):
            tracker.reset()

    async def load_prompts(self, contract_type: ContractType) -> Optional[List[PredefinedPrompt]]:
        """Fill the predefined-prompts stage. Returns None when the lookup failed."""
        self.prompts.start()
        try:
            prompts = await self.documents.list_prompts(contract_type)
        except Exception as e:
            logger.error(f"Run {self.run_id}: loading prompts for {contract_type.value} failed: {e}", exc_info=True)
            self.prompts.fail(_error_message(e))
            return None
        self.prompts.succeed(prompts)
        return prompts

    async def run(self, request: GenerationRequest, acquired: bool = False) -> Dict[str, StageStatus]:
        """
        Execute one full run and return the resulting stage snapshot.

        Args:
            request: Customization and template to generate from
            acquired: True when the caller already holds the busy flag

        Raises:
            PipelineBusyError: If another run is in flight on this pipeline
        """
        if not acquired:
            self.acquire()

        contract_type = request.contract_type.value
        started = time.time()
        logger.info(f"Run {self.run_id}: starting pipeline for {contract_type}")
        log_activity(
            ActivityEventType.PIPELINE_STARTED,
            details={"contract_type": contract_type},
            run_id=self.run_id,
            outcome="info",
            correlation_id=self.correlation_id,
        )
        track_pipeline_run_started(contract_type)

        try:
            code = await self._run_generate(request)
            if code is not None:
                await self._run_compile(code)
                await self._run_audit(code)

            outcome = self._outcome()
            duration = time.time() - started
            track_pipeline_run_completed(contract_type, outcome, duration)
            log_activity(
                ActivityEventType.PIPELINE_COMPLETED,
                details={"contract_type": contract_type, "duration_seconds": round(duration, 3)},
                run_id=self.run_id,
                outcome=outcome,
                correlation_id=self.correlation_id,
            )
            logger.info(f"Run {self.run_id}: finished with outcome {outcome} in {duration:.2f}s")
            return self.snapshot()
        finally:
            self._running = False

    async def _run_generate(self, request: GenerationRequest) -> Optional[str]:
        self.generate.start()
        try:
            example = await self.documents.get_example(request.contract_type)
            prompt = create_generation_prompt(
                docs=self.language_docs,
                example=example.example,
                customization=request.customization,
            )
            code = await self.llm.generate_code(prompt)
            if not code.strip():
                raise EmptyGenerationError("The model returned no code")
        except Exception as e:
            logger.error(f"Run {self.run_id}: generate stage failed: {e}", exc_info=True)
            self.generate.fail(_error_message(e))
            return None

        self.generate.succeed(code)
        return code

    async def _run_compile(self, code: str) -> None:
        self.compile.start()
        try:
            result = await self.compiler.compile(code)
        except Exception as e:
            logger.error(f"Run {self.run_id}: compile stage failed: {e}", exc_info=True)
            self.compile.fail(_error_message(e))
            return

        if not result.success:
            logger.warning(f"Run {self.run_id}: compilation failed: {result.message}")
            self.compile.fail(result.message or "Compilation failed")
            return
        self.compile.succeed(result)

    async def _run_audit(self, code: str) -> None:
        self.audit.start()
        try:
            report = await self.llm.generate_structured(create_audit_prompt(code), AuditReport)
        except Exception as e:
            logger.error(f"Run {self.run_id}: audit stage failed: {e}", exc_info=True)
            self.audit.fail(_error_message(e))
            return
        self.audit.succeed(report.audits)

    def _outcome(self) -> str:
        if not self.generate.status.is_success:
            return "failed"
        if self.compile.status.is_success and self.audit.status.is_success:
            return "succeeded"
        return "partial"

    def _on_transition(self, stage: str, action: StageAction, status: StageStatus) -> None:
        track_stage_transition(stage, action.value)

        if action == StageAction.start:
            self._stage_started[stage] = time.time()
        elif action in _SETTLING_ACTIONS:
            started = self._stage_started.pop(stage, None)
            if started is not None:
                track_stage_settled(stage, _SETTLING_ACTIONS[action], time.time() - started)

        log_activity(
            ActivityEventType(f"stage.{action.value}"),
            details={"error": status.error} if status.is_error else {},
            run_id=self.run_id,
            stage=stage,
            outcome=_SETTLING_ACTIONS.get(action, "info"),
            correlation_id=self.correlation_id,
        )
