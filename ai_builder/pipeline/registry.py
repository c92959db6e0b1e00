"""In-memory registry of recent pipeline runs."""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable
from uuid import uuid4

from ..errors import RunNotFoundError
from ..models import GenerationRequest
from .orchestrator import ContractPipeline


logger = logging.getLogger(__name__)

PipelineFactory = Callable[[str], ContractPipeline]


@dataclass
class PipelineRun:
    id: str
    request: GenerationRequest
    pipeline: ContractPipeline
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class PipelineRunRegistry:
    """
    Keeps the most recent runs, evicting the oldest settled runs once
    ``max_runs`` is exceeded. Runs still in flight are never evicted.
    Runs live only as long as the process.
    """

    def __init__(self, factory: PipelineFactory, max_runs: int = 200):
        self.factory = factory
        self.max_runs = max_runs
        self._runs: "OrderedDict[str, PipelineRun]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._runs)

    def create(self, request: GenerationRequest) -> PipelineRun:
        run_id = str(uuid4())
        run = PipelineRun(id=run_id, request=request, pipeline=self.factory(run_id))
        self._runs[run_id] = run

        for evicted_id, evicted in list(self._runs.items()):
            if len(self._runs) <= self.max_runs:
                break
            if evicted_id == run_id or evicted.pipeline.is_running:
                continue
            del self._runs[evicted_id]
            logger.debug(f"Evicted pipeline run {evicted_id}")

        return run

    def get(self, run_id: str) -> PipelineRun:
        run = self._runs.get(run_id)
        if run is None:
            raise RunNotFoundError(f"Pipeline run {run_id} not found", details={"run_id": run_id})
        return run
