from .stage import IDLE, StageAction, StageStatus, StageTracker, reduce_stage
from .orchestrator import ContractPipeline
from .registry import PipelineRun, PipelineRunRegistry


__all__ = [
    "IDLE",
    "StageAction",
    "StageStatus",
    "StageTracker",
    "reduce_stage",
    "ContractPipeline",
    "PipelineRun",
    "PipelineRunRegistry",
]
