"""
Activity log: structured JSON trail of pipeline activity.

Records run lifecycle events and every stage transition, tagged with the run
id and, when available, the request correlation id.
"""

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from .core.config import settings


activity_logger = logging.getLogger("activity")
activity_logger.setLevel(logging.INFO)

if settings.ACTIVITY_LOG_FILE:
    _handler = logging.FileHandler(settings.ACTIVITY_LOG_FILE)
    _handler.setFormatter(logging.Formatter("%(message)s"))
    activity_logger.addHandler(_handler)


class ActivityEventType(Enum):
    PIPELINE_STARTED = "pipeline.started"
    PIPELINE_COMPLETED = "pipeline.completed"
    PIPELINE_REJECTED = "pipeline.rejected"

    STAGE_STARTED = "stage.start"
    STAGE_SUCCEEDED = "stage.success"
    STAGE_FAILED = "stage.error"
    STAGE_RESET = "stage.reset"


@dataclass
class ActivityEvent:
    timestamp: str
    event_type: str
    run_id: Optional[str]
    stage: Optional[str]
    outcome: str  # success, failure, info
    details: Dict[str, Any]
    correlation_id: Optional[str] = None

    def to_json(self) -> str:
        return json.dumps(asdict(self), default=str)


def log_activity(
    event_type: ActivityEventType | str,
    details: Optional[Dict[str, Any]] = None,
    run_id: Optional[str] = None,
    stage: Optional[str] = None,
    outcome: str = "success",
    correlation_id: Optional[str] = None,
) -> ActivityEvent:
    event = ActivityEvent(
        timestamp=datetime.now(timezone.utc).isoformat(),
        event_type=event_type.value if isinstance(event_type, ActivityEventType) else event_type,
        run_id=run_id,
        stage=stage,
        outcome=outcome,
        details=details or {},
        correlation_id=correlation_id,
    )
    activity_logger.info(event.to_json())
    return event
