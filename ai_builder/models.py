from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ContractType(str, Enum):
    token = "Token"
    nft = "NFT"
    edition = "Edition"
    vault = "Vault"
    marketplace = "Marketplace"
    exchange = "Exchange"


class Severity(str, Enum):
    high = "High"
    medium = "Medium"
    low = "Low"


class StageState(str, Enum):
    idle = "idle"
    loading = "loading"
    success = "success"
    error = "error"


class ArtifactPart(str, Enum):
    sierra = "sierra"
    casm = "casm"


# Pipeline inputs and outputs

class GenerationRequest(BaseModel):
    customization: str = Field(..., min_length=1, max_length=5000, description="Free-text customization to apply")
    contract_type: ContractType = Field(..., description="Template the generated contract is based on")


class BuildResult(BaseModel):
    """Outcome of one remote compilation.

    ``code`` echoes the submitted source so the artifact and its source travel
    together; the caller's own copy stays authoritative.
    """
    success: bool
    message: str = ""
    artifact: Optional[Any] = None
    code: str


class Vulnerability(BaseModel):
    title: str = Field(..., description="Short description of the issue. Example: 'Reentrancy attack'")
    severity: Severity = Field(..., description="Severity of the issue")
    description: str = Field(..., description="Detailed description of the issue")


class AuditReport(BaseModel):
    """Schema the auditor model must answer with."""
    audits: List[Vulnerability] = Field(..., description="List of issues found in the smart contract")


class AuditSummary(BaseModel):
    score: float
    total: int
    severity_counts: Dict[Severity, int]


class AuditResult(BaseModel):
    success: bool
    audits: List[Vulnerability] = Field(default_factory=list)
    summary: Optional[AuditSummary] = None


# Direct contract endpoints

class CompileRequest(BaseModel):
    code: str = Field(..., min_length=1)


class AuditRequest(BaseModel):
    code: str = Field(..., min_length=1)


class ResolveRequest(BaseModel):
    code: str = Field(..., min_length=1)
    compiler_error: str = Field(..., min_length=1)


class GeneratedCode(BaseModel):
    code: str


class ScoreRequest(BaseModel):
    audits: List[Vulnerability] = Field(default_factory=list)


# Document store

class PredefinedPrompt(BaseModel):
    identifier: str
    contract_type: ContractType
    title: str
    description: str


class ExampleDocument(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    template: ContractType
    example: str


class TemplateInfo(BaseModel):
    name: ContractType
    is_active: bool


# Pipeline runs

class StageStatusResponse(BaseModel):
    state: StageState
    is_loading: bool
    is_error: bool
    is_success: bool
    payload: Optional[Any] = None
    error: Optional[str] = None


class PipelineRunResponse(BaseModel):
    id: str
    contract_type: ContractType
    customization: str
    is_running: bool
    created_at: datetime
    stages: Dict[str, StageStatusResponse]
    audit_summary: Optional[AuditSummary] = None
