"""Contract templates with their predefined prompts and example contracts."""

from typing import List

from fastapi import APIRouter, Depends

from ..dependencies import get_document_store
from ..models import ContractType, ExampleDocument, PredefinedPrompt, TemplateInfo
from ..storage import DocumentStore


router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("", response_model=List[TemplateInfo])
async def list_templates(documents: DocumentStore = Depends(get_document_store)):
    """List contract types; a template is active once an example contract exists for it."""
    return await documents.list_templates()


@router.get("/{contract_type}/prompts", response_model=List[PredefinedPrompt])
async def list_prompts(
    contract_type: ContractType,
    documents: DocumentStore = Depends(get_document_store),
):
    return await documents.list_prompts(contract_type)


@router.get("/{contract_type}/example", response_model=ExampleDocument)
async def get_example(
    contract_type: ContractType,
    documents: DocumentStore = Depends(get_document_store),
):
    return await documents.get_example(contract_type)
