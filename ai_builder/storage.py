import logging
from typing import List, Optional

from sqlalchemy import select

from .cache.redis_cache import Cache, cache_key_prompts
from .db.models import ExampleDoc, PromptRecord
from .db.session import Database
from .errors import DocumentNotFoundError
from .models import ContractType, ExampleDocument, PredefinedPrompt, TemplateInfo


logger = logging.getLogger(__name__)


def _prompt_from_row(row: PromptRecord) -> PredefinedPrompt:
    return PredefinedPrompt(
        identifier=row.id,
        contract_type=ContractType(row.contract_type),
        title=row.title,
        description=row.description,
    )


class DocumentStore:
    """Keyed lookups over the prompts and docs collections."""

    def __init__(self, db: Database, cache: Optional[Cache] = None):
        self.db = db
        self.cache = cache

    async def list_prompts(self, contract_type: ContractType) -> List[PredefinedPrompt]:
        key = cache_key_prompts(contract_type.value)
        if self.cache:
            cached = await self.cache.get(key)
            if cached is not None:
                return [PredefinedPrompt.model_validate(item) for item in cached]

        async with self.db.session() as session:
            result = await session.execute(
                select(PromptRecord)
                .where(PromptRecord.contract_type == contract_type.value)
                .order_by(PromptRecord.created_at, PromptRecord.title)
            )
            prompts = [_prompt_from_row(row) for row in result.scalars().all()]

        if self.cache:
            await self.cache.set(key, [p.model_dump(mode="json") for p in prompts])
        return prompts

    async def get_example(self, contract_type: ContractType) -> ExampleDocument:
        async with self.db.session() as session:
            result = await session.execute(
                select(ExampleDoc).where(ExampleDoc.template == contract_type.value)
            )
            row = result.scalar_one_or_none()
        if row is None:
            raise DocumentNotFoundError(
                f"No example contract for template '{contract_type.value}'",
                details={"template": contract_type.value},
            )
        return ExampleDocument.model_validate(row)

    async def list_templates(self) -> List[TemplateInfo]:
        """Every contract type, active when an example contract exists for it."""
        async with self.db.session() as session:
            result = await session.execute(select(ExampleDoc.template))
            available = set(result.scalars().all())
        return [TemplateInfo(name=ct, is_active=ct.value in available) for ct in ContractType]

    async def add_prompt(self, contract_type: ContractType, title: str, description: str) -> PredefinedPrompt:
        async with self.db.session() as session:
            row = PromptRecord(contract_type=contract_type.value, title=title, description=description)
            session.add(row)
            await session.commit()
            prompt = _prompt_from_row(row)

        if self.cache:
            await self.cache.delete(cache_key_prompts(contract_type.value))
        logger.info(f"Added prompt '{title}' for {contract_type.value}")
        return prompt

    async def add_example(self, contract_type: ContractType, example: str) -> ExampleDocument:
        """Insert or replace the example contract for a template."""
        async with self.db.session() as session:
            result = await session.execute(
                select(ExampleDoc).where(ExampleDoc.template == contract_type.value)
            )
            row = result.scalar_one_or_none()
            if row is None:
                row = ExampleDoc(template=contract_type.value, example=example)
                session.add(row)
            else:
                row.example = example
            await session.commit()
            document = ExampleDocument.model_validate(row)

        logger.info(f"Stored example contract for {contract_type.value}")
        return document

    async def has_prompt(self, contract_type: ContractType, title: str) -> bool:
        async with self.db.session() as session:
            result = await session.execute(
                select(PromptRecord.id).where(
                    PromptRecord.contract_type == contract_type.value,
                    PromptRecord.title == title,
                )
            )
            return result.first() is not None

    async def has_example(self, contract_type: ContractType) -> bool:
        async with self.db.session() as session:
            result = await session.execute(
                select(ExampleDoc.id).where(ExampleDoc.template == contract_type.value)
            )
            return result.first() is not None
