"""Load predefined prompts and example contracts into the document store.

Usage:
    python -m ai_builder.seed [path/to/seed.yaml] [--database-url URL]

Records that already exist (same template and title for prompts, same
template for examples) are skipped.
"""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field

from .core.config import settings
from .db.session import Database
from .models import ContractType
from .storage import DocumentStore


logger = logging.getLogger(__name__)

DEFAULT_SEED_FILE = Path(__file__).parent / "data" / "seed.yaml"


class SeedPrompt(BaseModel):
    contract_type: ContractType
    title: str
    description: str


class SeedExample(BaseModel):
    template: ContractType
    example: str


class SeedFile(BaseModel):
    prompts: List[SeedPrompt] = Field(default_factory=list)
    examples: List[SeedExample] = Field(default_factory=list)


def load_seed_file(path: str | Path) -> SeedFile:
    """Parse a seed YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        pydantic.ValidationError: If an entry names an unknown template.
    """
    raw = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    return SeedFile.model_validate(raw or {})


async def seed_documents(store: DocumentStore, data: SeedFile) -> Dict[str, int]:
    """Insert missing records. Returns counts of inserted and skipped records."""
    counts = {"prompts": 0, "examples": 0, "skipped": 0}

    for prompt in data.prompts:
        if await store.has_prompt(prompt.contract_type, prompt.title):
            counts["skipped"] += 1
            continue
        await store.add_prompt(prompt.contract_type, prompt.title, prompt.description)
        counts["prompts"] += 1

    for example in data.examples:
        if await store.has_example(example.template):
            counts["skipped"] += 1
            continue
        await store.add_example(example.template, example.example)
        counts["examples"] += 1

    return counts


async def run_seed(path: str | Path, database_url: str, create_tables: bool = False) -> Dict[str, int]:
    data = load_seed_file(path)
    db = Database(database_url)
    await db.connect()
    try:
        if create_tables:
            await db.create_all()
        counts = await seed_documents(DocumentStore(db), data)
    finally:
        await db.disconnect()

    logger.info(
        f"Seeded {counts['prompts']} prompt(s) and {counts['examples']} example(s), "
        f"skipped {counts['skipped']} existing record(s)"
    )
    return counts


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Seed the contract builder document store")
    parser.add_argument("path", nargs="?", default=str(DEFAULT_SEED_FILE), help="Seed YAML file")
    parser.add_argument("--database-url", default=settings.DATABASE_URL, help="Overrides DATABASE_URL")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create tables before seeding (local development without migrations)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.LOG_LEVEL)
    asyncio.run(run_seed(args.path, args.database_url, create_tables=args.create_tables))


if __name__ == "__main__":
    main()
