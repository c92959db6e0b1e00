"""Database models for the contract builder document store.

Two lookup collections: predefined prompts offered per contract template,
and one example contract per template used to ground generation.
"""

from uuid import uuid4

from sqlalchemy import Column, DateTime, String, Text, func
from sqlalchemy.orm import declarative_base


Base = declarative_base()


class PromptRecord(Base):
    """Predefined customization prompt for a contract template."""

    __tablename__ = "prompts"

    id = Column(String(), primary_key=True, default=lambda: str(uuid4()))
    contract_type = Column(String(50), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text(), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ExampleDoc(Base):
    """Example contract source for a template."""

    __tablename__ = "docs"

    id = Column(String(), primary_key=True, default=lambda: str(uuid4()))
    template = Column(String(50), nullable=False, unique=True)
    example = Column(Text(), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
