"""
Generator Agent: turns a customization request into Cairo source.

The prompt pairs a template example contract with the user's customization,
optionally grounded in a Cairo language reference document.
"""

import logging
from pathlib import Path
from typing import Optional

from .prompt import ChatPrompt, render_prompt


logger = logging.getLogger(__name__)


GENERATOR_SYSTEM_PROMPT = (
    "Your function is to interpret user requests specifically for smart contract development "
    "in the Cairo language for Starknet blockchain. You must generate complete code exclusively, "
    "without any explanatory or conversational text and placeholder comments. Focus on the "
    "user-provided documentation and code examples and follow the exact language syntax."
)

GENERATOR_USER_TEMPLATE = (
    "Cairo Language Documentation: {docs}. \n\n"
    "Template example: {example} \n\n"
    'Request: Based on the provided example apply the following customization "{customization}"'
)


def create_generation_prompt(docs: str, example: str, customization: str) -> ChatPrompt:
    """
    Build the code generation prompt.

    Args:
        docs: Cairo reference text (may be empty)
        example: Example contract for the selected template
        customization: The user's free-text request

    Returns:
        System/user prompt pair
    """
    return render_prompt(
        GENERATOR_SYSTEM_PROMPT,
        GENERATOR_USER_TEMPLATE,
        docs=docs,
        example=example,
        customization=customization,
    )


def load_language_docs(path: Optional[str]) -> str:
    """
    Read the Cairo reference document used as generation context.

    Args:
        path: File path, or None when no reference is configured

    Returns:
        File contents, or an empty string if unset or unreadable
    """
    if not path:
        return ""

    docs_path = Path(path)
    if not docs_path.is_file():
        logger.warning(f"Language docs not found at {docs_path}, generating without reference")
        return ""

    return docs_path.read_text(encoding="utf-8")
