"""
Prompt template agents for the contract pipeline.

Each agent is a pure function producing a fixed system instruction and a
user message with its arguments substituted:

- Generator: customization + template example -> Cairo source
- Build Resolver: source + compiler error -> fixed source
- Auditor: source -> structured vulnerability report
"""

from .prompt import ChatPrompt, render_prompt
from .generator import create_generation_prompt, load_language_docs
from .build_resolver import create_build_resolution_prompt
from .auditor import create_audit_prompt


__all__ = [
    "ChatPrompt",
    "render_prompt",
    "create_generation_prompt",
    "load_language_docs",
    "create_build_resolution_prompt",
    "create_audit_prompt",
]
