from .compiler import CompilerGateway
from .llm import LLMGateway, extract_code_block


__all__ = [
    "CompilerGateway",
    "LLMGateway",
    "extract_code_block",
]
