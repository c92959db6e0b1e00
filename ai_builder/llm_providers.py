"""
Multi-Cloud LLM Provider Support

Resolves the configured provider into the arguments for a litellm
completion call:
- OpenAI (default)
- OpenRouter
- Google Vertex AI
- Amazon Bedrock
- Microsoft Azure OpenAI

Credentials are passed per call rather than through process environment.
"""

import logging
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from enum import Enum

from .core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    OPENROUTER = "openrouter"
    OPENAI = "openai"
    VERTEX = "vertex"
    BEDROCK = "bedrock"
    AZURE = "azure"


@dataclass
class ProviderConfig:
    """Configuration for an LLM provider."""
    provider: LLMProvider
    model_name: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    extra_params: Dict[str, Any] = field(default_factory=dict)

    def completion_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``litellm.acompletion``."""
        kwargs: Dict[str, Any] = {"model": self.model_name}
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.base_url:
            kwargs["api_base"] = self.base_url
        kwargs.update({k: v for k, v in self.extra_params.items() if v is not None})
        return kwargs


# Default model mappings for each provider
DEFAULT_MODELS = {
    LLMProvider.OPENROUTER: "openai/gpt-4-1106-preview",
    LLMProvider.OPENAI: "gpt-4-1106-preview",
    LLMProvider.VERTEX: "gemini-1.5-pro",
    LLMProvider.BEDROCK: "anthropic.claude-3-sonnet-20240229-v1:0",
    LLMProvider.AZURE: "gpt-4o",
}


def _prefixed(prefix: str, model: str) -> str:
    return model if model.startswith(f"{prefix}/") else f"{prefix}/{model}"


def get_provider_config(
    provider: Optional[str] = None,
    model_name: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> ProviderConfig:
    """
    Get configuration for the specified provider.

    Args:
        provider: Provider name (defaults to MODEL_PROVIDER setting)
        model_name: Model name (defaults to MODEL_NAME setting or provider default)
        settings: Settings to read credentials from (defaults to the app settings)

    Returns:
        ProviderConfig with all necessary settings
    """
    settings = settings or default_settings
    provider_str = (provider or settings.MODEL_PROVIDER or "openai").lower()

    try:
        llm_provider = LLMProvider(provider_str)
    except ValueError:
        logger.warning(f"Unknown provider '{provider_str}', falling back to openai")
        llm_provider = LLMProvider.OPENAI

    final_model = model_name or settings.MODEL_NAME or DEFAULT_MODELS[llm_provider]

    if llm_provider == LLMProvider.OPENROUTER:
        return ProviderConfig(
            provider=llm_provider,
            model_name=_prefixed("openrouter", final_model),
            api_key=settings.OPENROUTER_API_KEY,
            base_url=settings.OPENROUTER_BASE_URL,
        )

    if llm_provider == LLMProvider.VERTEX:
        return ProviderConfig(
            provider=llm_provider,
            model_name=_prefixed("vertex_ai", final_model),
            extra_params={
                "vertex_project": settings.GOOGLE_PROJECT_ID,
                "vertex_location": settings.GOOGLE_LOCATION,
            },
        )

    if llm_provider == LLMProvider.BEDROCK:
        return ProviderConfig(
            provider=llm_provider,
            model_name=_prefixed("bedrock", final_model),
            extra_params={
                "aws_region_name": settings.AWS_REGION,
            },
        )

    if llm_provider == LLMProvider.AZURE:
        # Azure addresses models by deployment name
        deployment = settings.AZURE_OPENAI_DEPLOYMENT or final_model
        return ProviderConfig(
            provider=llm_provider,
            model_name=_prefixed("azure", deployment),
            api_key=settings.AZURE_OPENAI_API_KEY,
            base_url=settings.AZURE_OPENAI_ENDPOINT,
            extra_params={
                "api_version": settings.AZURE_OPENAI_API_VERSION,
            },
        )

    return ProviderConfig(
        provider=LLMProvider.OPENAI,
        model_name=final_model,
        api_key=settings.OPENAI_API_KEY,
    )


def validate_provider_config(provider: str, settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Validate that the required configuration is present for a provider.

    Args:
        provider: Provider name to validate
        settings: Settings to check (defaults to the app settings)

    Returns:
        Dict with 'valid' bool and 'missing' list of missing config keys
    """
    settings = settings or default_settings
    provider_str = provider.lower()
    missing = []

    if provider_str == "openrouter":
        if not settings.OPENROUTER_API_KEY:
            missing.append("OPENROUTER_API_KEY")

    elif provider_str == "openai":
        if not settings.OPENAI_API_KEY:
            missing.append("OPENAI_API_KEY")

    elif provider_str == "vertex":
        # Application default credentials cover auth when running on GCP
        if not settings.GOOGLE_PROJECT_ID:
            missing.append("GOOGLE_PROJECT_ID")

    elif provider_str == "bedrock":
        # AWS credentials can come from IAM role, so nothing strictly required
        pass

    elif provider_str == "azure":
        if not settings.AZURE_OPENAI_API_KEY:
            missing.append("AZURE_OPENAI_API_KEY")
        if not settings.AZURE_OPENAI_ENDPOINT:
            missing.append("AZURE_OPENAI_ENDPOINT")

    else:
        missing.append("MODEL_PROVIDER")

    return {
        "valid": len(missing) == 0,
        "missing": missing,
        "provider": provider_str
    }


def list_available_providers(settings: Optional[Settings] = None) -> Dict[str, Dict[str, Any]]:
    """
    List all providers and their configuration status.

    Returns:
        Dict mapping provider names to their validation status
    """
    providers = {}
    for p in LLMProvider:
        validation = validate_provider_config(p.value, settings)
        providers[p.value] = {
            "configured": validation["valid"],
            "missing_config": validation["missing"],
            "default_model": DEFAULT_MODELS.get(p),
        }
    return providers
