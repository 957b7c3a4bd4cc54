"""Helpers for building provider-specific model specs."""

from __future__ import annotations

from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.azure import AzureProvider
from pydantic_ai.providers.openai import OpenAIProvider

from examprep.config import LLMSettings, is_azure_v1_endpoint


def build_model(llm_settings: LLMSettings, model_name: str | None = None) -> str | OpenAIChatModel:
    """Resolve the configured provider into a pydantic-ai model or model string."""

    provider = llm_settings.provider.lower()
    model_name = model_name or llm_settings.model

    if provider in {"azure", "azure_openai"}:
        api_key, base_url, api_version = llm_settings.azure_credentials()
        if not (api_key and base_url):
            raise ValueError(
                "Azure OpenAI requires EXAMPREP_LLM__AZURE__API_KEY and "
                "EXAMPREP_LLM__AZURE__BASE_URL."
            )
        v1_endpoint = is_azure_v1_endpoint(base_url)
        if not (v1_endpoint or api_version):
            raise ValueError(
                "Azure OpenAI endpoints outside the v1 API require "
                "EXAMPREP_LLM__AZURE__API_VERSION."
            )
        # The v1 API rejects an explicit api_version.
        azure_provider = AzureProvider(
            azure_endpoint=base_url,
            api_version=None if v1_endpoint else api_version,
            api_key=api_key.get_secret_value(),
        )
        return OpenAIChatModel(model_name, provider=azure_provider)

    if provider in {"openai", "custom"}:
        api_key, base_url = llm_settings.openai_like_credentials(provider)
        if provider == "custom" and base_url is None:
            raise ValueError("Provider 'custom' requires EXAMPREP_LLM__CUSTOM__BASE_URL.")
        openai_provider = OpenAIProvider(
            api_key=api_key.get_secret_value() if api_key else None,
            base_url=base_url,
        )
        return OpenAIChatModel(model_name, provider=openai_provider)

    return f"{provider}:{model_name}"


__all__ = ["build_model"]
