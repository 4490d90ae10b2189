from .openai_client import OpenAITextClient, RequestMetadata, resolve_api_key

__all__ = ["OpenAITextClient", "RequestMetadata", "resolve_api_key"]
