from abc import ABC, abstractmethod

from practice_api.schemas.settings import GeminiModel


class AbstractLLMClient(ABC):
	"""Interface for provider clients operating on a caller-supplied API key.

	Users bring their own key, so every call takes it explicitly instead of
	the client holding one.
	"""

	@abstractmethod
	async def validate_api_key(self, api_key: str) -> bool:
		"""Check that the provider accepts ``api_key``.

		Returns:
			bool: False when the provider rejects the key.

		Raises:
			LLMAppError: If the provider cannot be reached at all.
		"""
		...

	@abstractmethod
	async def list_models(self, api_key: str) -> list[GeminiModel]:
		"""List models that can generate content with ``api_key``.

		Raises:
			LLMAppError: If the provider call fails.
		"""
		...
