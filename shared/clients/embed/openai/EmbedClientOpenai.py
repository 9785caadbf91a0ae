from typing import Any

from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class EmbedClientOpenai(EmbedClientInterface):
    """OpenAI-compatible /embeddings backend (OpenAI, vLLM, LiteLLM, ...)."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://api.openai.com/v1", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default=None, val_type="string")

    def _get_engine_name(self) -> str:
        return "Openai"

    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://api.openai.com/v1"),
            EnvConfig(env_key="API_KEY", val_type="string", default=None),
        ]

    def _get_auth_header(self) -> dict:
        return {"Authorization": f"Bearer {self._api_key}"}

    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/models"

    def get_endpoint_embedding(self) -> str:
        return "/embeddings"

    def get_embed_payload(self, texts: list[str]) -> dict:
        # dimensions is honoured by models that support shortening (text-embedding-3-*)
        return {"model": self.embed_model, "input": texts, "dimensions": self.embed_dimension}

    def extract_embeddings_from_response(self, response_data: Any) -> list[list[float]]:
        data = response_data.get("data") if isinstance(response_data, dict) else None
        if not data:
            raise ValueError("OpenAI response does not contain a 'data' list.")
        ordered = sorted(data, key=lambda item: item.get("index", 0))
        vectors = [item.get("embedding") for item in ordered]
        if any(not vector for vector in vectors):
            raise ValueError("OpenAI response contains an empty embedding.")
        return vectors
