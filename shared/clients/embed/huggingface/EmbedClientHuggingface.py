from typing import Any

from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

DEFAULT_BASE_URL = "https://router.huggingface.co/hf-inference/models"


class EmbedClientHuggingface(EmbedClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=DEFAULT_BASE_URL, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Huggingface"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=DEFAULT_BASE_URL),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return f"/{self.embed_model}"

    def get_endpoint_embedding(self) -> str:
        # inference router: /{model}/pipeline/feature-extraction
        return f"/{self.embed_model}/pipeline/feature-extraction"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the feature-extraction request body.

        wait_for_model keeps cold models from answering with 503 while loading.
        """
        return {"inputs": texts, "options": {"wait_for_model": True}}

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_embeddings_from_response(self, response_data: Any) -> list[list[float]]:
        """Extract vectors from a feature-extraction response.

        A list input yields a list of vectors; a lone vector (single string
        input) is wrapped so callers always receive a list of vectors.
        """
        if isinstance(response_data, dict):
            raise ValueError(f"HuggingFace returned an error object: {str(response_data.get('error', response_data))[:200]}")
        if not isinstance(response_data, list) or not response_data:
            raise ValueError("HuggingFace response does not contain embeddings.")
        if all(isinstance(v, (int, float)) for v in response_data):
            return [[float(v) for v in response_data]]
        vectors: list[list[float]] = []
        for vector in response_data:
            if not isinstance(vector, list) or not vector or not isinstance(vector[0], (int, float)):
                raise ValueError("HuggingFace response contains a malformed embedding.")
            vectors.append([float(v) for v in vector])
        return vectors
