from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.engine_loader import load_engine_client
from shared.helper.HelperConfig import HelperConfig


class EmbedClientManager:
    """Builds the embedding client selected by EMBED_ENGINE (huggingface, openai)."""

    def __init__(self, helper_config: HelperConfig):
        self.client: EmbedClientInterface = load_engine_client("embed", helper_config)

    def get_client(self) -> EmbedClientInterface:
        return self.client
