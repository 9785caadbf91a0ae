from shared.clients.engine_loader import load_engine_client
from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.helper.HelperConfig import HelperConfig


class StoreClientManager:
    """Builds the document store client selected by STORE_ENGINE (opensearch)."""

    def __init__(self, helper_config: HelperConfig):
        self.client: StoreClientInterface = load_engine_client("store", helper_config)

    def get_client(self) -> StoreClientInterface:
        return self.client
