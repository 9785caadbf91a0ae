"""Resolves a client family's engine class from the environment."""

import importlib

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


def load_engine_client(family: str, helper_config: HelperConfig) -> ClientInterface:
    """Instantiate ``shared.clients.<family>.<engine>.<Family>Client<Engine>`` for ``<FAMILY>_ENGINE``.

    With EMBED_ENGINE=huggingface this loads
    ``shared.clients.embed.huggingface.EmbedClientHuggingface``.

    Raises:
        ValueError: If <FAMILY>_ENGINE is unset or names no installed engine.
    """
    engine = helper_config.get_string_val(f"{family}_ENGINE").strip().lower()
    class_name = f"{family.capitalize()}Client{engine.capitalize()}"
    try:
        module = importlib.import_module(f"shared.clients.{family}.{engine}.{class_name}")
        client_class = getattr(module, class_name)
    except (ImportError, AttributeError) as e:
        raise ValueError(f"Unsupported {family} engine '{engine}': {e}")

    helper_config.get_logger().debug("Selected %s engine %s.", family, engine)
    return client_class(helper_config=helper_config)
