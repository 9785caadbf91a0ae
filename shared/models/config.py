from typing import Literal

from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    A single configuration parameter a client reads from the environment.

    Attributes:
        env_key (str): Raw key, prefixed by the client with "<TYPE>_<ENGINE>_" (e.g. "BASE_URL").
        val_type (str): Expected value type: "string", "number", "bool" or "list".
        default: Fallback value. None marks the variable as required.
    """

    env_key: str
    val_type: Literal["string", "number", "bool", "list"] = "string"
    default: str | int | float | bool | list | None = None
