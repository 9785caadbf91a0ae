"""Central configuration helper for the product indexing core."""

import logging
import os
from typing import Any, Callable

_TRUE_VALUES = ("true", "1", "yes", "on")


class HelperConfig:
    """Reads all settings from environment variables.

    Keys are case-insensitive (looked up upper-cased). A blank variable counts
    as unset. Every getter raises ValueError when the variable is unset and no
    default is given, so required settings fail loudly at start-up.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _resolve(self, key: str, default: Any, parse: Callable[[str], Any]) -> Any:
        name = key.upper()
        raw = os.getenv(name)
        if raw is None or not raw.strip():
            if default is None:
                raise ValueError(f"Environment variable '{name}' is not set.")
            return default
        try:
            return parse(raw.strip())
        except ValueError as e:
            raise ValueError(f"Environment variable '{name}' has an invalid value '{raw.strip()}': {e}")

    def get_string_val(self, key: str, default: str | None = None) -> str:
        return self._resolve(key, default, str)

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read an int, or a float if the value contains a decimal point."""
        return self._resolve(key, default, lambda raw: float(raw) if "." in raw else int(raw))

    def get_int_val(self, key: str, default: int | None = None) -> int:
        return int(self.get_number_val(key, default=default))

    def get_float_val(self, key: str, default: float | None = None) -> float:
        return float(self.get_number_val(key, default=default))

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """Read a flag: true, 1, yes or on (any case) are True, everything else False."""
        return self._resolve(key, default, lambda raw: raw.lower() in _TRUE_VALUES)

    def get_list_val(self, key: str, default: list | None = None, separator: str = ",", element_type: type = str) -> list:
        """Read a separated list such as "a,b" or "[a, b]", casting each element to element_type.

        Args:
            key (str): Environment variable name.
            default (list | None): Fallback if unset.
            separator (str): Element delimiter.
            element_type (type): Type each element is cast to.

        Raises:
            ValueError: If unset without default, or an element cannot be cast.
        """

        def parse(raw: str) -> list:
            if raw.startswith("[") and raw.endswith("]"):
                raw = raw[1:-1]
            return [element_type(part.strip()) for part in raw.split(separator) if part.strip()]

        return self._resolve(key, default, parse)

    def get_logger(self) -> logging.Logger:
        return self._logger
