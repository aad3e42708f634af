import os
from typing import TypeVar, Callable, Optional

T = TypeVar('T')


class Env:
    """Typed lookups of environment overrides, e.g. KUBE_BENCHMARK_QPS."""

    PREFIX = "KUBE_BENCHMARK_"

    def __init__(self):
        raise RuntimeError("Env class should not be instantiated")

    @staticmethod
    def get_long(key: str, default_value: int) -> int:
        return Env.get(key, int, default_value)

    @staticmethod
    def get_double(key: str, default_value: float) -> float:
        return Env.get(key, float, default_value)

    @staticmethod
    def get_str(key: str, default_value: Optional[str]) -> Optional[str]:
        return Env.get(key, str, default_value)

    @staticmethod
    def get(key: str, function: Callable[[str], T], default_value: T) -> T:
        env_value = os.getenv(Env.PREFIX + key)
        if env_value is None or env_value == "":
            return default_value
        try:
            return function(env_value)
        except (ValueError, TypeError):
            raise ValueError(f"Invalid value for {Env.PREFIX + key}: {env_value!r}")
