"""Engine registry for looking up script engines by classification tag.

Usage:
    @register_engine("my_engine")
    class MyEngine:
        ...

    engine = create_engine("my_engine", config=config)
    engines = list_engines()
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

# Populated at import time only: engine_name -> engine_class
_REGISTRY: dict[str, type] = {}


def _lookup(name: str) -> type:
    cls = _REGISTRY.get(name)
    if cls is None:
        available = ", ".join(sorted(_REGISTRY.keys())) or "(none)"
        raise KeyError(f"Unknown engine '{name}'. Available: {available}")
    return cls


def register_engine(name: str):
    """Decorator to register an engine class under a classification tag.

    Args:
        name: Unique engine name (e.g., 'bull_bear_power').

    Raises:
        ValueError: If an engine with the same name is already registered.
    """

    def decorator(cls):
        if name in _REGISTRY:
            raise ValueError(
                f"Engine '{name}' is already registered by {_REGISTRY[name].__name__}"
            )
        _REGISTRY[name] = cls
        logger.debug("Registered engine: %s -> %s", name, cls.__name__)
        return cls

    return decorator


def create_engine(name: str, **kwargs: Any):
    """Create an engine instance by name.

    Raises:
        KeyError: If no engine is registered under the given name.
    """
    return _lookup(name)(**kwargs)


def list_engines() -> list[str]:
    """Return a sorted list of registered engine names."""
    return sorted(_REGISTRY.keys())
