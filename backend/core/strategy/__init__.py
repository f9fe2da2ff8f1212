"""Script engine plugin system.

Public API:
- SignalEngine: Protocol that all engines must implement
- EngineResult: Standard return type from an engine run
- register_engine: Decorator to register an engine class
- create_engine: Factory function to instantiate engines by name
- list_engines: Discover all registered engines

Importing this package auto-registers all built-in engines.
"""

from core.strategy.protocol import EngineResult, SignalEngine
from core.strategy.registry import (
    register_engine,
    create_engine,
    list_engines,
)

# Import built-in engines to trigger auto-registration
import core.strategy.logistic_regression  # noqa: F401
import core.strategy.linear_regression  # noqa: F401

__all__ = [
    "SignalEngine",
    "EngineResult",
    "register_engine",
    "create_engine",
    "list_engines",
]
