"""
Core module for application configuration and domain logic.

Note: auth and security modules are not imported at package level to avoid
circular imports with psychevaluator.models.
Import them directly: from psychevaluator.core.auth import ...
"""
from .config import settings

__all__ = ["settings"]
