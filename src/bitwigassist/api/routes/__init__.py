"""API route modules."""

from bitwigassist.api.routes import assistant, controller, health, metrics, profile

__all__ = ["assistant", "controller", "health", "metrics", "profile"]
