"""Local model asset management."""

from raju.assets.model_manager import ModelManager

__all__ = ["ModelManager"]
