from .core import resolve

__all__ = ["resolve"]
