from .console import Display

__all__ = ["Display"]
