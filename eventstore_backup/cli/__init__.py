from .config import Settings
from .main import main

__all__ = ["Settings", "main"]
