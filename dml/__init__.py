from .defaults import apply_defaults
from .matching import build_lookup, resolve

__all__ = ["apply_defaults", "build_lookup", "resolve"]
