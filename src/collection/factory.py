# ========================
# src/collection/factory.py
# ========================

"""
Engine Factory

Builds engines for callers and keeps one engine per logical scope (e.g. one per HTTP request).
"""

import logging
from typing import Any, Optional

from .engine import Ray
from ..utils.config import Config

logger = logging.getLogger(__name__)


def _resolve_strict(strict: Optional[bool]) -> bool:
    return Config().STRICT_SHAPES if strict is None else strict


def ray(collection, strict: Optional[bool] = None) -> Ray:
    """
    Return a fresh engine loaded with ``collection``.

    Args:
        collection (dict or list): Collection to load
        strict (bool): Shape policy; defaults to the configured STRICT_SHAPES
    """
    return Ray(strict=_resolve_strict(strict)).with_(collection)


def scoped_engine(holder: Any, attribute: str = "ray", strict: Optional[bool] = None) -> Ray:
    """
    Return the engine stored on ``holder``, creating it when absent or of another type.

    Args:
        holder: Any object accepting attributes, such as ``request.state``
        attribute (str): Attribute name the engine is stored under
        strict (bool): Shape policy for a newly created engine
    """
    engine = getattr(holder, attribute, None)
    if not isinstance(engine, Ray):
        if engine is not None:
            logger.warning(f"Replacing unexpected {type(engine).__name__} stored as '{attribute}'")
        engine = Ray(strict=_resolve_strict(strict))
        setattr(holder, attribute, engine)

    return engine


def scoped_ray(holder: Any, collection, attribute: str = "ray", strict: Optional[bool] = None) -> Ray:
    """Load ``collection`` into the engine stored on ``holder`` and return it."""
    return scoped_engine(holder, attribute, strict).with_(collection)
