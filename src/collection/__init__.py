# ========================
# src/collection/__init__.py
# ========================

"""
Collection Package

A fluent engine for querying and transforming in-memory nested collections:
- engine: The Ray collection engine
- factory: Engine construction and per-scope access
- chain: Declarative operation chains
- loader: JSON/CSV collection loading
- errors: Error taxonomy
"""

from .engine import Ray
from .factory import ray, scoped_engine, scoped_ray
from .chain import ChainRunner, parse_step
from .loader import CollectionLoader
from .errors import (
    CollectionError,
    InvalidShapeError,
    MissingKeyError,
    EmptyAggregateError,
    NonNumericValueError,
    ChainError,
)

__all__ = [
    'Ray',
    'ray',
    'scoped_engine',
    'scoped_ray',
    'ChainRunner',
    'parse_step',
    'CollectionLoader',
    'CollectionError',
    'InvalidShapeError',
    'MissingKeyError',
    'EmptyAggregateError',
    'NonNumericValueError',
    'ChainError',
]

__version__ = "1.0.0"
