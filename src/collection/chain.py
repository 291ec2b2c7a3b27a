# ========================
# src/collection/chain.py
# ========================

"""
Operation Chains

Applies a declared sequence of engine operations to a collection, so chains can arrive as data
(HTTP request bodies, command line arguments) instead of Python method calls.
"""

import inspect
import json
import logging
import re
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .engine import Ray
from .errors import ChainError
from ..utils.config import Config

logger = logging.getLogger(__name__)

CHAINABLE_OPERATIONS = (
    'sort_by_values', 'sort_by_keys', 'where', 'where_not', 'where_in', 'where_not_in', 'filter',
    'values', 'except', 'only', 'unique', 'group_by', 'column', 'flush',
)

TERMINAL_OPERATIONS = (
    'to_array', 'contains', 'has', 'count', 'first', 'last', 'sum', 'avg', 'reduce',
)

CALLABLE_OPERATIONS = ('filter', 'reduce')

# Python keywords are exposed with a trailing underscore on the engine
METHOD_NAMES = {'except': 'except_'}


def normalize_operation(name: str) -> str:
    """Turn ``groupBy``/``whereNotIn``/``toArray`` into their snake_case method names."""
    return re.sub(r'(?<!^)(?=[A-Z])', '_', name.strip()).lower()


def parse_step(text: str) -> Tuple[Any, ...]:
    """
    Parse a command line step: ``op`` or ``op=<args>``.

    ``<args>`` is a JSON array of arguments; any other JSON value is a single argument, and text that
    is not JSON is passed through as one string argument.

    Examples:
        ``sum`` -> ('sum',)
        ``groupBy=type`` -> ('groupBy', 'type')
        ``whereIn=["type", ["x", "y"]]`` -> ('whereIn', 'type', ['x', 'y'])
    """
    name, separator, raw_args = text.partition('=')
    if not name.strip():
        raise ChainError(f"Step '{text}' has no operation name")
    if not separator:
        return (name.strip(),)

    try:
        args = json.loads(raw_args)
    except ValueError:
        args = raw_args

    if isinstance(args, list):
        return (name.strip(), *args)
    return (name.strip(), args)


class ChainRunner:
    """
    Runs operation chains against an engine.
    Every run loads the given collection and leaves the engine flushed afterwards.
    """

    def __init__(self,
                 engine: Optional[Ray] = None,
                 max_steps: Optional[int] = None,
                 allow_callables: bool = True,
                 config: Optional[Config] = None):
        """
        Initialize the chain runner.

        Args:
            engine (Ray): Engine to run against; a new one is created when omitted
            max_steps (int): Maximum number of steps per chain
            allow_callables (bool): Whether ``filter``/``reduce`` steps are accepted
            config (Config): Configuration object
        """
        self.config = config or Config()
        self.engine = engine if engine is not None else Ray(strict=self.config.STRICT_SHAPES)
        self.max_steps = max_steps if max_steps is not None else self.config.MAX_CHAIN_STEPS
        self.allow_callables = allow_callables

    def run(self, collection, steps: Sequence[Any]) -> Dict[str, Any]:
        """
        Load ``collection`` and apply ``steps`` in order.

        Args:
            collection (dict or list): Collection to load
            steps (list): Steps as ``{"op": name, "args": [...]}`` mappings or ``(name, *args)`` sequences

        Returns:
            dict: The result, the number of steps executed and the terminal operation used
        """
        parsed = [self._parse(step) for step in steps]
        self._validate(parsed)

        logger.info(f"Running chain of {len(parsed)} steps: {[name for name, _ in parsed]}")

        self.engine.with_(collection)
        try:
            result = None
            terminal_operation = 'to_array'
            for name, args in parsed:
                outcome = getattr(self.engine, METHOD_NAMES.get(name, name))(*args)
                if name in TERMINAL_OPERATIONS:
                    result = outcome
                    terminal_operation = name

            if not parsed or parsed[-1][0] not in TERMINAL_OPERATIONS:
                result = self.engine.to_array()
        finally:
            self.engine.flush()

        logger.info(f"Chain finished with '{terminal_operation}'")
        return {
            'result': result,
            'steps_executed': len(parsed),
            'terminal_operation': terminal_operation,
        }

    def _parse(self, step: Any) -> Tuple[str, List[Any]]:
        if isinstance(step, Mapping):
            name = step.get('op')
            args = step.get('args') or []
        elif isinstance(step, (list, tuple)) and step:
            name, args = step[0], list(step[1:])
        elif isinstance(step, str):
            name, args = step, []
        else:
            raise ChainError(f"Malformed step: {step!r}")

        if not isinstance(name, str) or not name.strip():
            raise ChainError(f"Step {step!r} has no operation name")
        if not isinstance(args, (list, tuple)):
            args = [args]

        return normalize_operation(name), list(args)

    def _validate(self, parsed: List[Tuple[str, List[Any]]]) -> None:
        if len(parsed) > self.max_steps:
            raise ChainError(f"Chain has {len(parsed)} steps, the limit is {self.max_steps}")

        for position, (name, args) in enumerate(parsed):
            if name not in CHAINABLE_OPERATIONS and name not in TERMINAL_OPERATIONS:
                raise ChainError(f"Unknown operation '{name}'")
            if name in CALLABLE_OPERATIONS and not self.allow_callables:
                raise ChainError(f"Operation '{name}' needs a callable and is not available here")
            if name in TERMINAL_OPERATIONS and position != len(parsed) - 1:
                raise ChainError(f"Terminal operation '{name}' must be the last step")

            method = getattr(self.engine, METHOD_NAMES.get(name, name))
            try:
                inspect.signature(method).bind(*args)
            except TypeError as e:
                raise ChainError(f"Invalid arguments for '{name}': {e}") from e
