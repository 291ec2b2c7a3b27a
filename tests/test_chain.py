# ========================
# tests/test_chain.py
# ========================

import unittest
import sys
import os

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.collection.chain import ChainRunner, normalize_operation, parse_step
from src.collection.engine import Ray
from src.collection.errors import ChainError, EmptyAggregateError
from src.utils.config import Config


class TestChainRunner(unittest.TestCase):

    def setUp(self):
        self.collection = {
            'a': {'type': 'x', 'v': 1},
            'b': {'type': 'y', 'v': 2},
            'c': {'type': 'x', 'v': 3},
        }
        self.runner = ChainRunner(engine=Ray())

    def test_chainable_steps_end_with_to_array(self):
        outcome = self.runner.run(self.collection, [{'op': 'groupBy', 'args': ['type']}])

        self.assertEqual(outcome['terminal_operation'], 'to_array')
        self.assertEqual(outcome['steps_executed'], 1)
        self.assertEqual(list(outcome['result']), ['x', 'y'])

    def test_terminal_step(self):
        outcome = self.runner.run(self.collection, [('where', 'type', 'x'), ('sum', 'v')])

        self.assertEqual(outcome['result'], 4)
        self.assertEqual(outcome['terminal_operation'], 'sum')

    def test_keyword_operation(self):
        outcome = self.runner.run(self.collection, [{'op': 'except', 'args': [['a', 'b']]}])
        self.assertEqual(outcome['result'], {'c': {'type': 'x', 'v': 3}})

    def test_empty_chain_returns_collection(self):
        self.assertEqual(self.runner.run([1, 2], [])['result'], [1, 2])

    def test_engine_is_flushed_after_non_flushing_terminal(self):
        outcome = self.runner.run(self.collection, ['count'])

        self.assertEqual(outcome['result'], 3)
        self.assertEqual(self.runner.engine.count(), 0)

    def test_engine_is_flushed_after_failure(self):
        with self.assertRaises(EmptyAggregateError):
            self.runner.run(self.collection, [('avg', 'missing')])
        self.assertEqual(self.runner.engine.count(), 0)

    def test_callables(self):
        outcome = self.runner.run([1, 2, 3, 4], [('filter', lambda value, key: value % 2 == 0), 'values'])
        self.assertEqual(outcome['result'], [2, 4])

    def test_callables_refused(self):
        runner = ChainRunner(allow_callables=False)
        with self.assertRaises(ChainError):
            runner.run([1], [('reduce', lambda carry, value: value)])

    def test_unknown_operation(self):
        with self.assertRaises(ChainError):
            self.runner.run(self.collection, ['explode'])

    def test_with_is_not_a_step(self):
        with self.assertRaises(ChainError):
            self.runner.run(self.collection, [('with', [])])

    def test_terminal_must_be_last(self):
        with self.assertRaises(ChainError):
            self.runner.run(self.collection, ['count', 'values'])

    def test_wrong_argument_count(self):
        """
        Tests that arity mistakes are reported as chain errors before the collection is loaded.
        """
        for steps in ([('where', 'type')], [('sum', 'v', 'extra')], [('values', 1)]):
            with self.assertRaises(ChainError, msg=f"Failed for steps: {steps}"):
                self.runner.run(self.collection, steps)
        self.assertEqual(self.runner.engine.count(), 0)

    def test_optional_arguments_accepted(self):
        outcome = self.runner.run(self.collection, [('column', 'v', 'type')])
        self.assertEqual(outcome['result'], {'x': 3, 'y': 2})

    def test_step_limit(self):
        runner = ChainRunner(config=Config({'max_chain_steps': 2}))
        with self.assertRaises(ChainError):
            runner.run([1], ['values', 'values', 'values'])

    def test_malformed_steps(self):
        for step in (42, {'args': []}, ()):
            with self.assertRaises(ChainError):
                self.runner.run([1], [step])


class TestStepParsing(unittest.TestCase):

    def test_normalize_operation(self):
        cases = [
            ('groupBy', 'group_by'),
            ('whereNotIn', 'where_not_in'),
            ('toArray', 'to_array'),
            ('sort_by_keys', 'sort_by_keys'),
            ('except', 'except'),
        ]
        for name, expected in cases:
            self.assertEqual(normalize_operation(name), expected, f"Failed for operation: {name}")

    def test_parse_step(self):
        cases = [
            ('sum', ('sum',)),
            ('groupBy=type', ('groupBy', 'type')),
            ('where=["v", 1]', ('where', 'v', 1)),
            ('whereIn=["type", ["x", "y"]]', ('whereIn', 'type', ['x', 'y'])),
            ('has=3', ('has', 3)),
        ]
        for text, expected in cases:
            self.assertEqual(parse_step(text), expected, f"Failed for step: {text}")

    def test_parse_step_without_name(self):
        with self.assertRaises(ChainError):
            parse_step('=["a"]')


if __name__ == '__main__':
    unittest.main()
