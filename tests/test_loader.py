# ========================
# tests/test_loader.py
# ========================

import unittest
import tempfile
import io
import json
import os
import sys
import csv
from unittest.mock import patch

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.collection.loader import CollectionLoader
import main as cli


def _write_temp(suffix, content):
    with tempfile.NamedTemporaryFile(mode='w', suffix=suffix, delete=False, newline='') as f:
        f.write(content)
        return f.name


class TestCollectionLoader(unittest.TestCase):
    """Test the collection loader."""

    def test_json_object(self):
        """Test that a JSON object keeps its keys and order."""
        temp_file_path = _write_temp('.json', '{"b": {"v": 1}, "a": {"v": 2}}')
        try:
            collection = CollectionLoader(temp_file_path).load()
            self.assertEqual(list(collection), ['b', 'a'])
            self.assertEqual(collection['a'], {'v': 2})
        finally:
            os.unlink(temp_file_path)

    def test_json_array(self):
        temp_file_path = _write_temp('.json', '[1, 2, 3]')
        try:
            self.assertEqual(CollectionLoader(temp_file_path).load(), [1, 2, 3])
        finally:
            os.unlink(temp_file_path)

    def test_json_scalar_rejected(self):
        temp_file_path = _write_temp('.json', '42')
        try:
            with self.assertRaises(ValueError):
                CollectionLoader(temp_file_path).load()
        finally:
            os.unlink(temp_file_path)

    def test_csv_rows(self):
        """Test that CSV rows become a list of dictionaries."""
        test_data = [
            ['id', 'type', 'v'],
            ['1', 'x', '10'],
            ['2', 'y', '20'],
        ]
        with tempfile.NamedTemporaryFile(mode='w', suffix='.csv', delete=False, newline='') as f:
            writer = csv.writer(f)
            writer.writerows(test_data)
            temp_file_path = f.name

        try:
            loader = CollectionLoader(temp_file_path)
            rows = loader.load()

            self.assertEqual(loader.header, ['id', 'type', 'v'])
            self.assertEqual(len(rows), 2)
            self.assertEqual(rows[0], {'id': '1', 'type': 'x', 'v': '10'})
        finally:
            os.unlink(temp_file_path)

    def test_empty_csv(self):
        temp_file_path = _write_temp('.csv', '')
        try:
            self.assertEqual(CollectionLoader(temp_file_path).load(), [])
        finally:
            os.unlink(temp_file_path)

    def test_file_not_found(self):
        with self.assertRaises(FileNotFoundError):
            CollectionLoader("non_existent_file.json").load()

    def test_unsupported_suffix(self):
        with self.assertRaises(ValueError):
            CollectionLoader("data.xml").load()


@patch('main.setup_logging')
class TestCommandLine(unittest.TestCase):
    """Test the command line entry point."""

    def setUp(self):
        self.temp_file_path = _write_temp(
            '.json',
            json.dumps([{'type': 'x', 'v': 1}, {'type': 'y', 'v': 2}, {'type': 'x', 'v': 3}])
        )

    def tearDown(self):
        os.unlink(self.temp_file_path)

    def _run(self, *args):
        with patch('sys.stdout', new_callable=io.StringIO) as stdout:
            exit_code = cli.main([self.temp_file_path, *args])
        return exit_code, stdout.getvalue()

    def test_chain(self, _setup_logging):
        exit_code, output = self._run('--step', 'where=["type", "x"]', '--step', 'sum=v')

        self.assertEqual(exit_code, 0)
        self.assertEqual(json.loads(output), 4)

    def test_no_steps_prints_collection(self, _setup_logging):
        exit_code, output = self._run()

        self.assertEqual(exit_code, 0)
        self.assertEqual(len(json.loads(output)), 3)

    def test_group_by(self, _setup_logging):
        exit_code, output = self._run('-s', 'groupBy=type', '-s', 'count')

        self.assertEqual(exit_code, 0)
        self.assertEqual(json.loads(output), 2)

    def test_invalid_configuration_is_reported(self, _setup_logging):
        with patch.dict(os.environ, {'RAY_MAX_CHAIN_STEPS': '0'}):
            with self.assertLogs('src.utils.config', level='WARNING'):
                exit_code, _ = self._run('--step', 'count')
        self.assertEqual(exit_code, 1)

    def test_failure_returns_one(self, _setup_logging):
        exit_code, _ = self._run('--step', 'avg=missing')
        self.assertEqual(exit_code, 1)

    def test_callables_unavailable(self, _setup_logging):
        exit_code, _ = self._run('--step', 'filter')
        self.assertEqual(exit_code, 1)


if __name__ == '__main__':
    unittest.main()
