# ========================
# src/collection/loader.py
# ========================

"""
Collection Loader

Reads collections from JSON or CSV files so they can be loaded into an engine.
"""

import csv
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class CollectionLoader:
    """
    Loads a whole file into a collection.
    JSON files may hold any object or array; CSV files become a list of row dictionaries.
    """

    SUPPORTED_SUFFIXES = ('.json', '.csv')

    def __init__(self, file_path):
        """
        Initialize the loader.

        Args:
            file_path (str): Path to the JSON or CSV file to read
        """
        self.file_path = Path(file_path)
        self.header = []
        logger.info(f"Initialized CollectionLoader for file: {file_path}")

    def load(self):
        """
        Read the file.

        Returns:
            dict or list: The loaded collection
        """
        suffix = self.file_path.suffix.lower()
        if suffix not in self.SUPPORTED_SUFFIXES:
            raise ValueError(f"Unsupported file type '{suffix}', expected one of {self.SUPPORTED_SUFFIXES}")

        try:
            if suffix == '.json':
                collection = self._load_json()
            else:
                collection = self._load_csv()
        except FileNotFoundError:
            logger.error(f"File '{self.file_path}' was not found")
            raise
        except Exception as e:
            logger.error(f"Error reading {self.file_path}: {e}")
            raise

        logger.info(f"Loaded {len(collection)} top-level entries from {self.file_path.name}")
        return collection

    def _load_json(self):
        with open(self.file_path, 'r', encoding='utf-8') as f:
            collection = json.load(f)

        if not isinstance(collection, (dict, list)):
            raise ValueError(f"JSON file must hold an object or an array, got {type(collection).__name__}")
        return collection

    def _load_csv(self):
        with open(self.file_path, 'r', newline='', encoding='utf-8') as f:
            reader = csv.DictReader(f)
            rows = list(reader)
            self.header = reader.fieldnames or []

        logger.info(f"CSV header: {self.header}")
        return rows
