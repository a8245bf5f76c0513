"""
Output formatters for kmodtree results.

This module contains classes for formatting the model objects into
machine-readable output formats (JSON, CSV).
"""

import csv
import io
import json
from typing import Dict, List, Sequence


class BaseFormatter:
    """Base class for all formatters."""

    def format(self, items: Sequence, key: str = "modules") -> str:
        """
        Format model objects into an output string.

        Args:
            items: Objects providing to_dict(), or plain dictionaries
            key: Name of the collection in the output

        Returns:
            str: Formatted output
        """
        raise NotImplementedError

    @staticmethod
    def rows(items: Sequence) -> List[Dict]:
        return [item if isinstance(item, dict) else item.to_dict() for item in items]


class JSONFormatter(BaseFormatter):
    """Formatter for JSON output."""

    def format(self, items: Sequence, key: str = "modules") -> str:
        return json.dumps({key: self.rows(items)}, indent=2)


class CSVFormatter(BaseFormatter):
    """Formatter for CSV output; list values are joined with commas."""

    def format(self, items: Sequence, key: str = "modules") -> str:
        output = io.StringIO()
        rows = self.rows(items)
        if not rows:
            return ""

        writer = csv.DictWriter(output, fieldnames=list(rows[0]))
        writer.writeheader()
        for row in rows:
            writer.writerow({
                name: ','.join(str(v) for v in value) if isinstance(value, list) else value
                for name, value in row.items()
            })

        return output.getvalue()


def mapping_rows(mapping: Dict[str, List[str]], key: str = "name",
                 value: str = "dependencies") -> List[Dict]:
    """Turn a name to list mapping into formatter rows."""
    return [{key: name, value: list(values)} for name, values in mapping.items()]
