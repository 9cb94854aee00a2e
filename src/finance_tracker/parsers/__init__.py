"""Import parsers for the CSV interchange format."""

from finance_tracker.errors import ParseError
from finance_tracker.parsers.csv_parser import CSVParser, parse_csv, split_csv_line

__all__ = [
    "CSVParser",
    "ParseError",
    "parse_csv",
    "split_csv_line",
]
