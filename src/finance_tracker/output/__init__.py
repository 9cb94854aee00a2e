"""Export of ledger data to the CSV interchange format."""

from finance_tracker.output.csv_exporter import CSV_HEADER, CSVExporter, export_transactions_csv

__all__ = ["CSV_HEADER", "CSVExporter", "export_transactions_csv"]
