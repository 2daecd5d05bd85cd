"""Tests for CSV export."""

import csv
import io
from datetime import date

from hisebi.services.export import CSV_HEADERS, format_amount, transactions_to_csv

from tests.factories import make_transaction


class TestCsvExport:
    """Tests for the transactions CSV."""

    def test_header_only_when_empty(self):
        """Test an empty ledger exports just the header."""
        assert transactions_to_csv([]) == "Date,Type,Category,Amount,Note\n"

    def test_row_format(self):
        """Test one row per transaction with a bare amount."""
        text = transactions_to_csv([
            make_transaction("expense", 120, "Food", date(2024, 1, 10), "Lunch"),
            make_transaction("income", 30000.5, "Salary", date(2024, 1, 1)),
        ])
        assert text.splitlines() == [
            "Date,Type,Category,Amount,Note",
            "2024-01-10,expense,Food,120,Lunch",
            "2024-01-01,income,Salary,30000.5,",
        ]

    def test_notes_with_commas_are_quoted(self):
        """Test a note containing the delimiter survives a CSV reader."""
        text = transactions_to_csv([
            make_transaction(category="Rent/Housing", note='Flat 3B, "advance"'),
        ])
        rows = list(csv.reader(io.StringIO(text)))
        assert rows[0] == CSV_HEADERS
        assert rows[1][4] == 'Flat 3B, "advance"'

    def test_format_amount(self):
        """Test whole amounts lose the trailing .0."""
        assert format_amount(100.0) == "100"
        assert format_amount(99.5) == "99.5"
        assert format_amount(0) == "0"

    def test_small_amounts_stay_plain_decimals(self):
        """Test tiny amounts are never written in exponent form."""
        assert format_amount(0.00001) == "0.00001"
        assert format_amount(1e-7) == "0.0000001"
        text = transactions_to_csv([make_transaction(amount=0.00001)])
        assert text.splitlines()[1].split(",")[3] == "0.00001"
