import io
import unittest
from datetime import date

import openpyxl

from app.services.imports.parser import parse_upload, parse_workbook_bytes


def _workbook_bytes(*sheets: list[list]) -> bytes:
    wb = openpyxl.Workbook()
    for idx, rows in enumerate(sheets):
        ws = wb.active if idx == 0 else wb.create_sheet(f"Sheet{idx + 1}")
        for row in rows:
            ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    wb.close()
    return buf.getvalue()


class TestWorkbookParser(unittest.TestCase):
    def test_first_sheet_first_row_is_header(self):
        content = _workbook_bytes(
            [["name", "original_balance"], ["Acme", 1500], ["Beta", 12.5]],
            [["ignored"], ["x"]],
        )
        table = parse_workbook_bytes(content)
        self.assertEqual(table.headers, ["name", "original_balance"])
        self.assertEqual(
            table.rows,
            [{"name": "Acme", "original_balance": "1500"}, {"name": "Beta", "original_balance": "12.5"}],
        )

    def test_missing_cells_become_empty_strings(self):
        content = _workbook_bytes([["name", "code", "email"], ["Acme", None, "a@b.co"], ["Beta"]])
        table = parse_workbook_bytes(content)
        self.assertEqual(table.rows[0], {"name": "Acme", "code": "", "email": "a@b.co"})
        self.assertEqual(table.rows[1], {"name": "Beta", "code": "", "email": ""})

    def test_non_string_cells_are_stringified(self):
        content = _workbook_bytes([["opened", "active"], [date(2024, 1, 31), True]])
        row = parse_workbook_bytes(content).rows[0]
        self.assertTrue(row["opened"].startswith("2024-01-31"))
        self.assertEqual(row["active"], "true")

    def test_all_blank_rows_are_skipped(self):
        content = _workbook_bytes([["name", "code"], ["Acme", "AC1"], [None, None], ["Beta", "B2"]])
        table = parse_workbook_bytes(content)
        self.assertEqual(table.rows, [{"name": "Acme", "code": "AC1"}, {"name": "Beta", "code": "B2"}])

    def test_header_only_sheet(self):
        table = parse_workbook_bytes(_workbook_bytes([["name", "code"]]))
        self.assertEqual(table.headers, ["name", "code"])
        self.assertEqual(table.rows, [])

    def test_dispatch_through_parse_upload(self):
        table = parse_upload(_workbook_bytes([["name"], ["Acme"]]), "excel")
        self.assertEqual(table.rows, [{"name": "Acme"}])

    def test_garbage_bytes_raise(self):
        with self.assertRaises(Exception):
            parse_workbook_bytes(b"not a workbook")


if __name__ == "__main__":
    unittest.main()
