import unittest

from app.services.imports.parser import (
    decode_csv_bytes,
    detect_file_type,
    is_legacy_workbook,
    is_supported_upload,
    parse_csv_text,
    parse_upload,
    split_csv_line,
)


class TestSplitCsvLine(unittest.TestCase):
    def test_plain_fields_are_trimmed(self):
        self.assertEqual(split_csv_line(" a , b,c "), ["a", "b", "c"])

    def test_quoted_comma_is_literal(self):
        self.assertEqual(split_csv_line('Acme,"Smith, John",10'), ["Acme", "Smith, John", "10"])

    def test_doubled_quote_is_escaped(self):
        self.assertEqual(split_csv_line('"He said ""hi""",x'), ['He said "hi"', "x"])

    def test_quoted_comma_and_escape_together(self):
        self.assertEqual(split_csv_line('"a ""b"", c"'), ['a "b", c'])

    def test_trailing_comma_yields_empty_field(self):
        self.assertEqual(split_csv_line("a,b,"), ["a", "b", ""])

    def test_empty_line_is_single_empty_field(self):
        self.assertEqual(split_csv_line(""), [""])


class TestParseCsvText(unittest.TestCase):
    def test_rows_keyed_by_header(self):
        table = parse_csv_text("name,code\nAcme,AC1\n,AC2\n")
        self.assertEqual(table.headers, ["name", "code"])
        self.assertEqual(table.rows, [{"name": "Acme", "code": "AC1"}, {"name": "", "code": "AC2"}])

    def test_blank_lines_skipped(self):
        table = parse_csv_text("a,b\n\n1,2\n   \n3,4\n")
        self.assertEqual(len(table.rows), 2)

    def test_every_row_has_exactly_header_keys(self):
        table = parse_csv_text("a,b,c\n1\n1,2\n1,2,3\n")
        for row in table.rows:
            self.assertEqual(set(row.keys()), {"a", "b", "c"})
        self.assertEqual(table.rows[0], {"a": "1", "b": "", "c": ""})

    def test_crlf_line_endings(self):
        table = parse_csv_text("name,code\r\nAcme,AC1\r\n")
        self.assertEqual(table.headers, ["name", "code"])
        self.assertEqual(table.rows, [{"name": "Acme", "code": "AC1"}])

    def test_header_only(self):
        table = parse_csv_text("name,code\n")
        self.assertEqual(table.headers, ["name", "code"])
        self.assertEqual(table.rows, [])

    def test_blank_first_line_is_still_the_header(self):
        table = parse_csv_text("\nname,code\nAcme,AC1\n,AC2\n")
        self.assertEqual(table.headers, [""])
        self.assertEqual(len(table.rows), 3)
        self.assertEqual(table.rows, [{"": "name"}, {"": "Acme"}, {"": ""}])

    def test_empty_text(self):
        table = parse_csv_text("")
        self.assertEqual(table.headers, [])
        self.assertEqual(table.rows, [])

    def test_parsing_is_repeatable(self):
        text = 'name,notes\nAcme,"x, y"\nBeta,"say ""no"""\n'
        self.assertEqual(parse_csv_text(text), parse_csv_text(text))


class TestUploadDetection(unittest.TestCase):
    def test_csv_by_mime(self):
        self.assertEqual(detect_file_type("upload.bin", "text/csv"), "csv")

    def test_csv_by_extension_case_insensitive(self):
        self.assertEqual(detect_file_type("CLIENTS.CSV", "application/octet-stream"), "csv")

    def test_everything_else_is_workbook(self):
        self.assertEqual(detect_file_type("clients.xlsx", None), "excel")

    def test_supported_uploads(self):
        self.assertTrue(is_supported_upload("a.xlsx", "application/octet-stream"))
        self.assertTrue(is_supported_upload("a.csv", "application/vnd.ms-excel"))
        self.assertTrue(is_supported_upload("a.csv", None))
        self.assertFalse(is_supported_upload("a.pdf", "application/pdf"))

    def test_legacy_workbooks_are_rejected(self):
        self.assertTrue(is_legacy_workbook("accounts.xls", "application/vnd.ms-excel"))
        self.assertTrue(is_legacy_workbook("ACCOUNTS.XLS", "application/octet-stream"))
        self.assertTrue(is_legacy_workbook("upload", "application/vnd.ms-excel"))
        self.assertFalse(is_legacy_workbook("clients.csv", "application/vnd.ms-excel"))
        self.assertFalse(is_legacy_workbook("clients.xlsx", "application/vnd.ms-excel"))
        self.assertFalse(is_supported_upload("accounts.xls", "application/vnd.ms-excel"))
        self.assertFalse(is_supported_upload("upload", "application/vnd.ms-excel"))

    def test_decode_strips_bom_and_falls_back_to_latin1(self):
        self.assertEqual(decode_csv_bytes("\ufeffname".encode("utf-8")), "name")
        self.assertEqual(decode_csv_bytes("caf\xe9".encode("latin-1")), "caf\xe9")

    def test_parse_upload_csv(self):
        table = parse_upload(b"name,code\nAcme,AC1\n", "csv")
        self.assertEqual(table.rows, [{"name": "Acme", "code": "AC1"}])


if __name__ == "__main__":
    unittest.main()
