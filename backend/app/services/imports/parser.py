from __future__ import annotations

import io
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Literal

RawRow = dict[str, str]
FileType = Literal["csv", "excel"]

CSV_MIME_TYPES = {"text/csv"}
SPREADSHEET_MIME_TYPES = {"application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"}
SPREADSHEET_EXTENSIONS = (".xlsx", ".xlsm")
# BIFF workbooks; openpyxl only reads the OOXML formats.
LEGACY_WORKBOOK_MIME_TYPES = {"application/vnd.ms-excel"}
LEGACY_WORKBOOK_EXTENSIONS = (".xls",)


@dataclass
class ParsedTable:
    headers: list[str] = field(default_factory=list)
    rows: list[RawRow] = field(default_factory=list)


def detect_file_type(filename: str | None, content_type: str | None) -> FileType:
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    if mime in CSV_MIME_TYPES or (filename or "").lower().endswith(".csv"):
        return "csv"
    return "excel"


def is_legacy_workbook(filename: str | None, content_type: str | None) -> bool:
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    name = (filename or "").lower()
    if name.endswith(LEGACY_WORKBOOK_EXTENSIONS):
        return True
    # Some browsers label plain .csv files as application/vnd.ms-excel.
    if name.endswith(".csv") or name.endswith(SPREADSHEET_EXTENSIONS):
        return False
    return mime in LEGACY_WORKBOOK_MIME_TYPES


def is_supported_upload(filename: str | None, content_type: str | None) -> bool:
    if is_legacy_workbook(filename, content_type):
        return False
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    name = (filename or "").lower()
    if mime in CSV_MIME_TYPES or mime in SPREADSHEET_MIME_TYPES:
        return True
    return name.endswith(".csv") or name.endswith(SPREADSHEET_EXTENSIONS)


def decode_csv_bytes(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def split_csv_line(line: str) -> list[str]:
    # Quoted fields spanning several lines are not supported.
    result: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                current.append('"')
                i += 2
            else:
                in_quotes = not in_quotes
                i += 1
        elif ch == "," and not in_quotes:
            result.append("".join(current).strip())
            current = []
            i += 1
        else:
            current.append(ch)
            i += 1
    result.append("".join(current).strip())
    return result


def parse_csv_text(text: str) -> ParsedTable:
    if not text.strip():
        return ParsedTable()

    # Line 0 is the header even when it is blank.
    lines = text.split("\n")
    headers = split_csv_line(lines[0])
    rows: list[RawRow] = []
    for line in lines[1:]:
        line = line.strip()
        if not line:
            continue
        values = split_csv_line(line)
        rows.append({h: (values[idx] if idx < len(values) else "") for idx, h in enumerate(headers)})
    return ParsedTable(headers=headers, rows=rows)


def _cell_to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value).strip()


def parse_workbook_bytes(content: bytes) -> ParsedTable:
    import openpyxl

    wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        if not wb.worksheets:
            return ParsedTable()
        ws = wb.worksheets[0]
        row_iter = ws.iter_rows(values_only=True)
        header_row = next(row_iter, None)
        if header_row is None:
            return ParsedTable()

        headers = [_cell_to_str(v) for v in header_row]
        # read_only mode pads trailing empty header cells; drop them
        while headers and not headers[-1]:
            headers.pop()

        rows: list[RawRow] = []
        for values in row_iter:
            cells = [_cell_to_str(v) for v in values]
            if not any(cells):
                continue
            rows.append({h: (cells[idx] if idx < len(cells) else "") for idx, h in enumerate(headers)})
        return ParsedTable(headers=headers, rows=rows)
    finally:
        wb.close()


def parse_upload(content: bytes, file_type: FileType) -> ParsedTable:
    if file_type == "csv":
        return parse_csv_text(decode_csv_bytes(content))
    return parse_workbook_bytes(content)
