"""Quote-aware CSV tokenizing for published Google Sheets exports.

One tokenizer shared by the directory, the WhatsApp bot and the CLI. It never
raises: bad quoting degrades to a best-effort split of that line.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from pipeline.columns import find_column

_LINE_BREAK = re.compile(r"\r?\n")


def parse_line(text: str) -> list[str]:
    """Split one CSV line into raw (untrimmed) fields.

    `""` inside a quoted field is a literal quote. An unterminated quote just
    runs to the end of the line.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]
        if ch == '"':
            if in_quotes and i + 1 < n and text[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1

    fields.append("".join(current))
    return fields


@dataclass
class CsvTable:
    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)

    def index(self, *aliases: str) -> int:
        return find_column(self.headers, *aliases)

    def __len__(self) -> int:
        return len(self.rows)


def parse_table(text: str) -> CsvTable:
    """Parse a whole CSV payload: first non-blank line is the header.

    Headers come back trimmed and lowercased, cells trimmed. Anything short
    of a header plus one data row is an empty table.
    """
    lines = [line for line in _LINE_BREAK.split(text or "") if line.strip()]
    if len(lines) < 2:
        return CsvTable()

    headers = [h.strip().lower() for h in parse_line(lines[0])]
    rows = [[cell.strip() for cell in parse_line(line)] for line in lines[1:]]
    return CsvTable(headers=headers, rows=rows)
