"""Character-level CSV tokenizer for the smoothie dataset.

RFC 4180-ish and deliberately forgiving: quoted fields may contain commas and
newlines, "" inside quotes is an escaped quote, \\r\\n, \\n and \\r all end a
row, and a leading byte-order mark is dropped. Malformed quoting never raises;
the state machine keeps accumulating and the row builder copes with whatever
comes out (ragged rows included).
"""

from pathlib import Path
from typing import Union

BOM = "\ufeff"


def strip_bom(text: str) -> str:
    return text[1:] if text.startswith(BOM) else text


def parse_csv_rows(csv_text: str) -> list[list[str]]:
    """Split raw CSV text into rows of raw field strings.

    A trailing row without a newline terminator is still emitted.

    Example:
        >>> parse_csv_rows('title,NER\\r\\n"Banana, Oat","[""banane""]"')
        [['title', 'NER'], ['Banana, Oat', '["banane"]']]
    """
    text = strip_bom(csv_text)
    rows: list[list[str]] = []
    row: list[str] = []
    field: list[str] = []
    in_quotes = False
    i = 0
    length = len(text)

    while i < length:
        char = text[i]

        if in_quotes:
            if char == '"':
                if i + 1 < length and text[i + 1] == '"':
                    field.append('"')
                    i += 2
                    continue
                in_quotes = False
            else:
                field.append(char)
            i += 1
            continue

        if char == '"':
            in_quotes = True
        elif char == ",":
            row.append("".join(field))
            field = []
        elif char in "\r\n":
            # \r\n counts as a single row boundary
            if char == "\r" and i + 1 < length and text[i + 1] == "\n":
                i += 1
            row.append("".join(field))
            rows.append(row)
            row = []
            field = []
        else:
            field.append(char)
        i += 1

    if field or row:
        row.append("".join(field))
        rows.append(row)

    return rows


def read_csv_file(path: Union[str, Path]) -> list[list[str]]:
    """Read a UTF-8 dataset file and tokenize it. I/O errors propagate."""
    with open(path, "r", encoding="utf-8", newline="") as f:
        return parse_csv_rows(f.read())
