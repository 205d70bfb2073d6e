"""Render a quiz as CSV or XLSX.

Both formats share one column shape::

    Pos | Team | Players | R1 ... RN (with Hk checkpoints) | Total

followed by a final row of per-column averages.
"""

from __future__ import annotations

import csv
import math
import os
import re
import zipfile
from dataclasses import dataclass
from typing import TextIO, Union
from xml.sax.saxutils import escape, quoteattr

from .model import (
    Config,
    Quiz,
    checkpoint,
    checkpoint_average,
    rank,
    round_average,
    sort_by_ranking,
    total_average,
)
from .score import format_score

__all__ = [
    "ExportError",
    "Row",
    "header",
    "build_rows",
    "write_csv",
    "write_csv_file",
    "write_xlsx",
]

PathLike = Union[str, "os.PathLike[str]"]

SHEET_NAME = "Quiz"

_MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
_REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
_PKG_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
_XML_DECL = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'

_STYLE_PLAIN = 0
_STYLE_HEADER = 1
_STYLE_AVERAGE = 2

_NUMBER = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_XML_INVALID = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f]")


class ExportError(Exception):
    """Writing an export file failed."""


@dataclass(frozen=True)
class Row:
    """One output row; values line up with the header."""

    values: tuple[str, ...]


def header(config: Config) -> list[str]:
    """Header row: rounds as ``R<n>``, checkpoints as ``H<n>``."""
    checkpoints = set(config.checkpoints)
    out = ["Pos", "Team", "Players"]
    for r in range(1, config.rounds + 1):
        out.append(f"R{r}")
        if r in checkpoints:
            out.append(f"H{r}")
    out.append("Total")
    return out


def _format_average(value: float | None) -> str:
    return "" if value is None else f"{value:.2f}"


def _averages_row(quiz: Quiz) -> Row:
    checkpoints = set(quiz.config.checkpoints)
    values = ["avg", "", ""]
    for r in range(1, quiz.config.rounds + 1):
        values.append(_format_average(round_average(quiz, r)))
        if r in checkpoints:
            values.append(_format_average(checkpoint_average(quiz, r)))
    values.append(_format_average(total_average(quiz)))
    return Row(tuple(values))


def build_rows(quiz: Quiz) -> list[Row]:
    """Body rows in position order (best first), then the averages row."""
    ranking = rank(quiz)
    checkpoints = set(quiz.config.checkpoints)
    rows = []
    for team in sort_by_ranking(quiz):
        values = [str(ranking.position_of(team.id)), team.name, team.players]
        for r in range(1, quiz.config.rounds + 1):
            value = team.score(r)
            values.append("" if value is None else format_score(value))
            if r in checkpoints:
                values.append(format_score(checkpoint(team, r)))
        values.append(format_score(team.total()))
        rows.append(Row(tuple(values)))
    rows.append(_averages_row(quiz))
    return rows


def write_csv(stream: TextIO, quiz: Quiz) -> None:
    """Write the quiz as CSV: header first, averages row last."""
    writer = csv.writer(stream, lineterminator="\n")
    try:
        writer.writerow(header(quiz.config))
        writer.writerows(row.values for row in build_rows(quiz))
        stream.flush()
    except OSError as exc:
        raise ExportError(f"write csv: {exc}") from exc


def write_csv_file(path: PathLike, quiz: Quiz) -> None:
    """Write the CSV export to ``path``, truncating any existing file."""
    try:
        with open(path, "w", newline="", encoding="utf-8") as handle:
            write_csv(handle, quiz)
    except OSError as exc:
        raise ExportError(f"create {path}: {exc}") from exc


# --- XLSX -------------------------------------------------------------------


def _column_name(index: int) -> str:
    name = ""
    while index > 0:
        index, rem = divmod(index - 1, 26)
        name = chr(ord("A") + rem) + name
    return name


def _parse_number(text: str) -> float | None:
    """Interpret a cell as a number, tolerating one decimal comma."""
    if not text:
        return None
    candidate = text.replace(",", ".", 1)
    if not _NUMBER.fullmatch(candidate):
        return None
    value = float(candidate)
    return value if math.isfinite(value) else None


def _number_text(value: float) -> str:
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def _cell_xml(ref: str, value: str, style: int, numeric: bool) -> str:
    style_attr = f' s="{style}"' if style else ""
    number = _parse_number(value) if numeric else None
    if number is not None:
        return f'<c r="{ref}"{style_attr}><v>{_number_text(number)}</v></c>'
    if value:
        text = escape(_XML_INVALID.sub("", value))
        return (
            f'<c r="{ref}"{style_attr} t="inlineStr">'
            f'<is><t xml:space="preserve">{text}</t></is></c>'
        )
    if style:
        return f'<c r="{ref}"{style_attr}/>'
    return ""


def _row_xml(row_number: int, values: list[str], width: int, style: int, numeric: bool) -> str:
    padded = list(values) + [""] * max(width - len(values), 0)
    cells = "".join(
        _cell_xml(f"{_column_name(col)}{row_number}", value, style, numeric)
        for col, value in enumerate(padded, start=1)
    )
    return f'<row r="{row_number}">{cells}</row>'


def _sheet_xml(quiz: Quiz) -> str:
    head = header(quiz.config)
    rows = build_rows(quiz)
    width = len(head)
    lines = [_row_xml(1, head, width, _STYLE_HEADER, numeric=False)]
    averages_row = len(rows) + 1
    for row_number, row in enumerate(rows, start=2):
        style = _STYLE_AVERAGE if row_number == averages_row else _STYLE_PLAIN
        lines.append(_row_xml(row_number, list(row.values), width, style, numeric=True))
    return (
        f'{_XML_DECL}<worksheet xmlns="{_MAIN_NS}"><sheetData>'
        + "".join(lines)
        + "</sheetData></worksheet>"
    )


_CONTENT_TYPES = (
    _XML_DECL
    + '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
    '<Default Extension="rels" '
    'ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
    '<Default Extension="xml" ContentType="application/xml"/>'
    '<Override PartName="/xl/workbook.xml" '
    'ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet.main+xml"/>'
    '<Override PartName="/xl/worksheets/sheet1.xml" '
    'ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.worksheet+xml"/>'
    '<Override PartName="/xl/styles.xml" '
    'ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.styles+xml"/>'
    "</Types>"
)

_ROOT_RELS = (
    _XML_DECL
    + f'<Relationships xmlns="{_PKG_REL_NS}">'
    f'<Relationship Id="rId1" Type="{_REL_NS}/officeDocument" Target="xl/workbook.xml"/>'
    "</Relationships>"
)

_WORKBOOK_RELS = (
    _XML_DECL
    + f'<Relationships xmlns="{_PKG_REL_NS}">'
    f'<Relationship Id="rId1" Type="{_REL_NS}/worksheet" Target="worksheets/sheet1.xml"/>'
    f'<Relationship Id="rId2" Type="{_REL_NS}/styles" Target="styles.xml"/>'
    "</Relationships>"
)

_WORKBOOK = (
    _XML_DECL
    + f'<workbook xmlns="{_MAIN_NS}" xmlns:r="{_REL_NS}">'
    f"<sheets><sheet name={quoteattr(SHEET_NAME)} sheetId=\"1\" r:id=\"rId1\"/></sheets>"
    "</workbook>"
)

_STYLES = (
    _XML_DECL
    + f'<styleSheet xmlns="{_MAIN_NS}">'
    '<fonts count="3">'
    '<font><sz val="11"/><name val="Calibri"/></font>'
    '<font><b/><sz val="11"/><name val="Calibri"/></font>'
    '<font><i/><sz val="11"/><color rgb="FF777777"/><name val="Calibri"/></font>'
    "</fonts>"
    '<fills count="2"><fill><patternFill patternType="none"/></fill>'
    '<fill><patternFill patternType="gray125"/></fill></fills>'
    '<borders count="1"><border><left/><right/><top/><bottom/><diagonal/></border></borders>'
    '<cellStyleXfs count="1"><xf numFmtId="0" fontId="0" fillId="0" borderId="0"/></cellStyleXfs>'
    '<cellXfs count="3">'
    '<xf numFmtId="0" fontId="0" fillId="0" borderId="0" xfId="0"/>'
    '<xf numFmtId="0" fontId="1" fillId="0" borderId="0" xfId="0" applyFont="1"/>'
    '<xf numFmtId="0" fontId="2" fillId="0" borderId="0" xfId="0" applyFont="1"/>'
    "</cellXfs>"
    '<cellStyles count="1"><cellStyle name="Normal" xfId="0" builtinId="0"/></cellStyles>'
    "</styleSheet>"
)


def write_xlsx(path: PathLike, quiz: Quiz) -> None:
    """Write the quiz as an XLSX workbook with a single ``Quiz`` sheet.

    The header row is bold, the averages row italic grey, and numeric cells
    are stored as numbers.
    """
    parts = {
        "[Content_Types].xml": _CONTENT_TYPES,
        "_rels/.rels": _ROOT_RELS,
        "xl/workbook.xml": _WORKBOOK,
        "xl/_rels/workbook.xml.rels": _WORKBOOK_RELS,
        "xl/styles.xml": _STYLES,
        "xl/worksheets/sheet1.xml": _sheet_xml(quiz),
    }
    try:
        with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for name, content in parts.items():
                archive.writestr(name, content.encode("utf-8"))
    except OSError as exc:
        raise ExportError(f"save {path}: {exc}") from exc