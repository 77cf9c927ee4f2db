import base64
import io
import re

import numpy as np
import pandas as pd

from config import CONFIG
from utils.errors import RosterImportError, ValidationError
from utils.logger import get_logger
from utils.models import (
    ASCENDING,
    DESCENDING,
    EXPORT_COLUMNS,
    ImportRow,
    RosterState,
    StudentRecord,
)

log = get_logger("data")

# Control characters that never show up in pasted CSV text
_BINARY_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_EXCEL_SUFFIXES = (".xlsx", ".xlsm")
_NUMERIC_COLUMNS = ["Total Marks", "Percentage", "Rank"]


# =====================================================
# RECORD ENTRY & VALIDATION
# =====================================================
def _is_blank(value):
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _to_number(value):
    """Number from an input value, or None if it isn't a finite one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
    number = pd.to_numeric(value, errors="coerce")
    if pd.isna(number) or not np.isfinite(number):
        return None
    return float(number)


def compute_percentage(total, max_total):
    return round(total / max_total * 100, 2)


def build_record(name, enrollment_number, marks=None, total=None,
                 use_total_marks=False, settings=CONFIG):
    """
    Validate one manual entry and build its StudentRecord (rank 0).

    In "Use Total Marks" mode `total` is taken as is and scored against
    TOTAL_MARKS_MAX. Otherwise every subject slot must hold a number; the total
    is their sum, scored against slots x MAX_MARKS_PER_SUBJECT.
    Raises ValidationError with the message the page shows.
    """
    if _is_blank(name) or _is_blank(enrollment_number):
        raise ValidationError("Name and Enrollment Number are required.")

    if use_total_marks:
        if _is_blank(total):
            raise ValidationError("Total Marks are required.")
        total_marks = _to_number(total)
        if total_marks is None:
            raise ValidationError("Total Marks must be a number.")
        subject_marks = ()
        percentage = compute_percentage(total_marks, settings.TOTAL_MARKS_MAX)
    else:
        slots = list(marks or [])
        slots += [None] * (settings.SUBJECT_COUNT - len(slots))
        if any(_is_blank(m) for m in slots):
            raise ValidationError("Please fill in all the marks.")
        subject_marks = tuple(_to_number(m) for m in slots)
        if any(m is None for m in subject_marks):
            raise ValidationError("Marks must be numbers.")
        total_marks = sum(subject_marks)
        percentage = compute_percentage(
            total_marks, len(subject_marks) * settings.MAX_MARKS_PER_SUBJECT
        )

    return StudentRecord(
        name=str(name).strip(),
        enrollment_number=str(enrollment_number).strip(),
        marks=subject_marks,
        total_marks=total_marks,
        percentage=percentage,
        rank=0,
    )


def add_record(state, name, enrollment_number, marks=None, total=None,
               use_total_marks=False, settings=CONFIG):
    """Return a new RosterState with the entry appended. `state` is untouched on error."""
    record = build_record(name, enrollment_number, marks=marks, total=total,
                          use_total_marks=use_total_marks, settings=settings)
    log.info("Added %s (%s): total=%s", record.name, record.enrollment_number, record.total_marks)
    return state.with_students([*state.students, record])


# =====================================================
# RANKING
# =====================================================
def toggle_sort_order(sort_order):
    return ASCENDING if sort_order == DESCENDING else DESCENDING


def rank_students(students, sort_order=DESCENDING):
    """
    Order by Total Marks and number the rows 1..N.

    The sort is stable, so equal totals keep their input order and still get
    distinct ranks.
    """
    if sort_order not in (ASCENDING, DESCENDING):
        raise ValueError(f"Unknown sort order: {sort_order!r}")
    students = list(students)
    if not students:
        return []

    totals = pd.Series([s.total_marks for s in students], dtype=float)
    order = totals.sort_values(ascending=(sort_order == ASCENDING), kind="stable").index
    ranks = np.arange(1, len(order) + 1)
    return [
        students[i].model_copy(update={"rank": int(rank)})
        for i, rank in zip(order, ranks)
    ]


def recompute(state):
    """Re-rank the roster under its own sort order."""
    if not state.students:
        return state
    ranked = rank_students(state.students, state.sort_order)
    log.info("Recomputed ranks for %d students (%s)", len(ranked), state.sort_order)
    return state.with_students(ranked)


# =====================================================
# EXPORT
# =====================================================
def format_number(value):
    """400.0 -> '400', 80.25 -> '80.25'."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return str(number)


def roster_frame(students):
    """DataFrame with the five export columns, in roster order."""
    rows = [
        {
            "Name": s.name,
            "Enrollment Number": s.enrollment_number,
            "Total Marks": s.total_marks,
            "Percentage": s.percentage,
            "Rank": s.rank,
        }
        for s in students
    ]
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def export_csv_text(students):
    """
    CSV text of the roster, or None if there is nothing to export.

    Fields are joined as is. A comma inside a name or enrollment number
    breaks that row.
    """
    students = list(students)
    if not students:
        return None
    lines = [",".join(EXPORT_COLUMNS)]
    for s in students:
        lines.append(",".join([
            s.name,
            s.enrollment_number,
            format_number(s.total_marks),
            format_number(s.percentage),
            str(s.rank),
        ]))
    log.info("Exported %d rows to CSV", len(students))
    return "\n".join(lines)


def export_excel_frame(students):
    """Frame for the Excel download, or None if there is nothing to export."""
    students = list(students)
    if not students:
        return None
    df = roster_frame(students)
    # Keep whole numbers whole in the sheet
    df["Total Marks"] = df["Total Marks"].map(lambda v: int(v) if float(v).is_integer() else v)
    return df


# =====================================================
# IMPORT
# =====================================================
def import_frame(df):
    """Map a parsed table onto StudentRecords. Unknown columns are ignored."""
    if not set(df.columns) & set(EXPORT_COLUMNS):
        raise RosterImportError("Invalid CSV format. Please use a valid CSV file.")

    # Cells that aren't finite numbers become 0
    df = df.copy()
    numeric = [c for c in _NUMERIC_COLUMNS if c in df.columns]
    if numeric:
        values = df[numeric].apply(pd.to_numeric, errors="coerce")
        df[numeric] = values.replace([np.inf, -np.inf], np.nan).fillna(0)
    if "Rank" in df.columns:
        df["Rank"] = df["Rank"].astype(int)

    rows = df.to_dict("records")
    return [ImportRow.model_validate(row).to_record() for row in rows]


def import_csv_text(text):
    """
    Parse pasted CSV text (header row required) into StudentRecords.

    Imported numbers are trusted as they are; nothing is re-derived.
    Raises RosterImportError if the text can't be read as a table.
    """
    if _is_blank(text):
        raise RosterImportError("No CSV data to import.")
    if _BINARY_CHARS.search(text):
        raise RosterImportError("Failed to import CSV data. Please check the file format.")

    try:
        df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as exc:
        raise RosterImportError(
            "Failed to import CSV data. Please check the file format."
        ) from exc

    records = import_frame(df)
    log.info("Imported %d rows from CSV text", len(records))
    return records


def import_uploaded_file(contents, filename):
    """
    Read a dcc.Upload payload. Workbooks use their first sheet; anything else
    is decoded as UTF-8 CSV text.
    """
    try:
        _, content_string = contents.split(",", 1)
        decoded = base64.b64decode(content_string)
    except (AttributeError, ValueError) as exc:
        raise RosterImportError("Failed to read the uploaded file.") from exc

    if (filename or "").lower().endswith(_EXCEL_SUFFIXES):
        try:
            df = pd.read_excel(io.BytesIO(decoded), sheet_name=0, dtype=str, keep_default_na=False)
        except Exception as exc:
            raise RosterImportError(
                "Failed to import the workbook. Please check the file format."
            ) from exc
        records = import_frame(df)
        log.info("Imported %d rows from %s", len(records), filename)
        return records

    try:
        text = decoded.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise RosterImportError("Failed to import CSV data. Please check the file format.") from exc
    return import_csv_text(text)


def import_text(state, text):
    """Replace the roster with the pasted rows. `state` is untouched on error."""
    return state.with_students(import_csv_text(text))


def new_state(sort_order=DESCENDING):
    return RosterState(sort_order=sort_order)
