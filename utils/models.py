# utils/models.py
import math
from typing import List, Literal, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

ASCENDING = "asc"
DESCENDING = "desc"
SortOrder = Literal["asc", "desc"]

# Column vocabulary shared by the table, CSV export and import
EXPORT_COLUMNS = ["Name", "Enrollment Number", "Total Marks", "Percentage", "Rank"]


class StudentRecord(BaseModel):
    """One row of the roster. Aliases are the export column names."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(alias="Name")
    enrollment_number: str = Field(alias="Enrollment Number")
    marks: Tuple[float, ...] = Field(default=(), alias="Marks")
    total_marks: float = Field(alias="Total Marks")
    percentage: float = Field(alias="Percentage")
    rank: int = Field(default=0, alias="Rank")

    def to_row(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class ImportRow(BaseModel):
    """A row read from pasted or uploaded tabular data.

    Every field is optional: text defaults to "" and numbers to 0. Numeric
    cells arrive already coerced by data_processing.import_frame.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(default="", alias="Name")
    enrollment_number: str = Field(default="", alias="Enrollment Number")
    total_marks: float = Field(default=0, alias="Total Marks")
    percentage: float = Field(default=0, alias="Percentage")
    rank: int = Field(default=0, alias="Rank")

    @field_validator("name", "enrollment_number", mode="before")
    @classmethod
    def _text(cls, value):
        if value is None or (isinstance(value, float) and math.isnan(value)):
            return ""
        return str(value)

    def to_record(self) -> StudentRecord:
        return StudentRecord(
            name=self.name,
            enrollment_number=self.enrollment_number,
            marks=(),
            total_marks=self.total_marks,
            percentage=self.percentage,
            rank=self.rank,
        )


class RosterState(BaseModel):
    """Everything the page owns. Replaced, never edited in place."""

    model_config = ConfigDict(frozen=True)

    students: Tuple[StudentRecord, ...] = ()
    sort_order: SortOrder = DESCENDING

    def with_students(self, students) -> "RosterState":
        return self.model_copy(update={"students": tuple(students)})


class Notice(BaseModel):
    """A user-facing message (toast or alert)."""

    title: str
    message: str
    level: Literal["success", "danger", "info", "warning"] = "info"


def records_from_rows(rows) -> List[StudentRecord]:
    """Rebuild records from `dcc.Store` data (list of aliased dicts)."""
    return [StudentRecord.model_validate(row) for row in rows or []]
