"""
Ingestion Service - turns the student data CSV into store records.

CSV layout (one row per student/subject pair):

    id,name,email,intake,programme,cgpa,credits,subject_code,subject_name,grade,status

- Student columns repeat on every row for that student; the last row's
  values win and the student keeps the position of its first row.
- A row with an empty subject_code adds a student without a subject.
- credits, the subject columns, grade and status are optional. Blank
  credits become 0 and blank status becomes "in-progress". Credits that
  are not a whole non-negative number (12.9, abc, -3) fail the file, as a
  bad cgpa does.

Any problem with the file surfaces as IngestionError. RecordStore.seed()
catches it and falls back to its fixed seed set.
"""

import os
from functools import partial
from typing import List, Tuple

import pandas as pd
from pydantic import ValidationError

from app.schemas import StudentCreate, SubjectCreate
from app.logging_config import get_logger, log_with_context

logger = get_logger("ingest")

STUDENT_DATA_PATH = os.getenv(
    "STUDENT_DATA_PATH",
    os.path.join(
        os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))),
        "data", "students.csv"
    )
)

REQUIRED_COLUMNS = ["id", "name", "email", "intake", "programme", "cgpa"]
OPTIONAL_COLUMNS = ["credits", "subject_code", "subject_name", "grade", "status"]
DEFAULT_SUBJECT_STATUS = "in-progress"


class IngestionError(Exception):
    """The student data source could not be read or is malformed."""


def read_student_frame(path: str) -> pd.DataFrame:
    """
    Read the CSV as text columns with surrounding whitespace stripped.
    Missing optional columns are added as blanks.
    """
    if not os.path.exists(path):
        raise IngestionError("Student data file not found: {}".format(path))

    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as e:
        raise IngestionError("Unreadable student data file {}: {}".format(path, e)) from e

    df.columns = [str(col).strip().lower() for col in df.columns]
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise IngestionError("Missing required columns: {}".format(", ".join(missing)))

    for col in OPTIONAL_COLUMNS:
        if col not in df.columns:
            df[col] = ""

    df = df[REQUIRED_COLUMNS + OPTIONAL_COLUMNS].copy()
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()
    # Drop fully blank lines and rows without a key
    return df[df["id"] != ""].reset_index(drop=True)


def parse_student_csv(path: str = STUDENT_DATA_PATH) -> Tuple[List[StudentCreate], List[SubjectCreate]]:
    """
    Parse the student data CSV.

    Returns:
        (students, subjects) in file order, ready for RecordStore.load_records()

    Raises:
        IngestionError: missing/unreadable file, missing columns, no rows,
            or a row that fails validation
    """
    df = read_student_frame(path)
    if df.empty:
        raise IngestionError("No student rows in {}".format(path))

    # dict keeps first-seen order while later rows overwrite values
    students = {}
    subjects = []
    for line_no, row in enumerate(df.to_dict(orient="records"), start=2):
        try:
            students[row["id"]] = StudentCreate(
                id=row["id"],
                name=row["name"],
                email=row["email"],
                intake=row["intake"],
                programme=row["programme"],
                cgpa=row["cgpa"],
                # Blank means 0; anything else must be a whole, non-negative number
                credits=row["credits"] or 0,
            )
            if row["subject_code"]:
                subjects.append(SubjectCreate(
                    code=row["subject_code"],
                    name=row["subject_name"] or row["subject_code"],
                    grade=row["grade"] or None,
                    status=row["status"] or DEFAULT_SUBJECT_STATUS,
                    student_id=row["id"],
                ))
        except ValidationError as e:
            raise IngestionError("Invalid record on line {}: {}".format(line_no, e)) from e

    log_with_context(logger, "INFO",
        "Parsed student data file",
        extra_data={"path": path, "rows": len(df), "students": len(students), "subjects": len(subjects)})
    return list(students.values()), subjects


def seed_store(store, path: str = None) -> bool:
    """
    Seed `store` from the CSV at `path` (default STUDENT_DATA_PATH).
    Returns False when the fallback seed set was used instead.
    """
    return store.seed(partial(parse_student_csv, path or STUDENT_DATA_PATH))
