import logging

import pandas as pd
from pydantic import ValidationError
from sqlalchemy.orm import Session

from classroom_layout.db_models import StudentDB
from classroom_layout.errors import InvalidRequestError
from classroom_layout.schemas import StudentCreate
from classroom_layout.store import commit

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"name"}


def _cell(value):
    if pd.isna(value):
        return None
    # roster ids typed as numbers come back as 1001.0
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def student_import_excel(source):
    """Read students from an Excel sheet.

    ``name`` is required, ``email`` and ``student_id`` are optional columns.
    Returns ``(students, skipped)`` where skipped counts rows without a name.
    """
    try:
        df = pd.read_excel(source)
    except Exception as e:
        raise InvalidRequestError(f"Excel read failed: {e}") from e

    df.columns = [str(c).strip().lower() for c in df.columns]
    if not REQUIRED_COLUMNS.issubset(df.columns):
        missing = sorted(REQUIRED_COLUMNS - set(df.columns))
        raise InvalidRequestError(f"Missing columns: {missing}")

    students = []
    skipped = 0

    for index, row in df.iterrows():
        name = _cell(row["name"])
        if name is None:
            skipped += 1
            continue

        try:
            student = StudentCreate(
                name=name,
                email=_cell(row.get("email")),
                student_id=_cell(row.get("student_id")),
            )
        except ValidationError as e:
            # +2: header row and 1-based spreadsheet rows
            raise InvalidRequestError(f"Row {index + 2}: {e.errors()[0]['msg']}") from e

        students.append(student)

    return students, skipped


def import_students(db: Session, source):
    students, skipped = student_import_excel(source)

    db.add_all(StudentDB(**s.model_dump()) for s in students)
    commit(db)

    logger.info("Imported %d students, skipped %d rows without a name", len(students), skipped)
    return {"inserted": len(students), "skipped": skipped}
