import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, OperationalError

from classroom_layout.db_models import (
    ClassroomDB,
    ClassroomObjectDB,
    LayoutTemplateDB,
    LayoutTemplateObjectDB,
    StudentAssignmentDB,
    StudentDB,
)
from classroom_layout.errors import ConflictError, InvalidRequestError, NotFoundError
from classroom_layout import schemas

logger = logging.getLogger(__name__)

# a unique or foreign key violation after our own checks passed means another writer got in first
RACE_MARKERS = ("unique", "duplicate key", "foreign key", "locked", "deadlock", "serializ", "could not obtain lock")


def valid_id(entity_id):
    return 0 < entity_id <= schemas.MAX_ID


def get_or_404(db, model, entity_id, label):
    row = db.get(model, entity_id) if valid_id(entity_id) else None
    if row is None:
        raise NotFoundError(label, entity_id)
    return row


def _is_race(exc):
    message = str(exc.orig).lower()
    return any(marker in message for marker in RACE_MARKERS)


@contextmanager
def write_guard(db):
    """Roll back on storage errors; races become ConflictError, bad rows InvalidRequestError."""
    try:
        yield
    except (IntegrityError, OperationalError) as exc:
        db.rollback()
        if _is_race(exc):
            raise ConflictError(f"Concurrent update, retry the operation ({exc.orig})") from exc
        if isinstance(exc, IntegrityError):
            raise InvalidRequestError(f"Rejected by the database ({exc.orig})") from exc
        raise


def commit(db):
    with write_guard(db):
        db.commit()


def _apply_changes(row, changes):
    for field, value in changes.items():
        setattr(row, field, value)


# --- students ---

def create_student(db, payload):
    student = StudentDB(**payload.model_dump())
    db.add(student)
    commit(db)
    db.refresh(student)
    return student


def get_students(db):
    return db.query(StudentDB).order_by(StudentDB.id).all()


def delete_student(db, student_id):
    student = get_or_404(db, StudentDB, student_id, "Student")
    db.delete(student)
    commit(db)
    logger.info("Deleted student %s and its assignments", student_id)


# --- classrooms ---

def create_classroom(db, payload):
    classroom = ClassroomDB(**payload.model_dump())
    db.add(classroom)
    commit(db)
    db.refresh(classroom)
    return classroom


def get_classrooms(db):
    return db.query(ClassroomDB).order_by(ClassroomDB.id).all()


def update_classroom(db, classroom_id, payload):
    classroom = get_or_404(db, ClassroomDB, classroom_id, "Classroom")
    _apply_changes(classroom, payload.changes())
    commit(db)
    db.refresh(classroom)
    return classroom


def delete_classroom(db, classroom_id):
    classroom = get_or_404(db, ClassroomDB, classroom_id, "Classroom")
    # objects and assignments go in the same flush
    db.delete(classroom)
    commit(db)
    logger.info("Deleted classroom %s with its objects and assignments", classroom_id)


# --- classroom objects ---

def create_classroom_object(db, payload):
    get_or_404(db, ClassroomDB, payload.classroom_id, "Classroom")

    obj = ClassroomObjectDB(**payload.model_dump())
    db.add(obj)
    commit(db)
    db.refresh(obj)
    return obj


def update_classroom_object(db, object_id, payload):
    obj = get_or_404(db, ClassroomObjectDB, object_id, "Classroom object")
    _apply_changes(obj, payload.changes())
    commit(db)
    db.refresh(obj)
    return obj


def delete_classroom_object(db, object_id):
    obj = get_or_404(db, ClassroomObjectDB, object_id, "Classroom object")
    db.delete(obj)
    commit(db)


# --- assignments ---

def delete_student_assignment(db, assignment_id):
    assignment = get_or_404(db, StudentAssignmentDB, assignment_id, "Student assignment")
    db.delete(assignment)
    commit(db)


# --- layout templates ---

def create_layout_template(db, payload):
    data = payload.model_dump(exclude={"objects"})
    template = LayoutTemplateDB(**data)

    for obj in payload.objects:
        template.objects.append(LayoutTemplateObjectDB(**obj.model_dump()))

    db.add(template)
    commit(db)
    db.refresh(template)
    return template


def delete_layout_template(db, template_id):
    template = get_or_404(db, LayoutTemplateDB, template_id, "Layout template")
    db.delete(template)
    commit(db)
