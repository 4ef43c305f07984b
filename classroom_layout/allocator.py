import logging
import random

from sqlalchemy import or_

from classroom_layout.db_models import (
    ClassroomDB,
    ClassroomObjectDB,
    StudentAssignmentDB,
    StudentDB,
)
from classroom_layout.errors import InvalidRequestError, NotFoundError
from classroom_layout.store import get_or_404, write_guard

logger = logging.getLogger(__name__)


def allocate_students(student_ids, desk_ids, rng=None):
    """Shuffle both lists and pair them; the longer list loses a random tail."""
    rng = rng or random
    students = list(student_ids)
    desks = list(desk_ids)
    rng.shuffle(students)
    rng.shuffle(desks)

    k = min(len(students), len(desks))
    return list(zip(students[:k], desks[:k]))


def _lock_classroom(db, classroom_id):
    # row lock serializes assignment writes per classroom where the backend supports it
    classroom = (
        db.query(ClassroomDB)
        .filter(ClassroomDB.id == classroom_id)
        .with_for_update()
        .first()
    )
    if classroom is None:
        raise NotFoundError("Classroom", classroom_id)
    return classroom


def _find_duplicates(ids):
    seen = set()
    duplicates = set()
    for i in ids:
        if i in seen:
            duplicates.add(i)
        seen.add(i)
    return sorted(duplicates)


def _check_desk(desk, classroom_id):
    if desk.classroom_id != classroom_id:
        raise InvalidRequestError(
            f"Desk {desk.id} belongs to classroom {desk.classroom_id}, not {classroom_id}"
        )
    if not desk.is_assignable:
        raise InvalidRequestError(f"Object {desk.id} ({desk.name}) is not assignable")


def _clear_assignments(db, classroom_id, student_ids, desk_ids):
    return (
        db.query(StudentAssignmentDB)
        .filter(StudentAssignmentDB.classroom_id == classroom_id)
        .filter(
            or_(
                StudentAssignmentDB.desk_object_id.in_(desk_ids),
                StudentAssignmentDB.student_id.in_(student_ids),
            )
        )
        .delete(synchronize_session="fetch")
    )


def create_student_assignment(db, payload):
    """Seat one student at one desk, replacing whatever held either of them."""
    classroom = _lock_classroom(db, payload.classroom_id)
    get_or_404(db, StudentDB, payload.student_id, "Student")
    desk = get_or_404(db, ClassroomObjectDB, payload.desk_object_id, "Classroom object")
    _check_desk(desk, classroom.id)

    # a locked SQLite file fails on the delete, before commit is reached
    with write_guard(db):
        replaced = _clear_assignments(db, classroom.id, [payload.student_id], [desk.id])
        assignment = StudentAssignmentDB(
            classroom_id=classroom.id,
            student_id=payload.student_id,
            desk_object_id=desk.id,
        )
        db.add(assignment)
        db.commit()
    db.refresh(assignment)

    if replaced:
        logger.info("Assignment %s replaced %d earlier assignment(s)", assignment.id, replaced)
    return assignment


def randomize_assignments(db, payload, rng=None):
    classroom = _lock_classroom(db, payload.classroom_id)
    student_ids = payload.student_ids
    desk_ids = payload.desk_object_ids

    duplicates = _find_duplicates(student_ids)
    if duplicates:
        raise InvalidRequestError(f"Duplicate student ids: {duplicates}")
    duplicates = _find_duplicates(desk_ids)
    if duplicates:
        raise InvalidRequestError(f"Duplicate desk ids: {duplicates}")

    found_students = {
        row.id for row in db.query(StudentDB.id).filter(StudentDB.id.in_(student_ids)).all()
    }
    missing = sorted(set(student_ids) - found_students)
    if missing:
        raise InvalidRequestError(f"Unknown student ids: {missing}")

    desks = db.query(ClassroomObjectDB).filter(ClassroomObjectDB.id.in_(desk_ids)).all()
    missing = sorted(set(desk_ids) - {desk.id for desk in desks})
    if missing:
        raise InvalidRequestError(f"Unknown desk ids: {missing}")
    for desk in desks:
        _check_desk(desk, classroom.id)

    pairs = allocate_students(student_ids, desk_ids, rng)

    # validation is done; old seats go and new ones land in one transaction
    with write_guard(db):
        replaced = _clear_assignments(db, classroom.id, student_ids, desk_ids)
        created = [
            StudentAssignmentDB(classroom_id=classroom.id, student_id=student_id, desk_object_id=desk_id)
            for student_id, desk_id in pairs
        ]
        db.add_all(created)
        db.commit()

    for assignment in created:
        db.refresh(assignment)

    logger.info(
        "Randomized classroom %s: %d seated, %d students unseated, %d desks free, %d replaced",
        classroom.id,
        len(created),
        len(student_ids) - len(created),
        len(desk_ids) - len(created),
        replaced,
    )
    return created
