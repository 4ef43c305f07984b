"""Tests for the entity store: creation, partial updates and cascading deletes."""

import pytest
from pydantic import ValidationError
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from classroom_layout import allocator, schemas, store
from classroom_layout.db_models import (
    ClassroomDB,
    ClassroomObjectDB,
    LayoutTemplateObjectDB,
    LayoutType,
    ObjectType,
    StudentAssignmentDB,
)
from classroom_layout.errors import ConflictError, InvalidRequestError, NotFoundError

from conftest import make_classroom, make_desks, make_object, make_students


def _assign(db, classroom_id, student_id, desk_id):
    return allocator.create_student_assignment(
        db,
        schemas.StudentAssignmentCreate(
            classroom_id=classroom_id, student_id=student_id, desk_object_id=desk_id
        ),
    )


# ─── CREATION ────────────────────────────────────────────────────────────────

class TestCreate:
    def test_ids_positive_and_unique(self, db):
        rooms = [make_classroom(db, name=f"Room {i}") for i in range(3)]
        ids = [r.id for r in rooms]
        assert all(i > 0 for i in ids)
        assert len(set(ids)) == 3

    def test_classroom_fields_stored(self, db):
        room = make_classroom(db, description="Second floor", canvas_width=1024.5)
        assert room.description == "Second floor"
        assert room.canvas_width == 1024.5
        assert room.created_at is not None
        assert room.updated_at is not None

    def test_object_defaults(self, db, classroom):
        obj = store.create_classroom_object(
            db,
            schemas.ClassroomObjectCreate(
                classroom_id=classroom.id,
                type="whiteboard",
                name="Board",
                position_x=0,
                position_y=0,
                width=200,
                height=10,
            ),
        )
        assert obj.rotation == 0
        assert obj.is_assignable is False
        assert obj.color is None
        assert obj.type == ObjectType.WHITEBOARD

    def test_object_zero_width_rejected(self, db, classroom):
        with pytest.raises(ValidationError):
            schemas.ClassroomObjectCreate(
                classroom_id=classroom.id,
                type="desk",
                name="Desk",
                position_x=0,
                position_y=0,
                width=0,
                height=10,
            )
        assert db.query(ClassroomObjectDB).count() == 0

    def test_classroom_negative_canvas_rejected(self):
        with pytest.raises(ValidationError):
            schemas.ClassroomCreate(name="R", teacher_name="T", canvas_width=-1, canvas_height=10)

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            schemas.ClassroomCreate(name="", teacher_name="T", canvas_width=1, canvas_height=1)

    def test_object_in_unknown_classroom(self, db):
        with pytest.raises(NotFoundError):
            make_object(db, 999)
        assert db.query(ClassroomObjectDB).count() == 0

    def test_student_duplicates_accepted(self, db):
        a = store.create_student(db, schemas.StudentCreate(name="A", email="a@example.com", student_id="1"))
        b = store.create_student(db, schemas.StudentCreate(name="B", email="a@example.com", student_id="1"))
        assert a.id != b.id
        assert [s.id for s in store.get_students(db)] == [a.id, b.id]

    def test_student_invalid_email_rejected(self):
        with pytest.raises(ValidationError):
            schemas.StudentCreate(name="A", email="not-an-email")

    def test_template_objects_keep_order(self, db):
        template = store.create_layout_template(
            db,
            schemas.LayoutTemplateCreate(
                name="Rows",
                layout_type=LayoutType.TRADITIONAL_ROWS,
                canvas_width=800,
                canvas_height=600,
                created_by="admin",
                objects=[
                    {"type": "desk", "name": name, "position_x": x, "position_y": 0,
                     "width": 50, "height": 40, "is_assignable": True}
                    for x, name in enumerate(["C", "A", "B"])
                ],
            ),
        )
        assert [o.name for o in template.objects] == ["C", "A", "B"]
        assert template.is_public is False


# ─── PARTIAL UPDATES ─────────────────────────────────────────────────────────

class TestUpdate:
    def test_only_supplied_fields_change(self, db):
        room = make_classroom(db, description="Old")
        updated = store.update_classroom(db, room.id, schemas.ClassroomUpdate(name="New name"))
        assert updated.name == "New name"
        assert updated.description == "Old"
        assert updated.teacher_name == "Ms. Rivera"
        assert updated.canvas_width == 800

    def test_explicit_null_clears_description(self, db):
        room = make_classroom(db, description="Old")
        updated = store.update_classroom(db, room.id, schemas.ClassroomUpdate(description=None))
        assert updated.description is None

    def test_null_for_required_field_rejected(self):
        with pytest.raises(ValidationError):
            schemas.ClassroomUpdate(name=None)

    def test_non_positive_dimension_rejected(self):
        with pytest.raises(ValidationError):
            schemas.ClassroomObjectUpdate(width=0)

    def test_update_unknown_classroom(self, db):
        with pytest.raises(NotFoundError):
            store.update_classroom(db, 42, schemas.ClassroomUpdate(name="x"))

    def test_move_object(self, db, classroom):
        obj = make_object(db, classroom.id, color="#ff0000")
        updated = store.update_classroom_object(
            db, obj.id, schemas.ClassroomObjectUpdate(position_x=300, rotation=90)
        )
        assert updated.position_x == 300
        assert updated.rotation == 90
        assert updated.position_y == 20
        assert updated.color == "#ff0000"

    def test_clear_object_color(self, db, classroom):
        obj = make_object(db, classroom.id, color="#ff0000")
        updated = store.update_classroom_object(db, obj.id, schemas.ClassroomObjectUpdate(color=None))
        assert updated.color is None


# ─── CASCADING DELETES ───────────────────────────────────────────────────────

class TestDelete:
    def test_classroom_cascades(self, db, classroom):
        desks = make_desks(db, classroom.id, 2)
        students = make_students(db, 2)
        for student, desk in zip(students, desks):
            _assign(db, classroom.id, student.id, desk.id)

        store.delete_classroom(db, classroom.id)

        assert db.query(ClassroomDB).count() == 0
        assert db.query(ClassroomObjectDB).count() == 0
        assert db.query(StudentAssignmentDB).count() == 0
        # students are not owned by the classroom
        assert len(store.get_students(db)) == 2

    def test_second_delete_is_not_found(self, db, classroom):
        store.delete_classroom(db, classroom.id)
        with pytest.raises(NotFoundError):
            store.delete_classroom(db, classroom.id)

    def test_object_delete_removes_its_assignment(self, db, classroom):
        desks = make_desks(db, classroom.id, 2)
        students = make_students(db, 2)
        _assign(db, classroom.id, students[0].id, desks[0].id)
        kept = _assign(db, classroom.id, students[1].id, desks[1].id)

        store.delete_classroom_object(db, desks[0].id)

        remaining = db.query(StudentAssignmentDB).all()
        assert [a.id for a in remaining] == [kept.id]

    def test_student_delete_removes_assignments(self, db, classroom):
        desk = make_desks(db, classroom.id, 1)[0]
        student = make_students(db, 1)[0]
        _assign(db, classroom.id, student.id, desk.id)

        store.delete_student(db, student.id)

        assert db.query(StudentAssignmentDB).count() == 0
        assert db.query(ClassroomObjectDB).count() == 1

    def test_delete_assignment(self, db, classroom):
        desk = make_desks(db, classroom.id, 1)[0]
        student = make_students(db, 1)[0]
        assignment = _assign(db, classroom.id, student.id, desk.id)

        store.delete_student_assignment(db, assignment.id)
        assert db.query(StudentAssignmentDB).count() == 0

        with pytest.raises(NotFoundError):
            store.delete_student_assignment(db, assignment.id)

    def test_unknown_object(self, db):
        with pytest.raises(NotFoundError):
            store.delete_classroom_object(db, 7)

    def test_template_delete_cascades(self, db):
        template = store.create_layout_template(
            db,
            schemas.LayoutTemplateCreate(
                name="Circle",
                layout_type="circle",
                canvas_width=500,
                canvas_height=500,
                created_by="admin",
                objects=[{"type": "plant", "name": "Fern", "position_x": 1, "position_y": 1,
                          "width": 5, "height": 5}],
            ),
        )
        store.delete_layout_template(db, template.id)
        assert db.query(LayoutTemplateObjectDB).count() == 0


# ─── CONFLICTS ───────────────────────────────────────────────────────────────

class TestConflict:
    def test_two_rows_for_one_desk_is_conflict(self, db, classroom):
        """A racing writer that slips a second row onto a desk loses the commit."""
        desk = make_desks(db, classroom.id, 1)[0]
        students = make_students(db, 2)
        for student in students:
            db.add(StudentAssignmentDB(
                classroom_id=classroom.id, student_id=student.id, desk_object_id=desk.id
            ))

        with pytest.raises(ConflictError):
            store.commit(db)
        assert db.query(StudentAssignmentDB).count() == 0

    def test_null_column_is_invalid_request(self, db, classroom):
        """A NOT NULL failure is a bad row, not a lost race."""
        db.add(ClassroomObjectDB(
            classroom_id=classroom.id, type=ObjectType.DESK, name="Desk",
            position_x=None, position_y=0, width=10, height=10,
        ))

        with pytest.raises(InvalidRequestError):
            store.commit(db)
        assert db.query(ClassroomObjectDB).count() == 0

    def test_other_storage_errors_propagate(self, db):
        with pytest.raises(OperationalError):
            with store.write_guard(db):
                db.execute(text("SELECT * FROM no_such_table"))


# ─── NUMERIC BOUNDS ──────────────────────────────────────────────────────────

class TestBounds:
    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_position_rejected(self, value):
        with pytest.raises(ValidationError):
            schemas.ClassroomObjectCreate(
                classroom_id=1, type="desk", name="D",
                position_x=value, position_y=0, width=1, height=1,
            )

    def test_non_finite_dimension_rejected(self):
        with pytest.raises(ValidationError):
            schemas.ClassroomCreate(name="R", teacher_name="T", canvas_width=float("inf"), canvas_height=1)
        with pytest.raises(ValidationError):
            schemas.ClassroomObjectUpdate(height=float("nan"))

    def test_non_finite_rotation_rejected(self):
        with pytest.raises(ValidationError):
            schemas.ClassroomObjectUpdate(rotation=float("inf"))

    def test_id_past_64_bits_rejected(self):
        with pytest.raises(ValidationError):
            schemas.RandomizeAssignmentsRequest(classroom_id=1, student_ids=[2**63], desk_object_ids=[])
        with pytest.raises(ValidationError):
            schemas.StudentAssignmentCreate(classroom_id=2**64, student_id=1, desk_object_id=1)

    @pytest.mark.parametrize("entity_id", [0, -3, 2**63, 2**70])
    def test_lookup_out_of_range_is_not_found(self, db, entity_id):
        with pytest.raises(NotFoundError):
            store.get_or_404(db, ClassroomDB, entity_id, "Classroom")
        with pytest.raises(NotFoundError):
            store.delete_student(db, entity_id)
