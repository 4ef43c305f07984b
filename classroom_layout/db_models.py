import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from classroom_layout.database import Base


class ObjectType(str, enum.Enum):
    DESK = "desk"
    TEACHER_DESK = "teacher_desk"
    WHITEBOARD = "whiteboard"
    PROJECTOR = "projector"
    BOOKSHELF = "bookshelf"
    CABINET = "cabinet"
    PLANT = "plant"
    TRASH_CAN = "trash_can"


class LayoutType(str, enum.Enum):
    TRADITIONAL_ROWS = "traditional_rows"
    U_SHAPE = "u_shape"
    GROUPED_TABLES = "grouped_tables"
    CIRCLE = "circle"
    HORSESHOE = "horseshoe"
    CUSTOM = "custom"


def _utcnow():
    return datetime.now(timezone.utc)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


object_type_column = Enum(ObjectType, name="classroom_object_type", values_callable=_enum_values)
layout_type_column = Enum(LayoutType, name="layout_type", values_callable=_enum_values)


class StudentDB(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key = True, index = True)
    name = Column(String, nullable = False)
    email = Column(String, nullable = True)
    # external identifier from the school roster, duplicates allowed
    student_id = Column(String, nullable = True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    assignments = relationship(
        "StudentAssignmentDB", back_populates="student", cascade="all, delete"
    )


class ClassroomDB(Base):
    __tablename__ = "classrooms"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    teacher_name = Column(String, nullable=False)
    canvas_width = Column(Float, nullable=False)
    canvas_height = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    objects = relationship(
        "ClassroomObjectDB",
        back_populates="classroom",
        cascade="all, delete",
        order_by="ClassroomObjectDB.id",
    )
    assignments = relationship(
        "StudentAssignmentDB",
        back_populates="classroom",
        cascade="all, delete",
        order_by="StudentAssignmentDB.id",
    )


class ClassroomObjectDB(Base):
    __tablename__ = "classroom_objects"

    id = Column(Integer, primary_key=True, index=True)
    classroom_id = Column(
        Integer, ForeignKey("classrooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type = Column(object_type_column, nullable=False)
    name = Column(String, nullable=False)
    position_x = Column(Float, nullable=False)
    position_y = Column(Float, nullable=False)
    rotation = Column(Float, nullable=False, default=0)
    width = Column(Float, nullable=False)
    height = Column(Float, nullable=False)
    color = Column(String, nullable=True)
    is_assignable = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    classroom = relationship("ClassroomDB", back_populates="objects")
    assignments = relationship(
        "StudentAssignmentDB", back_populates="desk_object", cascade="all, delete"
    )


class StudentAssignmentDB(Base):
    __tablename__ = "student_assignments"
    __table_args__ = (
        UniqueConstraint("desk_object_id", name="uq_assignment_desk"),
        UniqueConstraint("classroom_id", "student_id", name="uq_assignment_classroom_student"),
    )

    id = Column(Integer, primary_key=True, index=True)

    classroom_id = Column(
        Integer, ForeignKey("classrooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    desk_object_id = Column(
        Integer, ForeignKey("classroom_objects.id", ondelete="CASCADE"), nullable=False
    )
    assigned_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    classroom = relationship("ClassroomDB", back_populates="assignments")
    student = relationship("StudentDB", back_populates="assignments")
    desk_object = relationship("ClassroomObjectDB", back_populates="assignments")


class LayoutTemplateDB(Base):
    __tablename__ = "layout_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    layout_type = Column(layout_type_column, nullable=False)
    canvas_width = Column(Float, nullable=False)
    canvas_height = Column(Float, nullable=False)
    is_public = Column(Boolean, nullable=False, default=False)
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # id order is the order the objects were defined in
    objects = relationship(
        "LayoutTemplateObjectDB",
        back_populates="template",
        cascade="all, delete",
        order_by="LayoutTemplateObjectDB.id",
    )


class LayoutTemplateObjectDB(Base):
    __tablename__ = "layout_template_objects"

    id = Column(Integer, primary_key=True, index=True)
    template_id = Column(
        Integer, ForeignKey("layout_templates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type = Column(object_type_column, nullable=False)
    name = Column(String, nullable=False)
    position_x = Column(Float, nullable=False)
    position_y = Column(Float, nullable=False)
    rotation = Column(Float, nullable=False, default=0)
    width = Column(Float, nullable=False)
    height = Column(Float, nullable=False)
    color = Column(String, nullable=True)
    is_assignable = Column(Boolean, nullable=False, default=False)

    template = relationship("LayoutTemplateDB", back_populates="objects")
