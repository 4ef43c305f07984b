from datetime import datetime
from typing import Annotated, ClassVar, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from classroom_layout.db_models import LayoutType, ObjectType

# largest id a signed 64-bit INTEGER column holds
MAX_ID = 2**63 - 1

NonEmptyStr = Annotated[str, Field(min_length=1)]
RowId = Annotated[int, Field(ge=1, le=MAX_ID)]
Coordinate = Annotated[float, Field(allow_inf_nan=False)]
Dimension = Annotated[float, Field(gt=0, allow_inf_nan=False)]


class PatchModel(BaseModel):
    """Partial update body.

    Only fields the client actually sent are applied (``model_fields_set``).
    Fields listed in ``nullable_fields`` may be sent as null to clear them,
    every other field rejects an explicit null.
    """

    nullable_fields: ClassVar[tuple] = ()

    @model_validator(mode="after")
    def reject_null_for_required(self):
        for field in self.model_fields_set:
            if field not in self.nullable_fields and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self

    def changes(self):
        return self.model_dump(exclude_unset=True)


# --- students ---

class StudentCreate(BaseModel):
    name: NonEmptyStr
    email: Optional[EmailStr] = None
    student_id: Optional[str] = None


class StudentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: Optional[str]
    student_id: Optional[str]
    created_at: datetime


class StudentImportResult(BaseModel):
    inserted: int
    skipped: int


# --- classrooms ---

class ClassroomCreate(BaseModel):
    name: NonEmptyStr
    description: Optional[str] = None
    teacher_name: NonEmptyStr
    canvas_width: Dimension
    canvas_height: Dimension


class ClassroomUpdate(PatchModel):
    nullable_fields: ClassVar[tuple] = ("description",)

    name: Optional[NonEmptyStr] = None
    description: Optional[str] = None
    teacher_name: Optional[NonEmptyStr] = None
    canvas_width: Optional[Dimension] = None
    canvas_height: Optional[Dimension] = None


class ClassroomOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str]
    teacher_name: str
    canvas_width: float
    canvas_height: float
    created_at: datetime
    updated_at: datetime


# --- classroom objects ---

class ObjectGeometry(BaseModel):
    type: ObjectType
    name: NonEmptyStr
    position_x: Coordinate
    position_y: Coordinate
    rotation: Coordinate = 0
    width: Dimension
    height: Dimension
    color: Optional[str] = None
    is_assignable: bool = False


class ClassroomObjectCreate(ObjectGeometry):
    classroom_id: RowId


class ClassroomObjectUpdate(PatchModel):
    nullable_fields: ClassVar[tuple] = ("color",)

    position_x: Optional[Coordinate] = None
    position_y: Optional[Coordinate] = None
    rotation: Optional[Coordinate] = None
    width: Optional[Dimension] = None
    height: Optional[Dimension] = None
    color: Optional[str] = None
    name: Optional[NonEmptyStr] = None


class ClassroomObjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    classroom_id: int
    type: ObjectType
    name: str
    position_x: float
    position_y: float
    rotation: float
    width: float
    height: float
    color: Optional[str]
    is_assignable: bool
    created_at: datetime


# --- assignments ---

class StudentAssignmentCreate(BaseModel):
    classroom_id: RowId
    student_id: RowId
    desk_object_id: RowId


class RandomizeAssignmentsRequest(BaseModel):
    classroom_id: RowId
    student_ids: List[RowId]
    desk_object_ids: List[RowId]


class StudentAssignmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    classroom_id: int
    student_id: int
    desk_object_id: int
    assigned_at: datetime


class StudentAssignmentDetailOut(StudentAssignmentOut):
    student: StudentOut
    desk_object: ClassroomObjectOut


class ClassroomDetailOut(ClassroomOut):
    objects: List[ClassroomObjectOut]
    assignments: List[StudentAssignmentDetailOut]


# --- layout templates ---

class LayoutTemplateObjectCreate(ObjectGeometry):
    pass


class LayoutTemplateCreate(BaseModel):
    name: NonEmptyStr
    description: Optional[str] = None
    layout_type: LayoutType
    canvas_width: Dimension
    canvas_height: Dimension
    is_public: bool = False
    created_by: NonEmptyStr
    objects: List[LayoutTemplateObjectCreate] = []


class LayoutTemplateObjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    template_id: int
    type: ObjectType
    name: str
    position_x: float
    position_y: float
    rotation: float
    width: float
    height: float
    color: Optional[str]
    is_assignable: bool


class LayoutTemplateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str]
    layout_type: LayoutType
    canvas_width: float
    canvas_height: float
    is_public: bool
    created_by: str
    created_at: datetime
    objects: List[LayoutTemplateObjectOut]


class LoadLayoutTemplateRequest(BaseModel):
    template_id: RowId
    classroom_id: RowId
