from sqlalchemy.orm import selectinload

from classroom_layout.db_models import ClassroomDB, LayoutTemplateDB, StudentAssignmentDB
from classroom_layout.errors import NotFoundError
from classroom_layout.store import valid_id


def get_classroom(db, classroom_id):
    """Classroom with its objects and its assignments, each assignment
    joined to its student and desk."""
    if not valid_id(classroom_id):
        raise NotFoundError("Classroom", classroom_id)
    classroom = (
        db.query(ClassroomDB)
        .options(
            selectinload(ClassroomDB.objects),
            selectinload(ClassroomDB.assignments).selectinload(StudentAssignmentDB.student),
            selectinload(ClassroomDB.assignments).selectinload(StudentAssignmentDB.desk_object),
        )
        .filter(ClassroomDB.id == classroom_id)
        .first()
    )
    if classroom is None:
        raise NotFoundError("Classroom", classroom_id)
    return classroom


def get_layout_templates(db):
    return (
        db.query(LayoutTemplateDB)
        .options(selectinload(LayoutTemplateDB.objects))
        .order_by(LayoutTemplateDB.id)
        .all()
    )


def get_layout_template(db, template_id):
    if not valid_id(template_id):
        raise NotFoundError("Layout template", template_id)
    template = (
        db.query(LayoutTemplateDB)
        .options(selectinload(LayoutTemplateDB.objects))
        .filter(LayoutTemplateDB.id == template_id)
        .first()
    )
    if template is None:
        raise NotFoundError("Layout template", template_id)
    return template
