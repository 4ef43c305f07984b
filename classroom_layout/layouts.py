import logging

from classroom_layout.db_models import ClassroomDB, ClassroomObjectDB, LayoutTemplateDB
from classroom_layout.store import commit, get_or_404

logger = logging.getLogger(__name__)

# copied verbatim from a template object onto the new classroom object
TEMPLATE_FIELDS = (
    "type",
    "name",
    "position_x",
    "position_y",
    "rotation",
    "width",
    "height",
    "color",
    "is_assignable",
)


def generate_layout(template, classroom_id):
    objects = []

    for template_object in template.objects:
        fields = {field: getattr(template_object, field) for field in TEMPLATE_FIELDS}
        objects.append(ClassroomObjectDB(classroom_id=classroom_id, **fields))

    return objects


def load_layout_template(db, template_id, classroom_id):
    """Add a template's objects to a classroom. Existing objects are kept."""
    template = get_or_404(db, LayoutTemplateDB, template_id, "Layout template")
    classroom = get_or_404(db, ClassroomDB, classroom_id, "Classroom")

    objects = generate_layout(template, classroom.id)
    db.add_all(objects)
    commit(db)

    for obj in objects:
        db.refresh(obj)

    logger.info(
        "Loaded template %s (%s) into classroom %s: %d objects",
        template.id, template.name, classroom.id, len(objects),
    )
    return objects
