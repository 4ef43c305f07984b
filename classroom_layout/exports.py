from io import BytesIO

import pandas as pd
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas
from sqlalchemy.orm import Session

from classroom_layout.db_models import ClassroomDB, ClassroomObjectDB, StudentAssignmentDB, StudentDB
from classroom_layout.store import get_or_404

EXCEL_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MEDIA_TYPE = "application/pdf"

COLUMNS = ["student_name", "student_id", "desk", "position_x", "position_y"]


def seating_rows(db: Session, classroom_id: int):
    """Classroom plus one row per assignment, front-to-back then left-to-right."""
    classroom = get_or_404(db, ClassroomDB, classroom_id, "Classroom")

    allocations = (
        db.query(StudentAssignmentDB, StudentDB, ClassroomObjectDB)
        .join(StudentDB, StudentAssignmentDB.student_id == StudentDB.id)
        .join(ClassroomObjectDB, StudentAssignmentDB.desk_object_id == ClassroomObjectDB.id)
        .filter(StudentAssignmentDB.classroom_id == classroom.id)
        .order_by(ClassroomObjectDB.position_y, ClassroomObjectDB.position_x)
        .all()
    )

    rows = []
    for alloc, student, desk in allocations:
        rows.append({
            "student_name": student.name,
            "student_id": student.student_id,
            "desk": desk.name,
            "position_x": desk.position_x,
            "position_y": desk.position_y,
        })

    return classroom, rows


def export_excel(rows) -> bytes:
    df = pd.DataFrame(rows, columns=COLUMNS)

    buffer = BytesIO()
    df.to_excel(buffer, index=False, sheet_name="Seating")
    return buffer.getvalue()


def export_pdf(classroom: ClassroomDB, rows) -> bytes:
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4

    y = height - 50
    c.setFont("Helvetica-Bold", 14)
    c.drawString(50, y, f"Seating Chart - {classroom.name} ({classroom.teacher_name})")
    y -= 30

    c.setFont("Helvetica", 10)
    c.drawString(50, y, "Student")
    c.drawString(220, y, "Student ID")
    c.drawString(320, y, "Desk")
    c.drawString(450, y, "X")
    c.drawString(500, y, "Y")
    y -= 15

    c.line(50, y, 550, y)
    y -= 15

    for row in rows:
        if y < 60:
            c.showPage()
            c.setFont("Helvetica", 10)
            y = height - 50

        c.drawString(50, y, row["student_name"][:28])
        c.drawString(220, y, row["student_id"] or "-")
        c.drawString(320, y, row["desk"][:20])
        c.drawString(450, y, f"{row['position_x']:g}")
        c.drawString(500, y, f"{row['position_y']:g}")
        y -= 15

    c.save()
    return buffer.getvalue()
