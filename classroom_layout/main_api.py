import logging
import math
from datetime import datetime, timezone
from io import BytesIO
from typing import Annotated, List

from fastapi import Depends, FastAPI, File, Path, Request, Response, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from classroom_layout import allocator, exports, layouts, queries, schemas, store
from classroom_layout.config import CORS_ALLOW_CREDENTIALS, CORS_ORIGINS
from classroom_layout.database import Base, SessionLocal, engine
from classroom_layout.errors import LayoutError
from classroom_layout.student_import import import_students

logger = logging.getLogger(__name__)

RowIdPath = Annotated[int, Path(ge=1, le=schemas.MAX_ID)]

app = FastAPI(title = "Classroom Layout API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

Base.metadata.create_all(bind = engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@app.exception_handler(LayoutError)
async def layout_error_handler(request: Request, exc: LayoutError):
    logger.warning("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def _json_float(value):
    return value if math.isfinite(value) else str(value)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # rejected NaN or Infinity input is echoed back as a string
    detail = jsonable_encoder(exc.errors(), custom_encoder={float: _json_float})
    return JSONResponse(status_code=422, content={"detail": detail})


@app.get("/")
def root():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


# --- students ---

@app.post("/students", response_model=schemas.StudentOut, status_code=201)
def create_student(payload: schemas.StudentCreate, db: Session = Depends(get_db)):
    return store.create_student(db, payload)


@app.get("/students", response_model=List[schemas.StudentOut])
def get_students(db: Session = Depends(get_db)):
    return store.get_students(db)


@app.post("/students/import", response_model=schemas.StudentImportResult)
def import_students_from_excel(file: UploadFile = File(...), db: Session = Depends(get_db)):
    return import_students(db, BytesIO(file.file.read()))


@app.delete("/students/{student_id}", status_code=204)
def delete_student(student_id: RowIdPath, db: Session = Depends(get_db)):
    store.delete_student(db, student_id)


# --- classrooms ---

@app.post("/classrooms", response_model=schemas.ClassroomOut, status_code=201)
def create_classroom(payload: schemas.ClassroomCreate, db: Session = Depends(get_db)):
    return store.create_classroom(db, payload)


@app.get("/classrooms", response_model=List[schemas.ClassroomOut])
def get_classrooms(db: Session = Depends(get_db)):
    return store.get_classrooms(db)


@app.get("/classrooms/{classroom_id}", response_model=schemas.ClassroomDetailOut)
def get_classroom(classroom_id: RowIdPath, db: Session = Depends(get_db)):
    return queries.get_classroom(db, classroom_id)


@app.patch("/classrooms/{classroom_id}", response_model=schemas.ClassroomOut)
def update_classroom(
    classroom_id: RowIdPath, payload: schemas.ClassroomUpdate, db: Session = Depends(get_db)
):
    return store.update_classroom(db, classroom_id, payload)


@app.delete("/classrooms/{classroom_id}", status_code=204)
def delete_classroom(classroom_id: RowIdPath, db: Session = Depends(get_db)):
    store.delete_classroom(db, classroom_id)


@app.get("/classrooms/{classroom_id}/export/excel")
def export_classroom_excel(classroom_id: RowIdPath, db: Session = Depends(get_db)):
    classroom, rows = exports.seating_rows(db, classroom_id)
    return Response(
        content=exports.export_excel(rows),
        media_type=exports.EXCEL_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="seating_{classroom.id}.xlsx"'},
    )


@app.get("/classrooms/{classroom_id}/export/pdf")
def export_classroom_pdf(classroom_id: RowIdPath, db: Session = Depends(get_db)):
    classroom, rows = exports.seating_rows(db, classroom_id)
    return Response(
        content=exports.export_pdf(classroom, rows),
        media_type=exports.PDF_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="seating_{classroom.id}.pdf"'},
    )


# --- classroom objects ---

@app.post("/classroom-objects", response_model=schemas.ClassroomObjectOut, status_code=201)
def create_classroom_object(payload: schemas.ClassroomObjectCreate, db: Session = Depends(get_db)):
    return store.create_classroom_object(db, payload)


@app.patch("/classroom-objects/{object_id}", response_model=schemas.ClassroomObjectOut)
def update_classroom_object(
    object_id: RowIdPath, payload: schemas.ClassroomObjectUpdate, db: Session = Depends(get_db)
):
    return store.update_classroom_object(db, object_id, payload)


@app.delete("/classroom-objects/{object_id}", status_code=204)
def delete_classroom_object(object_id: RowIdPath, db: Session = Depends(get_db)):
    store.delete_classroom_object(db, object_id)


# --- assignments ---

@app.post("/assignments", response_model=schemas.StudentAssignmentOut, status_code=201)
def create_student_assignment(payload: schemas.StudentAssignmentCreate, db: Session = Depends(get_db)):
    return allocator.create_student_assignment(db, payload)


@app.post("/assignments/randomize", response_model=List[schemas.StudentAssignmentOut])
def randomize_assignments(payload: schemas.RandomizeAssignmentsRequest, db: Session = Depends(get_db)):
    return allocator.randomize_assignments(db, payload)


@app.delete("/assignments/{assignment_id}", status_code=204)
def delete_student_assignment(assignment_id: RowIdPath, db: Session = Depends(get_db)):
    store.delete_student_assignment(db, assignment_id)


# --- layout templates ---

@app.post("/layout-templates", response_model=schemas.LayoutTemplateOut, status_code=201)
def create_layout_template(payload: schemas.LayoutTemplateCreate, db: Session = Depends(get_db)):
    return store.create_layout_template(db, payload)


@app.get("/layout-templates", response_model=List[schemas.LayoutTemplateOut])
def get_layout_templates(db: Session = Depends(get_db)):
    return queries.get_layout_templates(db)


@app.post("/layout-templates/load", response_model=List[schemas.ClassroomObjectOut], status_code=201)
def load_layout_template(payload: schemas.LoadLayoutTemplateRequest, db: Session = Depends(get_db)):
    return layouts.load_layout_template(db, payload.template_id, payload.classroom_id)


@app.get("/layout-templates/{template_id}", response_model=schemas.LayoutTemplateOut)
def get_layout_template(template_id: RowIdPath, db: Session = Depends(get_db)):
    return queries.get_layout_template(db, template_id)


@app.delete("/layout-templates/{template_id}", status_code=204)
def delete_layout_template(template_id: RowIdPath, db: Session = Depends(get_db)):
    store.delete_layout_template(db, template_id)
