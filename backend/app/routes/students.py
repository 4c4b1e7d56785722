"""
Student API routes - CRUD on student records and their subjects.

Provides endpoints for:
- Listing students, optionally filtered by intake
- Fetching, creating, updating and deleting a student
- Adding a subject to a student
- Listing the available intakes
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from app.database import get_store
from app.schemas import (
    StudentCreate, StudentUpdate, StudentWithSubjects,
    Subject, SubjectCreate,
)
from app.services.analytics import ALL_SEMESTERS
from app.services.record_store import RecordStore
from app.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")


# Registered before /api/students/{student_id} so "all" is not taken as an ID
@router.get("/api/students/all", response_model=List[StudentWithSubjects])
def list_all_students(store: RecordStore = Depends(get_store)):
    """Every student with its subjects, in insertion order."""
    return store.get_all_students()


@router.get("/api/students", response_model=List[StudentWithSubjects])
def list_students(
    semester: Optional[str] = Query(None, description="Intake key; 'all' or omitted for every student"),
    store: RecordStore = Depends(get_store)
):
    if semester and semester != ALL_SEMESTERS:
        return store.get_students_by_semester(semester)
    return store.get_all_students()


@router.get("/api/students/{student_id}", response_model=StudentWithSubjects)
def get_student(student_id: str, store: RecordStore = Depends(get_store)):
    student = store.get_student(student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


@router.post("/api/students", response_model=StudentWithSubjects, status_code=201)
def create_student(payload: StudentCreate, store: RecordStore = Depends(get_store)):
    """
    Create a student. An existing student with the same ID is overwritten
    and the response carries an empty subject list.
    """
    return store.create_student(payload)


@router.patch("/api/students/{student_id}", response_model=StudentWithSubjects)
def update_student(student_id: str, payload: StudentUpdate, store: RecordStore = Depends(get_store)):
    """Update only the fields present in the body."""
    student = store.update_student(student_id, payload)
    if student is None:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


@router.delete("/api/students/{student_id}")
def delete_student(student_id: str, store: RecordStore = Depends(get_store)):
    """Delete a student. Subjects recorded for it are kept."""
    if not store.delete_student(student_id):
        raise HTTPException(status_code=404, detail="Student not found")
    return {"message": "Student deleted successfully"}


@router.post("/api/students/{student_id}/subjects", response_model=Subject, status_code=201)
def create_subject(student_id: str, payload: SubjectCreate, store: RecordStore = Depends(get_store)):
    """Add a subject; the path's student_id replaces any studentId in the body."""
    subject = store.create_subject(payload.model_copy(update={"student_id": student_id}))

    if store.get_student(student_id) is None:
        log_with_context(logger, "WARNING",
            "Subject {} added for unknown student {}".format(subject.code, student_id),
            context={"student_id": student_id, "subject_id": subject.id})
    return subject


@router.get("/api/semesters", response_model=List[str])
def list_semesters(store: RecordStore = Depends(get_store)):
    """Distinct intake keys, sorted."""
    return store.get_semesters()
