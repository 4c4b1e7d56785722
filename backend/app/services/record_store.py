"""
Record Store - canonical holder of student and subject records.

A RecordStore owns a private in-memory SQLite engine, so each instance is
an isolated, volatile collection. The application builds one at startup
and hands it to the routes; tests build one per test.

Semantics carried over from the original service:
- Student keys are caller-supplied; creating an existing key overwrites it
  in place (last write wins, original position kept, createdAt reset).
- Subjects link to students only by student_id equality. Deleting a
  student leaves its subjects behind, and they rejoin if the key is
  created again.
- Iteration order is insertion order for both students and subjects.
- "Not found" is returned as None (or False for deletes), never raised.

All operations run under one re-entrant lock, so readers never observe a
partially applied write.
"""

import threading
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.database import MEMORY_URL, make_engine, make_session_factory, create_tables
from app.models.student import Student as StudentRow
from app.models.subject import Subject as SubjectRow
from app.schemas import (
    Student, StudentCreate, StudentUpdate, StudentWithSubjects,
    Subject, SubjectCreate,
)
from app.logging_config import get_logger, log_with_context

logger = get_logger("store")
ingest_logger = get_logger("ingest")

# ──────────────────────────────────────────────────────────────
# Served when the startup data source cannot be loaded
# ──────────────────────────────────────────────────────────────
FALLBACK_STUDENTS = [
    StudentCreate(
        id="A0001",
        name="Anya Taylor-Joy",
        email="A0001@uow.edu.my",
        intake="Jun-25",
        programme="Bachelor of Information Systems (Hons)",
        cgpa="3.50",
        credits=18,
    ),
    StudentCreate(
        id="A0002",
        name="Austin Butler",
        email="A0002@uow.edu.my",
        intake="Jun-25",
        programme="Bachelor of Information Systems (Hons)",
        cgpa="2.80",
        credits=15,
    ),
]

RecordLoader = Callable[[], Tuple[List[StudentCreate], List[SubjectCreate]]]


def _joined(row: StudentRow, subjects: Optional[list] = None) -> StudentWithSubjects:
    """Build the read-time composite from a student row."""
    if subjects is None:
        subjects = [Subject.model_validate(s) for s in row.subjects]
    student = Student.model_validate(row)
    return StudentWithSubjects(**student.model_dump(), subjects=subjects)


class RecordStore:
    """In-memory store of students and subjects."""

    def __init__(self, database_url: str = MEMORY_URL):
        self._engine = make_engine(database_url)
        create_tables(self._engine)
        self._session_factory = make_session_factory(self._engine)
        self._lock = threading.RLock()

    @contextmanager
    def _session(self):
        """Exclusive session: holds the store lock for its whole lifetime."""
        with self._lock:
            session = self._session_factory()
            try:
                yield session
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    @staticmethod
    def _next_position(session: Session, model) -> int:
        current = session.query(func.max(model.position)).scalar()
        return (current or 0) + 1

    @staticmethod
    def _upsert_student(session: Session, data: StudentCreate, position: int) -> Tuple[StudentRow, bool]:
        """
        Insert or overwrite a student row. Returns (row, created). An
        overwritten row keeps its position; `position` is used only for
        new rows.
        """
        row = session.get(StudentRow, data.id)
        created = row is None
        if created:
            row = StudentRow(id=data.id, position=position)
            session.add(row)
        row.name = data.name
        row.email = data.email
        row.intake = data.intake
        row.programme = data.programme
        row.cgpa = data.cgpa
        row.credits = data.credits or 0
        row.created_at = datetime.now(timezone.utc)
        return row, created

    # ── Student operations ───────────────────────────────────

    def create_student(self, data: StudentCreate) -> StudentWithSubjects:
        """
        Insert a student, or overwrite the one with the same key.

        The result always carries an empty subject list; subjects are
        added with create_subject().
        """
        with self._session() as session:
            row, created = self._upsert_student(session, data, self._next_position(session, StudentRow))
            session.commit()
            result = _joined(row, subjects=[])

        log_with_context(logger, "INFO",
            "Student {}: {}".format("created" if created else "overwritten", data.id),
            context={"student_id": data.id},
            extra_data={"intake": data.intake})
        return result

    def get_student(self, student_id: str) -> Optional[StudentWithSubjects]:
        with self._session() as session:
            row = session.get(StudentRow, student_id)
            if row is None:
                return None
            return _joined(row)

    def get_student_by_email(self, email: str) -> Optional[StudentWithSubjects]:
        """First student, in insertion order, whose email matches exactly."""
        with self._session() as session:
            row = session.query(StudentRow).filter(
                StudentRow.email == email
            ).order_by(StudentRow.position).first()
            if row is None:
                return None
            return _joined(row)

    def get_all_students(self) -> List[StudentWithSubjects]:
        with self._session() as session:
            rows = session.query(StudentRow).options(
                selectinload(StudentRow.subjects)
            ).order_by(StudentRow.position).all()
            return [_joined(row) for row in rows]

    def get_students_by_semester(self, semester: str) -> List[StudentWithSubjects]:
        """Students whose intake equals `semester` exactly (case-sensitive)."""
        with self._session() as session:
            rows = session.query(StudentRow).options(
                selectinload(StudentRow.subjects)
            ).filter(
                StudentRow.intake == semester
            ).order_by(StudentRow.position).all()
            return [_joined(row) for row in rows]

    def update_student(self, student_id: str, changes: StudentUpdate) -> Optional[StudentWithSubjects]:
        """
        Merge the fields set on `changes` onto an existing student.

        Unset and null fields are left alone. Returns None if the key does
        not exist.
        """
        updates = changes.model_dump(exclude_unset=True, exclude_none=True)
        with self._session() as session:
            row = session.get(StudentRow, student_id)
            if row is None:
                return None
            for field, value in updates.items():
                setattr(row, field, value)
            session.commit()
            result = _joined(row)

        log_with_context(logger, "INFO",
            "Student updated: {}".format(student_id),
            context={"student_id": student_id},
            extra_data={"fields": sorted(updates)})
        return result

    def delete_student(self, student_id: str) -> bool:
        """Remove a student. Its subjects are not touched."""
        with self._session() as session:
            row = session.get(StudentRow, student_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()

        log_with_context(logger, "INFO",
            "Student deleted: {}".format(student_id),
            context={"student_id": student_id})
        return True

    def count_students(self) -> int:
        with self._session() as session:
            return session.query(func.count(StudentRow.id)).scalar()

    def get_semesters(self) -> List[str]:
        """Distinct intake keys, sorted."""
        with self._session() as session:
            rows = session.query(StudentRow.intake).distinct().all()
            return sorted(intake for (intake,) in rows)

    # ── Subject operations ───────────────────────────────────

    def create_subject(self, data: SubjectCreate) -> Subject:
        """
        Insert a subject under a freshly generated key. student_id is not
        checked against existing students.
        """
        with self._session() as session:
            row = SubjectRow(
                id=str(uuid.uuid4()),
                position=self._next_position(session, SubjectRow),
                code=data.code,
                name=data.name,
                grade=data.grade or None,
                status=data.status,
                student_id=data.student_id or None,
            )
            session.add(row)
            session.commit()
            result = Subject.model_validate(row)

        log_with_context(logger, "INFO",
            "Subject created: {} ({})".format(result.code, result.id),
            context={"subject_id": result.id, "student_id": result.student_id})
        return result

    def get_subjects_by_student_id(self, student_id: str) -> List[Subject]:
        with self._session() as session:
            rows = session.query(SubjectRow).filter(
                SubjectRow.student_id == student_id
            ).order_by(SubjectRow.position).all()
            return [Subject.model_validate(row) for row in rows]

    # ── Bulk loading ─────────────────────────────────────────

    def load_records(self, students: Iterable[StudentCreate],
                     subjects: Iterable[SubjectCreate] = ()) -> Tuple[int, int]:
        """
        Insert students then subjects in a single transaction.

        Either everything is loaded or, on error, nothing is. Returns
        (student_count, subject_count) as received.
        """
        student_count = 0
        subject_count = 0
        with self._session() as session:
            position = self._next_position(session, StudentRow)
            for data in students:
                _, created = self._upsert_student(session, data, position)
                # Flush so a repeated key in this batch is found by session.get
                session.flush()
                if created:
                    position += 1
                student_count += 1

            position = self._next_position(session, SubjectRow)
            for data in subjects:
                session.add(SubjectRow(
                    id=str(uuid.uuid4()),
                    position=position,
                    code=data.code,
                    name=data.name,
                    grade=data.grade or None,
                    status=data.status,
                    student_id=data.student_id or None,
                ))
                position += 1
                subject_count += 1
            session.commit()
        return student_count, subject_count

    def seed(self, loader: RecordLoader) -> bool:
        """
        Load the startup data set from `loader`.

        Any failure, in the loader or while inserting, is logged and
        replaced by FALLBACK_STUDENTS. Never raises. Returns True when the
        loader's records were used.
        """
        start_time = time.time()
        try:
            students, subjects = loader()
            student_count, subject_count = self.load_records(students, subjects)
        except Exception as e:
            log_with_context(ingest_logger, "ERROR",
                "Error loading student data, using fallback data: {}".format(e),
                extra_data={"error_type": type(e).__name__},
                exc_info=True)
            self.load_records(FALLBACK_STUDENTS)
            return False

        log_with_context(ingest_logger, "INFO",
            "Loaded {} students and {} subjects".format(student_count, subject_count),
            extra_data={
                "students": student_count,
                "subjects": subject_count,
                "duration_ms": round((time.time() - start_time) * 1000, 2)
            })
        return True
