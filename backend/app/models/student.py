"""
Student model - one row per student record.

Students are keyed by a caller-supplied ID token. Subjects are not stored
on the row; they are joined by student_id at read time.
"""

from sqlalchemy import Column, Text, String, Integer
from sqlalchemy.orm import relationship
from app.database import Base, UTCDateTime


class Student(Base):
    """
    SQLAlchemy model for the students table.

    `position` records insertion order. Overwriting an existing key keeps
    its position; a deleted and re-created key gets a new one.
    """
    __tablename__ = "students"

    id = Column(String, primary_key=True,
                doc="Caller-supplied student ID token")
    position = Column(Integer, nullable=False, index=True,
                      doc="Insertion sequence number")
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False,
                   doc="Expected unique, not enforced")
    intake = Column(Text, nullable=False,
                    doc="Semester/cohort key, e.g. 'Jun-25'")
    programme = Column(Text, nullable=False)
    cgpa = Column(Text, nullable=False,
                  doc="CGPA as decimal text, parsed on demand")
    credits = Column(Integer, nullable=False)
    created_at = Column(UTCDateTime, nullable=False,
                        doc="Set on creation, never changed by updates")

    # No FK constraint: subjects may point at missing students and survive
    # their student's deletion
    subjects = relationship(
        "Subject",
        primaryjoin="Student.id == foreign(Subject.student_id)",
        order_by="Subject.position",
        viewonly=True,
    )

    def __repr__(self):
        return f"<Student(id={self.id}, name='{self.name}', intake='{self.intake}', cgpa='{self.cgpa}')>"
