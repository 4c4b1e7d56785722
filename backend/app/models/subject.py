"""
Subject model - a graded course taken by a student.
"""

from sqlalchemy import Column, Text, String, Integer
from app.database import Base


class Subject(Base):
    """
    SQLAlchemy model for the subjects table.

    student_id is a plain column rather than a foreign key, so nothing
    checks that the student exists.
    """
    __tablename__ = "subjects"

    id = Column(String(36), primary_key=True,
                doc="UUID4 generated by the record store")
    position = Column(Integer, nullable=False, index=True,
                      doc="Insertion sequence number")
    code = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    grade = Column(Text, nullable=True)
    status = Column(Text, nullable=False,
                    doc="e.g. pass / fail / in-progress")
    student_id = Column(String, nullable=True, index=True,
                        doc="Owning student's ID token, if any")

    def __repr__(self):
        return f"<Subject(id={self.id}, code='{self.code}', student={self.student_id}, grade={self.grade})>"
