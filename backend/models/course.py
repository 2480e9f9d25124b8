"""Course and course content model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from backend.database import Base

MODALITIES = ("online", "presencial", "hybrid")


class Course(Base):
    """Represents a course offered by the school."""
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    schedule_days = Column(String(100))
    schedule_time = Column(String(100))
    shift = Column(String(50))
    total_classes = Column(Integer, default=0)
    total_hours = Column(Integer, default=0)
    price_cop = Column(Numeric(12, 2, asdecimal=False))
    price_usd = Column(Numeric(10, 2, asdecimal=False))
    image_url = Column(String(500))
    modality = Column(String(20), default="online")
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.now)


class ClassRecording(Base):
    """Represents a recorded class of a course."""
    __tablename__ = "class_recordings"

    id = Column(Integer, primary_key=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    video_url = Column(String(500), nullable=False)
    duration_minutes = Column(Integer, default=0)
    class_number = Column(Integer, default=1)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.now)


class CourseMaterial(Base):
    """Represents written material attached to a course."""
    __tablename__ = "course_materials"

    id = Column(Integer, primary_key=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    file_url = Column(String(500), nullable=False)
    file_type = Column(String(50))
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
