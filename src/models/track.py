"""Specialization track database models."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import Base


class TrackModel(Base):
    __tablename__ = "tracks"

    track_id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    # lower(trim(name)); unique so concurrent inserts of "Datos"/"datos" cannot both land.
    name_key = Column(String, unique=True, index=True, nullable=False)
    description = Column(Text, nullable=False)
    coordinator = Column(String, nullable=False)
    coordinator_email = Column(String, nullable=False)
    knowledge_area = Column(String, index=True, nullable=False)
    required_credits = Column(Integer, nullable=False)
    status = Column(String, index=True, nullable=False, default="activa")
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    subjects = relationship(
        "TrackSubjectModel",
        back_populates="track",
        order_by="TrackSubjectModel.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class TrackSubjectModel(Base):
    __tablename__ = "track_subjects"

    id = Column(Integer, primary_key=True, index=True)
    track_id = Column(
        String,
        ForeignKey("tracks.track_id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    position = Column(Integer, nullable=False)
    name = Column(String, nullable=False)

    track = relationship("TrackModel", back_populates="subjects")
