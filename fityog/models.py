from sqlalchemy import Column, Integer, Boolean, Float, DateTime, ForeignKey, Text, Index, JSON
from sqlalchemy.sql import func
from fityog.core.database import Base


class User(Base):
    __tablename__ = "users"
    # Never hand out a previously used id, even on SQLite
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(Text, unique=True, nullable=False)
    password = Column(Text, nullable=False)  # bcrypt hash
    is_expert = Column(Boolean, default=False, nullable=False)
    bio = Column(Text, nullable=True)
    specialties = Column(JSON, nullable=True)  # list of strings
    rating = Column(Float, nullable=True)
    photo_url = Column(Text, nullable=True)
    experience = Column(Text, nullable=True)


class Exercise(Base):
    __tablename__ = "exercises"
    __table_args__ = (
        Index("ix_exercises_user_id", "user_id"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    type = Column(Text, nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    calories = Column(Integer, nullable=True)
    date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_user_id", "user_id"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    expert_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    time = Column(Text, nullable=False)  # "HH:MM"
    contact_info = Column(Text, nullable=False)
    status = Column(Text, default="pending", nullable=False)  # pending, confirmed, cancelled, completed
