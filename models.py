from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from database import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)

    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)

    # Store password hash (bcrypt). Never store plaintext.
    password = Column(String, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
