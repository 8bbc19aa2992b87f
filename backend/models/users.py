# backend/models/users.py
from sqlalchemy import Column, Integer, String, CheckConstraint
from database import Base

# Represents a shop account; role decides whether the user may act with elevated rights
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    role = Column(String, CheckConstraint("role IN ('admin', 'user', 'service')"), nullable=False, default="user")
    full_name = Column(String, nullable=True)
