from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, EmailStr


class UserRole(str, Enum):
    PATIENT = "PATIENT"
    MEDICAL_STUDENT = "MEDICAL_STUDENT"


class User(BaseModel):
    id: str
    name: str
    email: EmailStr
    role: UserRole
