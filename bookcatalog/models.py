# bookcatalog/models.py
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class Book(BaseModel):
    id: int
    title: str
    author: str
    description: Optional[str] = None


class AuthenticatedUser(BaseModel):
    claims: Dict[str, Any] = Field(default_factory=dict)
    token: str


class HealthServices(BaseModel):
    database: str = "connected"
    redis: str = "connected"


class HealthReport(BaseModel):
    status: str
    services: Optional[HealthServices] = None
    error: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    code: str
    message: Optional[str] = None

