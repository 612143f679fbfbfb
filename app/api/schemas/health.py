"""Schemas para endpoints de health."""
from pydantic import BaseModel


class PingOut(BaseModel):
    message: str


class HealthOut(BaseModel):
    status: str
