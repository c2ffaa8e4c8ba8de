"""Pydantic response models (DTOs) for FastAPI endpoints."""

from pydantic import BaseModel


class ErrorResponseDTO(BaseModel):
    message: str

    @classmethod
    def from_pipeline_error(cls, error):
        return cls(message=error.message)


class HealthResponseDTO(BaseModel):
    status: str
    timestamp: str
    version: str = "1.0.0"
    web_search_available: bool = False
