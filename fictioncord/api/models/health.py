"""Health check response models."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response model.

    Attributes:
        status: "healthy" while the app serves requests.
        scheduler_running: Whether the session scheduler loop is active.
    """

    status: str
    scheduler_running: bool
