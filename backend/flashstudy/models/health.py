from pydantic import BaseModel


class HealthStatus(BaseModel):
    status: str  # ok | degraded


class StudyHealth(BaseModel):
    service: str
    status: str
    version: str
    uptime: float  # seconds since startup
    features: dict[str, str]
