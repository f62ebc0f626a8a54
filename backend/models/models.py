"""
Pydantic models for API request/response validation.

Field names on the wire follow the public contract of the service
(`dados`, `recomendacoes`), which is Portuguese.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

NOT_INFORMED = "não informado"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CaseRecord(BaseModel):
    """
    One reported diagnosis with the address it was reported at.

    Attributes:
        address: Free-text address, usually "street, neighborhood, ...".
        diagnosis: Reported disease.
    """
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    address: str = Field(default="", description="Free-text address")
    diagnosis: str = Field(default=NOT_INFORMED, description="Reported disease")

    @model_validator(mode="before")
    @classmethod
    def non_object_as_empty(cls, data: Any) -> Any:
        """A null or scalar entry still counts, under NOT_INFORMED."""
        if not isinstance(data, (dict, BaseModel)):
            return {}
        return data

    @field_validator("address", "diagnosis", mode="before")
    @classmethod
    def none_as_missing(cls, v: Any, info: ValidationInfo) -> Any:
        """Treat explicit nulls like absent fields."""
        if v is None:
            return "" if info.field_name == "address" else NOT_INFORMED
        return v

    @field_validator("diagnosis")
    @classmethod
    def normalize_diagnosis(cls, v: str) -> str:
        return v.strip() or NOT_INFORMED


class AnalysisRequest(BaseModel):
    """Batch of case records to analyse."""
    dados: list[CaseRecord] = Field(..., description="Case records")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "dados": [
                    {"address": "Rua das Flores, 120, Centro", "diagnosis": "Dengue"},
                    {"address": "Av. João César, Eldorado", "diagnosis": "Gripe"},
                ]
            }
        }
    )


class Recommendation(BaseModel):
    """
    One structured suggestion for a disease/neighborhood pair, as returned
    by the model.
    """
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    disease: str = Field(..., description="Disease")
    neighborhood: str = Field(..., description="Neighborhood")
    probable_cause: str = Field(default="", description="Probable cause of the incidence")
    mitigation: str = Field(default="", description="Suggested mitigation action")
    mitigation_rationale: str = Field(default="", description="Why the mitigation helps")
    reduction_estimate_percent: str = Field(default="", description="Estimated case reduction")
    reduction_rationale: str = Field(default="", description="How the estimate was reached")

    @field_validator(
        "probable_cause",
        "mitigation",
        "mitigation_rationale",
        "reduction_estimate_percent",
        "reduction_rationale",
        mode="before",
    )
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class AnalysisResponse(BaseModel):
    """
    Result of an analysis.

    Exactly one of the two fields is set: `recomendacoes` when the model
    answered with the expected JSON array, `raw` with its untouched text
    otherwise.
    """
    recomendacoes: list[Recommendation] | None = Field(
        default=None,
        description="Structured recommendations"
    )
    raw: str | None = Field(default=None, description="Unparsed model reply")


class HealthStatus(str, Enum):
    """System health status levels."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """
    Health check response for monitoring.

    Attributes:
        status: Overall system health status.
        version: Application version.
        environment: Deployment environment.
        checks: Individual component health checks.
    """
    status: HealthStatus = Field(..., description="Overall health status")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Deployment environment")
    timestamp: datetime = Field(default_factory=_utcnow, description="Check timestamp")
    checks: dict[str, bool] = Field(default_factory=dict, description="Component health checks")


class ErrorResponse(BaseModel):
    """
    Standardized error response.

    Attributes:
        error: Error type/code.
        message: Human-readable error message.
        details: Additional error details.
        request_id: Request ID for tracing.
    """
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: dict | None = Field(default=None, description="Additional details")
    request_id: str | None = Field(default=None, description="Request ID for tracing")
    timestamp: datetime = Field(default_factory=_utcnow, description="Error timestamp")
