"""
Entity and payload models for the NutriPlan dashboard core.

This module defines the canonical record schemas used throughout the core. The
upstream microservices speak Portuguese field names (nome, titulo, data_fim, ...);
every model exposes English attribute names and accepts either form on input
(populate_by_name=True). Payload models serialize back to the wire names via
to_wire().

# NOTE: The plans service returns its primary key as "_id" (MongoDB style) for
    plans and plan items. normalize_identifier() is the single place where that
    key is renamed to "id"; repositories apply it to single records, collections
    and nested item lists before validating into these models.

Timestamps are parsed leniently (ISO-8601 with or without time, trailing "Z",
or epoch milliseconds). Missing, empty, zero or epoch values become None, which
downstream date filters treat as "unknown".
"""

import logging
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Remote primary key field of the plans service
MONGO_ID_FIELD = "_id"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a wire timestamp into an aware UTC datetime.

    Args:
        value: ISO-8601 string, date, datetime, epoch milliseconds, or None

    Returns:
        Aware datetime in UTC, or None if the value is missing, unparseable,
        or not after the epoch.

    Examples:
        >>> parse_timestamp("2024-05-01T10:00:00Z").isoformat()
        '2024-05-01T10:00:00+00:00'
        >>> parse_timestamp(0) is None
        True
    """
    if value is None or value == "" or isinstance(value, bool):
        return None

    parsed: Optional[datetime] = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        # Epoch milliseconds, as a JavaScript Date would store them
        try:
            parsed = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Unparseable timestamp %r treated as unknown", value)
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    else:
        parsed = parsed.astimezone(timezone.utc)

    if parsed <= EPOCH:
        return None
    return parsed


def normalize_identifier(record: Any, key_field: str = MONGO_ID_FIELD) -> Any:
    """
    Rename a remote primary key field to "id".

    Idempotent: a record that already uses "id" is returned as a copy. All other
    fields are preserved. Non-dict values are returned unchanged.

    Args:
        record: Raw record from the wire
        key_field: Remote primary key field name (e.g. "_id")

    Returns:
        New dict with "id" holding the remote key value
    """
    if not isinstance(record, dict):
        return record
    if key_field == "id" or key_field not in record:
        return dict(record)
    rest = {k: v for k, v in record.items() if k not in (key_field, "id")}
    return {"id": record[key_field], **rest}


def denormalize_identifier(record: Any, key_field: str = MONGO_ID_FIELD) -> Any:
    """Reverse of normalize_identifier(): rename "id" back to the remote key field."""
    if not isinstance(record, dict):
        return record
    if key_field == "id" or "id" not in record:
        return dict(record)
    rest = {k: v for k, v in record.items() if k not in ("id", key_field)}
    return {key_field: record["id"], **rest}


def normalize_collection(records: Iterable[Any], key_field: str = MONGO_ID_FIELD) -> List[Any]:
    return [normalize_identifier(record, key_field) for record in records]


def _as_ref(value: Any) -> Any:
    # References are opaque strings; some services send integers
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class UserRole(str, Enum):
    """User roles, valued by their wire representation."""
    PRACTITIONER = "nutricionista"
    PATIENT = "paciente"


class EntityModel(BaseModel):
    """Base for records read from the microservices."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., description="Server-assigned identifier (opaque)")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return _as_ref(value)

    @property
    def is_mock(self) -> bool:
        """Whether this record comes from a fallback dataset."""
        return self.id.startswith("mock-")


class User(EntityModel):
    name: str = Field(..., alias="nome")
    email: str = ""
    role: UserRole
    practitioner_ref: Optional[str] = Field(None, alias="nutricionista_id")
    created_at: Optional[datetime] = Field(None, alias="data_criacao")

    @field_validator("practitioner_ref", mode="before")
    @classmethod
    def _coerce_ref(cls, value: Any) -> Any:
        return _as_ref(value)

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, value: Any) -> Optional[datetime]:
        return parse_timestamp(value)


class MealPlan(EntityModel):
    patient_ref: str = Field(..., alias="paciente_id")
    practitioner_ref: str = Field(..., alias="nutricionista_id")
    title: str = Field(..., alias="titulo")
    start_date: Optional[datetime] = Field(None, alias="data_inicio")
    end_date: Optional[datetime] = Field(None, alias="data_fim")

    @field_validator("patient_ref", "practitioner_ref", mode="before")
    @classmethod
    def _coerce_refs(cls, value: Any) -> Any:
        return _as_ref(value)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any) -> Optional[datetime]:
        return parse_timestamp(value)


class PlanItem(EntityModel):
    plan_ref: str = Field(..., alias="plano_mestre_id")
    time: str = Field("", alias="horario", description="Free-text schedule label")
    meal_name: str = Field("", alias="nome_refeicao")
    description: str = Field("", alias="descricao")

    @field_validator("plan_ref", mode="before")
    @classmethod
    def _coerce_plan_ref(cls, value: Any) -> Any:
        return _as_ref(value)


class MealPlanWithItems(MealPlan):
    items: List[PlanItem] = Field(default_factory=list, alias="itens")


class Recipe(EntityModel):
    name: str = Field(..., alias="nome")
    category: str = Field("", alias="categoria")
    prep_minutes: int = Field(0, ge=0, alias="tempoPreparo")
    ingredients: List[str] = Field(default_factory=list, alias="ingredientes")
    steps: List[str] = Field(default_factory=list, alias="modoPreparo")
    practitioner_ref: Optional[str] = Field(None, alias="nutricionistaId")
    patient_ref: Optional[str] = Field(None, alias="pacienteId")
    created_at: Optional[datetime] = Field(None, alias="data_criacao")

    @field_validator("practitioner_ref", "patient_ref", mode="before")
    @classmethod
    def _coerce_refs(cls, value: Any) -> Any:
        return _as_ref(value)

    @field_validator("ingredients", "steps", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, value: Any) -> Optional[datetime]:
        return parse_timestamp(value)


# Payloads sent to the services. Dates are passed through as the caller wrote them.

class Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    def to_wire(self) -> Dict[str, Any]:
        """Serialize using the services' field names, leaving out unset fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True, exclude_none=True)


class UserCreate(Payload):
    name: str = Field(..., alias="nome")
    email: str
    role: UserRole
    practitioner_ref: Optional[str] = Field(None, alias="nutricionista_id")
    created_at: Optional[str] = Field(None, alias="data_criacao")


class UserUpdate(Payload):
    name: Optional[str] = Field(None, alias="nome")
    email: Optional[str] = None
    practitioner_ref: Optional[str] = Field(None, alias="nutricionista_id")
    created_at: Optional[str] = Field(None, alias="data_criacao")


class MealPlanCreate(Payload):
    patient_ref: str = Field(..., alias="paciente_id")
    practitioner_ref: str = Field(..., alias="nutricionista_id")
    title: str = Field(..., alias="titulo")
    start_date: Optional[str] = Field(None, alias="data_inicio")
    end_date: Optional[str] = Field(None, alias="data_fim")


class MealPlanUpdate(Payload):
    patient_ref: Optional[str] = Field(None, alias="paciente_id")
    practitioner_ref: Optional[str] = Field(None, alias="nutricionista_id")
    title: Optional[str] = Field(None, alias="titulo")
    start_date: Optional[str] = Field(None, alias="data_inicio")
    end_date: Optional[str] = Field(None, alias="data_fim")


class PlanItemCreate(Payload):
    plan_ref: str = Field(..., alias="plano_mestre_id")
    time: str = Field(..., alias="horario")
    meal_name: str = Field(..., alias="nome_refeicao")
    description: str = Field("", alias="descricao")


class PlanItemUpdate(Payload):
    plan_ref: Optional[str] = Field(None, alias="plano_mestre_id")
    time: Optional[str] = Field(None, alias="horario")
    meal_name: Optional[str] = Field(None, alias="nome_refeicao")
    description: Optional[str] = Field(None, alias="descricao")


class RecipeCreate(Payload):
    name: str = Field(..., alias="nome")
    category: str = Field(..., alias="categoria")
    prep_minutes: int = Field(..., ge=0, alias="tempoPreparo")
    ingredients: List[str] = Field(default_factory=list, alias="ingredientes")
    steps: List[str] = Field(default_factory=list, alias="modoPreparo")
    practitioner_ref: str = Field(..., alias="nutricionistaId")
    patient_ref: str = Field(..., alias="pacienteId")
    created_at: Optional[str] = Field(None, alias="data_criacao")

    def to_wire(self) -> Dict[str, Any]:
        # Lists are always sent, even when left at their defaults
        data = super().to_wire()
        data.setdefault("ingredientes", list(self.ingredients))
        data.setdefault("modoPreparo", list(self.steps))
        return data


class RecipeUpdate(Payload):
    name: Optional[str] = Field(None, alias="nome")
    category: Optional[str] = Field(None, alias="categoria")
    prep_minutes: Optional[int] = Field(None, ge=0, alias="tempoPreparo")
    ingredients: Optional[List[str]] = Field(None, alias="ingredientes")
    steps: Optional[List[str]] = Field(None, alias="modoPreparo")
    practitioner_ref: Optional[str] = Field(None, alias="nutricionistaId")
    patient_ref: Optional[str] = Field(None, alias="pacienteId")
    created_at: Optional[str] = Field(None, alias="data_criacao")
