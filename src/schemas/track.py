"""Specialization track schema definitions."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class KnowledgeArea(str, Enum):
    software = "Software"
    hardware = "Hardware"
    networking = "Redes"
    ai = "IA"
    security = "Ciberseguridad"
    data = "Datos"


class TrackStatus(str, Enum):
    active = "activa"
    inactive = "inactiva"


class TrackSort(str, Enum):
    name = "nombre"  # name ascending
    date = "fecha"  # creation date descending
    credits = "creditos"  # required credits ascending


KNOWLEDGE_AREAS = [area.value for area in KnowledgeArea]

# English labels, so searches such as "ai" or "data" also find "IA" and "Datos".
KNOWLEDGE_AREA_LABELS_EN = {
    KnowledgeArea.software.value: "Software",
    KnowledgeArea.hardware.value: "Hardware",
    KnowledgeArea.networking.value: "Networking",
    KnowledgeArea.ai.value: "AI",
    KnowledgeArea.security.value: "Security",
    KnowledgeArea.data.value: "Data",
}

TRACK_STATUSES = [status.value for status in TrackStatus]


class Track(BaseModel):
    """Track as returned to clients."""

    model_config = ConfigDict(populate_by_name=True)

    track_id: str = Field(alias="_id")
    name: str = Field(alias="nombre")
    description: str = Field(alias="descripcion")
    coordinator: str = Field(alias="coordinador")
    coordinator_email: str = Field(alias="emailCoordinador")
    knowledge_area: str = Field(alias="areaConocimiento")
    required_credits: int = Field(alias="creditosRequeridos")
    subjects: List[str] = Field(default_factory=list, alias="materias")
    status: str = Field(alias="estado")
    created_at: Optional[datetime] = Field(default=None, alias="fechaCreacion")
    updated_at: Optional[datetime] = Field(default=None, alias="fechaActualizacion")
    version: int = 0


class TrackCreateRequest(BaseModel):
    """Fields for a new track; completeness is checked by TrackManager."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, alias="nombre")
    description: Optional[str] = Field(default=None, alias="descripcion")
    coordinator: Optional[str] = Field(default=None, alias="coordinador")
    coordinator_email: Optional[str] = Field(default=None, alias="emailCoordinador")
    knowledge_area: Optional[str] = Field(default=None, alias="areaConocimiento")
    required_credits: Optional[int] = Field(default=None, alias="creditosRequeridos")
    subjects: Optional[List[str]] = Field(default=None, alias="materias")


class TrackUpdateRequest(TrackCreateRequest):
    """Partial update; only fields present in the body are applied."""

    status: Optional[str] = Field(default=None, alias="estado")


class TrackFilters(BaseModel):
    """Listing filters after normalization."""

    areas: List[str] = Field(default_factory=list)
    status: Optional[str] = None
    page: int = 1
    limit: int = 10
    sort: TrackSort = TrackSort.name


class Pagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    page: int = Field(alias="pagina")
    limit: int = Field(alias="limite")
    total_pages: int = Field(alias="totalPaginas")
    has_next: bool = Field(alias="tieneSiguiente")
    has_previous: bool = Field(alias="tieneAnterior")


class TrackPage(BaseModel):
    items: List[Track]
    pagination: Pagination


class TrackStatistics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int = Field(alias="totalLineas")
    active: int = Field(alias="lineasActivas")
    inactive: int = Field(alias="lineasInactivas")
    by_area: Dict[str, int] = Field(default_factory=dict, alias="lineasPorArea")
    average_credits: float = Field(default=0, alias="creditosPromedio")
