"""Specialization track management.

This module holds the track catalog operations: filtered, sorted and paginated
listing, free-text search, statistics, and the admin mutations (create,
partial update, soft delete).
"""

import logging
import math
import secrets
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

import pytz
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_SEARCH_LIMIT,
    MAX_PAGE_SIZE,
    MIN_SEARCH_TERM_LENGTH,
)
from core.exceptions import ConflictError, NotFoundError, ValidationError
from models.track import TrackModel, TrackSubjectModel
from schemas.track import (
    KNOWLEDGE_AREA_LABELS_EN,
    KNOWLEDGE_AREAS,
    TRACK_STATUSES,
    Pagination,
    Track,
    TrackCreateRequest,
    TrackFilters,
    TrackPage,
    TrackSort,
    TrackStatistics,
    TrackStatus,
    TrackUpdateRequest,
)
from utils.converters import model_to_track
from utils.validators import is_blank, is_valid_email

logger = logging.getLogger(__name__)

# Attribute name -> public API key, for error messages.
REQUIRED_TEXT_FIELDS = {
    "name": "nombre",
    "description": "descripcion",
    "coordinator": "coordinador",
    "coordinator_email": "emailCoordinador",
    "knowledge_area": "areaConocimiento",
}


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def name_key(name: str) -> str:
    """Normalized form used for case-insensitive name uniqueness."""
    return name.strip().lower()


def build_filters(
    area: Union[str, Iterable[str], None] = None,
    status: Optional[str] = None,
    page: Any = 1,
    limit: Any = DEFAULT_PAGE_SIZE,
    sort: Optional[str] = None,
) -> TrackFilters:
    """Normalize raw listing parameters.

    Page numbers below 1 become 1 and page sizes are clamped to
    [1, MAX_PAGE_SIZE]; unparsable numbers fall back to the defaults, and an
    unknown sort key falls back to name ordering.
    """
    if area is None:
        areas = []
    elif isinstance(area, str):
        areas = [area]
    else:
        areas = list(area)
    areas = [a.strip() for a in areas if not is_blank(a)]

    try:
        sort_key = TrackSort(sort) if sort else TrackSort.name
    except ValueError:
        sort_key = TrackSort.name

    return TrackFilters(
        areas=areas,
        status=None if is_blank(status) else status.strip(),
        page=max(1, _to_int(page, 1)),
        limit=_clamp(_to_int(limit, DEFAULT_PAGE_SIZE), 1, MAX_PAGE_SIZE),
        sort=sort_key,
    )


def _clean_subjects(subjects: Optional[List[str]]) -> List[str]:
    return [s.strip() for s in (subjects or []) if not is_blank(s)]


def _validate_area(area: str) -> str:
    area = area.strip()
    if area not in KNOWLEDGE_AREAS:
        raise ValidationError(
            f"Área de conocimiento inválida: {area}. "
            f"Debe ser una de: {', '.join(KNOWLEDGE_AREAS)}"
        )
    return area


def _validate_credits(credits: Optional[int]) -> int:
    if credits is None:
        raise ValidationError("Los créditos requeridos son obligatorios")
    if credits < 0:
        raise ValidationError("Los créditos requeridos deben ser un número no negativo")
    return credits


def _validate_coordinator_email(email: str) -> str:
    email = email.strip().lower()
    if not is_valid_email(email):
        raise ValidationError("El email del coordinador no es válido")
    return email


class TrackManager:
    """Manages the specialization track catalog using SQLAlchemy."""

    def __init__(self, db: Session):
        """Initialize TrackManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def _get_model(self, track_id: str) -> TrackModel:
        model = (
            self.db.query(TrackModel)
            .filter(TrackModel.track_id == track_id)
            .first()
        )
        if not model:
            raise NotFoundError("Línea de profundización no encontrada")
        return model

    def _name_taken(self, key: str, exclude_id: Optional[str] = None) -> bool:
        query = self.db.query(TrackModel.track_id).filter(TrackModel.name_key == key)
        if exclude_id:
            query = query.filter(TrackModel.track_id != exclude_id)
        return query.first() is not None

    def _commit(self, conflict_message: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("Track write rejected by unique constraint: %s", e.orig)
            raise ConflictError(conflict_message) from e

    # --- Queries ---

    def get_track(self, track_id: str) -> Track:
        """Get a track by id, whatever its status.

        Raises:
            NotFoundError: If the id is unknown.
        """
        return model_to_track(self._get_model(track_id))

    def list_tracks(self, filters: Optional[TrackFilters] = None) -> TrackPage:
        """List tracks with filtering, ordering and pagination.

        The count and the page are separate reads; under concurrent writes
        they may disagree transiently.

        Args:
            filters: Normalized filters (see ``build_filters``).

        Returns:
            TrackPage with the requested page and its pagination metadata.
        """
        filters = filters or TrackFilters()
        query = self.db.query(TrackModel)
        if filters.areas:
            if len(filters.areas) == 1:
                query = query.filter(TrackModel.knowledge_area == filters.areas[0])
            else:
                query = query.filter(TrackModel.knowledge_area.in_(filters.areas))
        if filters.status:
            query = query.filter(TrackModel.status == filters.status)

        total = query.count()

        if filters.sort == TrackSort.date:
            ordering = (TrackModel.created_at.desc(), TrackModel.track_id)
        elif filters.sort == TrackSort.credits:
            ordering = (TrackModel.required_credits.asc(), TrackModel.name_key)
        else:
            ordering = (TrackModel.name_key.asc(), TrackModel.track_id)

        offset = (filters.page - 1) * filters.limit
        # Past the end; also keeps huge page numbers out of the SQL OFFSET.
        if offset >= total:
            models = []
        else:
            models = query.order_by(*ordering).offset(offset).limit(filters.limit).all()

        total_pages = math.ceil(total / filters.limit)
        pagination = Pagination(
            total=total,
            page=filters.page,
            limit=filters.limit,
            total_pages=total_pages,
            has_next=filters.page < total_pages,
            has_previous=filters.page > 1,
        )
        logger.debug(
            "Listed tracks: total=%s page=%s limit=%s areas=%s status=%s",
            total,
            filters.page,
            filters.limit,
            filters.areas,
            filters.status,
        )
        return TrackPage(items=[model_to_track(m) for m in models], pagination=pagination)

    def search_tracks(self, term: Optional[str], limit: Any = DEFAULT_SEARCH_LIMIT) -> List[Track]:
        """Case-insensitive substring search over active tracks.

        Matches name, description, coordinator, knowledge area (Spanish value
        or English label) and any subject.

        Raises:
            ValidationError: If the term is shorter than two characters.
        """
        term = (term or "").strip()
        if len(term) < MIN_SEARCH_TERM_LENGTH:
            raise ValidationError(
                f"Término de búsqueda debe tener al menos {MIN_SEARCH_TERM_LENGTH} caracteres"
            )
        limit = _clamp(_to_int(limit, DEFAULT_SEARCH_LIMIT), 1, MAX_PAGE_SIZE)

        lowered = term.lower()
        matching_areas = [
            area
            for area, label in KNOWLEDGE_AREA_LABELS_EN.items()
            if lowered in area.lower() or lowered in label.lower()
        ]
        conditions = [
            TrackModel.name.icontains(term, autoescape=True),
            TrackModel.description.icontains(term, autoescape=True),
            TrackModel.coordinator.icontains(term, autoescape=True),
            TrackModel.subjects.any(
                TrackSubjectModel.name.icontains(term, autoescape=True)
            ),
        ]
        if matching_areas:
            conditions.append(TrackModel.knowledge_area.in_(matching_areas))

        models = (
            self.db.query(TrackModel)
            .filter(TrackModel.status == TrackStatus.active.value, or_(*conditions))
            .order_by(TrackModel.name_key)
            .limit(limit)
            .all()
        )
        logger.debug("Track search for %r returned %s results", term, len(models))
        return [model_to_track(m) for m in models]

    def get_statistics(self) -> TrackStatistics:
        """Aggregate counts by status and area, and average required credits."""
        total = self.db.query(func.count(TrackModel.track_id)).scalar() or 0
        status_counts = dict(
            self.db.query(TrackModel.status, func.count(TrackModel.track_id))
            .group_by(TrackModel.status)
            .all()
        )
        area_counts = (
            self.db.query(TrackModel.knowledge_area, func.count(TrackModel.track_id))
            .group_by(TrackModel.knowledge_area)
            .order_by(func.count(TrackModel.track_id).desc(), TrackModel.knowledge_area)
            .all()
        )
        average = self.db.query(func.avg(TrackModel.required_credits)).scalar()

        return TrackStatistics(
            total=total,
            active=status_counts.get(TrackStatus.active.value, 0),
            inactive=status_counts.get(TrackStatus.inactive.value, 0),
            by_area={area: count for area, count in area_counts},
            average_credits=float(average or 0),
        )

    # --- Mutations ---

    def create_track(self, request: TrackCreateRequest) -> Track:
        """Create a new active track.

        Raises:
            ValidationError: If a required field is blank or a value is invalid.
            ConflictError: If another track has the same name, ignoring case.
        """
        if any(is_blank(getattr(request, f)) for f in REQUIRED_TEXT_FIELDS) or (
            request.required_credits is None
        ):
            raise ValidationError("Todos los campos obligatorios deben ser proporcionados")

        credits = _validate_credits(request.required_credits)
        coordinator_email = _validate_coordinator_email(request.coordinator_email)
        area = _validate_area(request.knowledge_area)

        name = request.name.strip()
        key = name_key(name)
        # Fast path; the unique name_key column settles concurrent inserts.
        if self._name_taken(key):
            raise ConflictError("Ya existe una línea de profundización con ese nombre")

        now = datetime.now(pytz.utc)
        model = TrackModel(
            track_id=secrets.token_hex(12),
            name=name,
            name_key=key,
            description=request.description.strip(),
            coordinator=request.coordinator.strip(),
            coordinator_email=coordinator_email,
            knowledge_area=area,
            required_credits=credits,
            status=TrackStatus.active.value,
            version=0,
            created_at=now,
            updated_at=now,
        )
        model.subjects = [
            TrackSubjectModel(position=i, name=subject)
            for i, subject in enumerate(_clean_subjects(request.subjects))
        ]
        self.db.add(model)
        self._commit("Ya existe una línea de profundización con ese nombre")
        self.db.refresh(model)

        logger.info("Created track %s (%s, area=%s)", model.track_id, model.name, area)
        return model_to_track(model)

    def update_track(self, track_id: str, request: TrackUpdateRequest) -> Track:
        """Apply a partial update; only fields present in the request change.

        Raises:
            NotFoundError: If the id is unknown.
            ValidationError: If a provided value is blank or invalid.
            ConflictError: If the new name belongs to another track.
        """
        changes: Dict[str, Any] = request.model_dump(exclude_unset=True)
        model = self._get_model(track_id)

        for field, label in REQUIRED_TEXT_FIELDS.items():
            if field in changes and is_blank(changes[field]):
                raise ValidationError(f"El campo '{label}' no puede estar vacío")

        # Everything is validated before the model is touched, so a rejected
        # update leaves nothing pending in the session.
        values: Dict[str, Any] = {}
        if "name" in changes:
            name = changes["name"].strip()
            key = name_key(name)
            if key != model.name_key and self._name_taken(key, exclude_id=track_id):
                raise ConflictError("Ya existe otra línea de profundización con ese nombre")
            values["name"] = name
            values["name_key"] = key
        if "coordinator_email" in changes:
            values["coordinator_email"] = _validate_coordinator_email(changes["coordinator_email"])
        if "knowledge_area" in changes:
            values["knowledge_area"] = _validate_area(changes["knowledge_area"])
        if "required_credits" in changes:
            values["required_credits"] = _validate_credits(changes["required_credits"])
        if "description" in changes:
            values["description"] = changes["description"].strip()
        if "coordinator" in changes:
            values["coordinator"] = changes["coordinator"].strip()
        if "status" in changes:
            status = changes["status"]
            if status not in TRACK_STATUSES:
                raise ValidationError(
                    f"Estado inválido: {status}. Debe ser 'activa' o 'inactiva'."
                )
            values["status"] = status

        for attr, value in values.items():
            setattr(model, attr, value)
        if "subjects" in changes:
            model.subjects = [
                TrackSubjectModel(position=i, name=subject)
                for i, subject in enumerate(_clean_subjects(changes["subjects"]))
            ]

        # Advisory only: stale writers are not rejected.
        model.version = (model.version or 0) + 1
        model.updated_at = datetime.now(pytz.utc)
        self._commit("Ya existe otra línea de profundización con ese nombre")
        self.db.refresh(model)

        logger.info("Updated track %s, fields=%s", track_id, sorted(changes))
        return model_to_track(model)

    def soft_delete_track(self, track_id: str) -> Track:
        """Mark a track inactive; the record is kept.

        Raises:
            NotFoundError: If the id is unknown.
        """
        model = self._get_model(track_id)
        if model.status != TrackStatus.inactive.value:
            model.status = TrackStatus.inactive.value
            model.version = (model.version or 0) + 1
            model.updated_at = datetime.now(pytz.utc)
            self.db.commit()
            self.db.refresh(model)
        logger.warning("Track %s (%s) marked inactive", track_id, model.name)
        return model_to_track(model)
