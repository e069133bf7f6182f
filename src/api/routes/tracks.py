"""Specialization track routes.

Reads are public; create, update and delete require an admin session.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from api.routes.auth import require_admin
from core.dependencies import TrackManagerDep
from schemas.track import Track, TrackCreateRequest, TrackUpdateRequest
from schemas.user import User
from utils.track_manager import build_filters

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lineas", tags=["Lineas"])


def _dump(track: Track) -> dict:
    return track.model_dump(by_alias=True, mode="json")


@router.get("", summary="Listar líneas de profundización")
def list_tracks(
    track_manager: TrackManagerDep,
    area: Optional[List[str]] = Query(default=None),
    estado: Optional[str] = None,
    pagina: Optional[str] = None,
    limite: Optional[str] = None,
    ordenar: Optional[str] = None,
) -> dict:
    """List tracks with filtering, ordering and pagination.

    ``area`` may be repeated to match any of several areas. ``ordenar`` is one
    of 'nombre' (default), 'fecha' or 'creditos'.
    """
    filters = build_filters(
        area=area,
        status=estado,
        page=pagina,
        limit=limite,
        sort=ordenar,
    )
    page = track_manager.list_tracks(filters)
    return {
        "success": True,
        "data": [_dump(t) for t in page.items],
        "paginacion": page.pagination.model_dump(by_alias=True),
        "count": len(page.items),
    }


@router.get("/estadisticas", summary="Estadísticas de líneas")
def get_statistics(track_manager: TrackManagerDep) -> dict:
    stats = track_manager.get_statistics()
    return {"success": True, "data": stats.model_dump(by_alias=True)}


@router.get("/buscar", summary="Buscar líneas por texto")
def search_tracks(
    track_manager: TrackManagerDep,
    q: Optional[str] = None,
    limite: Optional[str] = None,
) -> dict:
    """Search active tracks; the term must have at least 2 characters."""
    tracks = track_manager.search_tracks(q, limite)
    return {"success": True, "data": [_dump(t) for t in tracks], "count": len(tracks)}


@router.get("/{track_id}", summary="Obtener línea por ID")
def get_track(track_id: str, track_manager: TrackManagerDep) -> dict:
    return {"success": True, "data": _dump(track_manager.get_track(track_id))}


@router.post("", status_code=status.HTTP_201_CREATED, summary="Crear línea")
def create_track(
    req: TrackCreateRequest,
    track_manager: TrackManagerDep,
    current_user: User = Depends(require_admin),
) -> dict:
    track = track_manager.create_track(req)
    logger.info("Track %s created by %s", track.track_id, current_user.user_id)
    return {
        "success": True,
        "message": "Línea de profundización creada exitosamente",
        "data": _dump(track),
    }


@router.put("/{track_id}", summary="Actualizar línea")
def update_track(
    track_id: str,
    req: TrackUpdateRequest,
    track_manager: TrackManagerDep,
    current_user: User = Depends(require_admin),
) -> dict:
    track = track_manager.update_track(track_id, req)
    logger.info("Track %s updated by %s", track_id, current_user.user_id)
    return {
        "success": True,
        "message": "Línea actualizada exitosamente",
        "data": _dump(track),
    }


@router.delete("/{track_id}", summary="Eliminar línea (marcar inactiva)")
def delete_track(
    track_id: str,
    track_manager: TrackManagerDep,
    current_user: User = Depends(require_admin),
) -> dict:
    track_manager.soft_delete_track(track_id)
    logger.warning("Track %s deactivated by %s", track_id, current_user.user_id)
    return {"success": True, "message": "Línea eliminada exitosamente"}
