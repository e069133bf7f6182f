"""Authentication routes.

This module handles HTTP endpoints for registration, login, profile and
password change, and provides the bearer-token guards used by other routers.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.dependencies import TokenServiceDep, UserManagerDep
from core.exceptions import ForbiddenError, InvalidTokenError, UnauthenticatedError
from schemas.user import (
    AuthResult,
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    User,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

# HTTP Bearer token security; missing headers are reported by verify_token
security = HTTPBearer(auto_error=False)


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def _auth_payload(result: AuthResult, message: str) -> dict:
    return {
        "success": True,
        "message": message,
        "token": result.token,
        "usuario": result.user.model_dump(by_alias=True, mode="json"),
    }


def verify_token(
    tokens: TokenServiceDep,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Verify the bearer token from the Authorization header.

    Args:
        tokens: Session token service.
        credentials: HTTP Bearer token credentials, None when absent.

    Returns:
        The user id carried by the token.

    Raises:
        UnauthenticatedError: If the header is missing or the token is invalid.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError("Token de acceso requerido")
    try:
        return tokens.verify(credentials.credentials)
    except InvalidTokenError as e:
        logger.info("Rejected session token: %s", e)
        raise UnauthenticatedError("Token inválido o expirado") from e


def get_current_user(
    request: Request,
    user_manager: UserManagerDep,
    user_id: str = Depends(verify_token),
) -> User:
    """Get current authenticated user and attach it to the request state.

    Args:
        request: Incoming request.
        user_manager: Injected UserManager instance.
        user_id: Identity resolved from the token.

    Returns:
        Current User object.

    Raises:
        UnauthenticatedError: If the user no longer exists.
    """
    user = user_manager.get_user_by_id(user_id)
    if user is None:
        raise UnauthenticatedError("Usuario no encontrado")
    request.state.user = user
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Like get_current_user, but only admins pass.

    Raises:
        ForbiddenError: If the authenticated user is not an admin.
    """
    if not current_user.is_admin:
        raise ForbiddenError("Se requieren privilegios de administrador")
    return current_user


@router.post("/registro", status_code=status.HTTP_201_CREATED, summary="Registrar usuario")
def register(
    req: RegisterRequest,
    request: Request,
    user_manager: UserManagerDep,
) -> dict:
    """Register a new user and return a session token for it.

    The role defaults to 'estudiante'.
    """
    result = user_manager.register(
        name=req.name,
        email=req.email,
        password=req.password,
        role=req.role,
        admin_token=req.admin_token,
    )
    logger.info("Auth event REGISTRO_EXITOSO user=%s ip=%s", result.user.id, _client_ip(request))
    return _auth_payload(result, "Usuario registrado exitosamente")


@router.post("/login", summary="Iniciar sesión")
def login(
    req: LoginRequest,
    request: Request,
    user_manager: UserManagerDep,
) -> dict:
    """Login with email and password."""
    result = user_manager.login(req.email, req.password)
    logger.info("Auth event LOGIN_EXITOSO user=%s ip=%s", result.user.id, _client_ip(request))
    return _auth_payload(result, "Login exitoso")


@router.post("/logout", summary="Cerrar sesión")
def logout() -> dict:
    """Logout endpoint.

    Tokens are stateless, so logout happens client-side by discarding the
    token. This endpoint exists for API consistency.
    """
    return {"success": True, "message": "Sesión cerrada exitosamente"}


@router.get("/perfil", summary="Obtener perfil del usuario autenticado")
def get_profile(
    user_manager: UserManagerDep,
    current_user: User = Depends(get_current_user),
) -> dict:
    profile = user_manager.get_profile(current_user.user_id)
    return {"success": True, "usuario": profile.model_dump(by_alias=True, mode="json")}


@router.put("/cambiar-password", summary="Cambiar contraseña")
def change_password(
    req: ChangePasswordRequest,
    request: Request,
    user_manager: UserManagerDep,
    current_user: User = Depends(get_current_user),
) -> dict:
    user_manager.change_password(
        current_user.user_id, req.current_password, req.new_password
    )
    logger.info(
        "Auth event PASSWORD_CAMBIADA user=%s ip=%s",
        current_user.user_id,
        _client_ip(request),
    )
    return {"success": True, "message": "Contraseña actualizada exitosamente"}
