"""HTTP client for the Lineas de Profundizacion API.

Attaches the stored bearer token to every request and persists the token and
user returned by login/registration. Any 401 response clears the stored
session before ``UnauthorizedError`` is raised.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from client.exceptions import ApiConnectionError, ApiRequestError, UnauthorizedError
from client.session_store import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000/api"
DEFAULT_TIMEOUT_SECONDS = 10.0


class LineasApiClient:
    """Client for the auth and track endpoints."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        store: Optional[SessionStore] = None,
        http_client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """Initialize the client.

        Args:
            base_url: API root, e.g. "http://localhost:5000/api".
            store: Session store; the default file location if omitted.
            http_client: Preconfigured httpx client (its base_url wins).
            timeout: Request timeout in seconds for the default httpx client.
        """
        self.store = store or SessionStore()
        self._owns_http = http_client is None
        self.http = http_client or httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> "LineasApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        headers = kwargs.pop("headers", {})
        token = self.store.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = self.http.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise ApiConnectionError("La solicitud al servidor excedió el tiempo de espera") from e
        except httpx.TransportError as e:
            logger.error("Network error calling %s %s: %s", method, path, e)
            raise ApiConnectionError(
                "Error de conexión. Verifica tu conexión a internet."
            ) from e

        try:
            body = response.json()
        except ValueError:
            body = None
        message = body.get("message") if isinstance(body, dict) else None

        if response.status_code == 401:
            logger.warning("Session rejected by server, clearing local session")
            self.store.logout()
            raise UnauthorizedError(message or "No autorizado", 401, body)
        if response.is_error:
            raise ApiRequestError(message or "Error del servidor", response.status_code, body)
        return body if isinstance(body, dict) else {}

    def _remember(self, body: Dict[str, Any]) -> Dict[str, Any]:
        if body.get("token") and body.get("usuario"):
            self.store.save_token(body["token"])
            self.store.save_user(body["usuario"])
        return body

    # --- Auth ---

    def register(
        self,
        nombre: str,
        email: str,
        password: str,
        rol: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = {"nombre": nombre, "email": email, "password": password}
        if rol:
            payload["rol"] = rol
        return self._remember(self._request("POST", "/auth/registro", json=payload))

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._remember(
            self._request("POST", "/auth/login", json={"email": email, "password": password})
        )

    def logout(self) -> None:
        self.store.logout()

    def get_profile(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/perfil")["usuario"]

    def change_password(self, current_password: str, new_password: str) -> Dict[str, Any]:
        return self._request(
            "PUT",
            "/auth/cambiar-password",
            json={"passwordActual": current_password, "nuevaPassword": new_password},
        )

    # --- Tracks ---

    def list_tracks(
        self,
        area: Optional[Any] = None,
        estado: Optional[str] = None,
        pagina: Optional[int] = None,
        limite: Optional[int] = None,
        ordenar: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Return the full list envelope (``data``, ``paginacion``, ``count``)."""
        params = {
            "area": area,
            "estado": estado,
            "pagina": pagina,
            "limite": limite,
            "ordenar": ordenar,
        }
        params = {k: v for k, v in params.items() if v is not None}
        return self._request("GET", "/lineas", params=params)

    def get_statistics(self) -> Dict[str, Any]:
        return self._request("GET", "/lineas/estadisticas")["data"]

    def search_tracks(self, q: str, limite: Optional[int] = None) -> List[Dict[str, Any]]:
        params = {"q": q}
        if limite is not None:
            params["limite"] = limite
        return self._request("GET", "/lineas/buscar", params=params)["data"]

    def get_track(self, track_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/lineas/{track_id}")["data"]

    def create_track(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/lineas", json=fields)["data"]

    def update_track(self, track_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/lineas/{track_id}", json=fields)["data"]

    def delete_track(self, track_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/lineas/{track_id}")
