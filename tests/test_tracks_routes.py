from fastapi.testclient import TestClient

from app import app
from conftest import track_payload
from core.dependencies import get_track_manager


def _create(client, headers, name="Ingeniería de Datos", **overrides):
    response = client.post("/lineas", headers=headers, json=track_payload(name, **overrides))
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_create_track_envelope(client, admin_headers):
    response = client.post("/lineas", headers=admin_headers, json=track_payload())
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Línea de profundización creada exitosamente"
    data = body["data"]
    assert data["_id"]
    assert data["nombre"] == "Ingeniería de Datos"
    assert data["estado"] == "activa"
    assert data["materias"] == ["Bases de Datos II", "Big Data"]
    assert data["version"] == 0
    assert {"fechaCreacion", "fechaActualizacion", "creditosRequeridos"} <= set(data)


def test_mutations_require_token(client, admin_headers):
    track_id = _create(client, admin_headers)["_id"]

    assert client.post("/lineas", json=track_payload("Otra")).status_code == 401
    assert client.put(f"/lineas/{track_id}", json={"creditosRequeridos": 3}).status_code == 401
    assert client.delete(f"/lineas/{track_id}").status_code == 401


def test_mutations_require_admin(client, admin_headers, student_headers):
    track_id = _create(client, admin_headers)["_id"]

    create = client.post("/lineas", headers=student_headers, json=track_payload("Otra"))
    assert create.status_code == 403
    assert create.json() == {
        "success": False,
        "message": "Se requieren privilegios de administrador",
    }
    assert (
        client.put(
            f"/lineas/{track_id}", headers=student_headers, json={"creditosRequeridos": 3}
        ).status_code
        == 403
    )
    assert client.delete(f"/lineas/{track_id}", headers=student_headers).status_code == 403


def test_reads_are_public(client, admin_headers):
    track_id = _create(client, admin_headers)["_id"]
    assert client.get("/lineas").status_code == 200
    assert client.get(f"/lineas/{track_id}").status_code == 200
    assert client.get("/lineas/estadisticas").status_code == 200
    assert client.get("/lineas/buscar", params={"q": "datos"}).status_code == 200


def test_list_envelope_and_pagination(client, admin_headers):
    for i in range(1, 26):
        _create(client, admin_headers, f"Línea {i:02d}")

    response = client.get("/lineas", params={"pagina": 3, "limite": 10})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["count"] == 5
    assert [t["nombre"] for t in body["data"]] == [f"Línea {i}" for i in range(21, 26)]
    assert body["paginacion"] == {
        "total": 25,
        "pagina": 3,
        "limite": 10,
        "totalPaginas": 3,
        "tieneSiguiente": False,
        "tieneAnterior": True,
    }


def test_list_tolerates_bad_paging_values(client, admin_headers):
    _create(client, admin_headers)
    response = client.get("/lineas", params={"pagina": "abc", "limite": "9999"})
    assert response.status_code == 200
    assert response.json()["paginacion"]["pagina"] == 1
    assert response.json()["paginacion"]["limite"] == 50


def test_list_with_huge_page_number_is_empty(client, admin_headers):
    _create(client, admin_headers)
    response = client.get("/lineas", params={"pagina": "1000000000000000000"})
    assert response.status_code == 200
    body = response.json()
    assert body["data"] == []
    assert body["count"] == 0
    assert body["paginacion"]["total"] == 1
    assert body["paginacion"]["tieneSiguiente"] is False


def test_list_filters_by_repeated_area(client, admin_headers):
    _create(client, admin_headers, "Visión por Computador", areaConocimiento="IA")
    _create(client, admin_headers, "Redes Avanzadas", areaConocimiento="Redes")
    _create(client, admin_headers, "Sistemas Embebidos", areaConocimiento="Hardware")

    response = client.get("/lineas", params=[("area", "IA"), ("area", "Redes")])

    names = sorted(t["nombre"] for t in response.json()["data"])
    assert names == ["Redes Avanzadas", "Visión por Computador"]


def test_list_sort_by_credits(client, admin_headers):
    _create(client, admin_headers, "A", creditosRequeridos=9)
    _create(client, admin_headers, "B", creditosRequeridos=3)
    response = client.get("/lineas", params={"ordenar": "creditos"})
    assert [t["creditosRequeridos"] for t in response.json()["data"]] == [3, 9]


def test_get_unknown_track_is_404(client):
    response = client.get("/lineas/no-existe")
    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "message": "Línea de profundización no encontrada",
    }


def test_create_duplicate_name_is_409(client, admin_headers):
    _create(client, admin_headers, "Redes Avanzadas")
    response = client.post(
        "/lineas", headers=admin_headers, json=track_payload("redes AVANZADAS")
    )
    assert response.status_code == 409
    assert response.json()["success"] is False


def test_create_missing_fields_is_400(client, admin_headers):
    response = client.post("/lineas", headers=admin_headers, json={"nombre": "Incompleta"})
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "Todos los campos obligatorios deben ser proporcionados",
    }


def test_create_with_non_numeric_credits_is_400(client, admin_headers):
    response = client.post(
        "/lineas", headers=admin_headers, json=track_payload(creditosRequeridos="muchos")
    )
    assert response.status_code == 400
    assert response.json()["message"].startswith("Datos de entrada inválidos")


def test_update_partial(client, admin_headers):
    created = _create(client, admin_headers)
    response = client.put(
        f"/lineas/{created['_id']}", headers=admin_headers, json={"creditosRequeridos": 20}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Línea actualizada exitosamente"
    assert body["data"]["creditosRequeridos"] == 20
    assert body["data"]["nombre"] == created["nombre"]
    assert body["data"]["version"] == created["version"] + 1


def test_update_unknown_track_is_404(client, admin_headers):
    response = client.put("/lineas/no-existe", headers=admin_headers, json={"creditosRequeridos": 2})
    assert response.status_code == 404


def test_delete_is_soft(client, admin_headers):
    track_id = _create(client, admin_headers, "Computación en la Nube")["_id"]

    response = client.delete(f"/lineas/{track_id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Línea eliminada exitosamente"}

    fetched = client.get(f"/lineas/{track_id}").json()["data"]
    assert fetched["estado"] == "inactiva"
    assert client.get("/lineas/buscar", params={"q": "nube"}).json()["data"] == []
    assert client.delete(f"/lineas/{track_id}", headers=admin_headers).status_code == 200


def test_search(client, admin_headers):
    _create(client, admin_headers, "Visión por Computador", areaConocimiento="IA")
    response = client.get("/lineas/buscar", params={"q": "visión"})
    body = response.json()
    assert body["success"] is True
    assert body["count"] == 1
    assert body["data"][0]["nombre"] == "Visión por Computador"


def test_search_short_term_is_400(client):
    response = client.get("/lineas/buscar", params={"q": "a"})
    assert response.status_code == 400
    assert response.json()["message"] == "Término de búsqueda debe tener al menos 2 caracteres"
    assert client.get("/lineas/buscar").status_code == 400


def test_statistics(client, admin_headers):
    _create(client, admin_headers, "A", areaConocimiento="IA", creditosRequeridos=10)
    _create(client, admin_headers, "B", areaConocimiento="Datos", creditosRequeridos=20)

    data = client.get("/lineas/estadisticas").json()["data"]

    assert data == {
        "totalLineas": 2,
        "lineasActivas": 2,
        "lineasInactivas": 0,
        "lineasPorArea": {"IA": 1, "Datos": 1},
        "creditosPromedio": 15.0,
    }


def test_routes_under_api_prefix(client, admin_headers):
    created = client.post("/api/lineas", headers=admin_headers, json=track_payload())
    assert created.status_code == 201
    listed = client.get("/api/lineas")
    assert listed.json()["paginacion"]["total"] == 1


def test_health_and_root(client):
    for path in ("/health", "/api/health"):
        response = client.get(path)
        assert response.status_code == 200
        assert response.json()["success"] is True
    assert client.get("/").json()["name"] == "Lineas de Profundizacion API"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/no-existe")
    assert response.status_code == 404
    assert response.json()["success"] is False


def test_unexpected_errors_are_500_without_details(client):
    def broken_manager():
        raise RuntimeError("conexión perdida")

    app.dependency_overrides[get_track_manager] = broken_manager
    response = TestClient(app, raise_server_exceptions=False).get("/lineas")

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Error interno del servidor"}
