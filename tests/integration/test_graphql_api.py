# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Integration tests for the /graphql endpoint."""

from __future__ import annotations

LIST_QUERY = "{ productos { id titulo estado self { link } } }"

CREATE_MUTATION = """
mutation Create($titulo: String!, $descripcion: String!) {
  createProducto(
    titulo: $titulo
    descripcion: $descripcion
    precio: 19990
    nucleos: 4
    ram: 8
    disco: 200
    cluster: "Cluster Norte"
  ) {
    id
    titulo
    estado
    self { link }
  }
}
"""

CREATE_VARIABLES = {"titulo": "Servidor Pro", "descripcion": "Servidor dedicado de alto rendimiento"}


class TestQueries:
    async def test_list(self, client, auth_headers) -> None:
        resp = await client.post("/graphql", json={"query": LIST_QUERY}, headers=auth_headers("readonly"))
        assert resp.status_code == 200
        body = resp.json()
        assert "errors" not in body
        products = body["data"]["productos"]
        assert [p["id"] for p in products] == [1, 2]
        assert products[0]["self"]["link"] == "https://ejemplo.com/productos/1"

    async def test_search_argument(self, client, auth_headers) -> None:
        query = '{ products(search: "avanzado") { id } }'
        resp = await client.post("/graphql", json={"query": query}, headers=auth_headers())
        assert resp.json()["data"]["products"] == [{"id": 2}]

    async def test_single_product(self, client, auth_headers) -> None:
        query = "query One($id: Int!) { producto(id: $id) { titulo } }"
        resp = await client.post(
            "/graphql", json={"query": query, "variables": {"id": 1}}, headers=auth_headers()
        )
        assert resp.json()["data"]["producto"] == {"titulo": "Servidor VPS Básico"}

    async def test_missing_product_is_null(self, client, auth_headers) -> None:
        resp = await client.post("/graphql", json={"query": "{ product(id: 99) { id } }"}, headers=auth_headers())
        assert resp.json()["data"]["product"] is None


class TestMutations:
    async def test_create(self, client, app, auth_headers) -> None:
        resp = await client.post(
            "/graphql",
            json={"query": CREATE_MUTATION, "variables": CREATE_VARIABLES},
            headers=auth_headers("user"),
        )
        assert resp.status_code == 200
        created = resp.json()["data"]["createProducto"]
        assert created["id"] == 3
        assert created["estado"] == "activo"
        assert created["self"]["link"] == "https://ejemplo.com/productos/3"
        assert await app.state.services.catalog.repository.find_by_id(3) is not None

    async def test_readonly_cannot_create(self, client, auth_headers) -> None:
        resp = await client.post(
            "/graphql",
            json={"query": CREATE_MUTATION, "variables": CREATE_VARIABLES},
            headers=auth_headers("readonly"),
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["data"] is None
        assert body["errors"][0]["extensions"]["code"] == "FORBIDDEN"

    async def test_invalid_fields_reported(self, client, auth_headers) -> None:
        resp = await client.post(
            "/graphql",
            json={"query": CREATE_MUTATION, "variables": {**CREATE_VARIABLES, "descripcion": "corta"}},
            headers=auth_headers(),
        )
        error = resp.json()["errors"][0]
        assert error["extensions"]["code"] == "VALIDATION_ERROR"
        assert "descripcion must be at least 10 characters" in error["extensions"]["details"]


class TestGuards:
    async def test_requires_credential(self, client) -> None:
        resp = await client.post("/graphql", json={"query": LIST_QUERY})
        assert resp.status_code == 401
        assert resp.json()["error"] == "MISSING_CREDENTIAL"

    async def test_introspection_rejected(self, client, auth_headers) -> None:
        resp = await client.post(
            "/graphql", json={"query": "{ __schema { types { name } } }"}, headers=auth_headers()
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "THREAT_DETECTED"

    async def test_deep_query_rejected(self, client, auth_headers, security_events) -> None:
        query = "{" * 11 + "}" * 11
        resp = await client.post("/graphql", json={"query": query}, headers=auth_headers())
        assert resp.status_code == 400

        threats = next(e for e in security_events() if e["event_type"] == "injection_attempt")["context"]["threats"]
        assert {"signature": "graphql", "field": "body.query",
                "description": "Query too deep (possible denial of service)"} in threats

    async def test_variables_scanned(self, client, auth_headers) -> None:
        resp = await client.post(
            "/graphql",
            json={"query": CREATE_MUTATION, "variables": {**CREATE_VARIABLES, "titulo": "<script>x</script>"}},
            headers=auth_headers(),
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "THREAT_DETECTED"
