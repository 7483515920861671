import pytest
from fastapi.testclient import TestClient

from dbkeep.app import create_app


@pytest.fixture
def client():
    return TestClient(create_app())


def test_parse_returns_camel_case_schema(client, users_sql):
    response = client.post("/sql/parse", json={"sql": users_sql, "dialect": "PostgreSQL"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["errors"] == []

    table = body["tables"][0]
    assert table["name"] == "users"
    id_column = table["columns"][0]
    assert id_column["type"] == "SERIAL"
    assert id_column["primaryKey"] is True
    assert "primary_key" not in id_column


def test_parse_syntax_error_is_reported_in_body(client):
    """문법 오류는 HTTP 오류가 아니라 errors 목록으로 돌려준다."""
    response = client.post("/sql/parse", json={"sql": "CREATE TABLE t (id INT", "dialect": "PostgreSQL"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["tables"] == []
    assert len(body["errors"]) == 1
    assert body["errors"][0]["line"] >= 1


def test_unsupported_dialect_is_bad_request(client):
    response = client.post("/sql/parse", json={"sql": "CREATE TABLE t (id INT);", "dialect": "Oracle"})

    assert response.status_code == 400


def test_validate(client):
    valid = client.post("/sql/validate", json={"sql": "CREATE TABLE t (id INT);"})
    invalid = client.post("/sql/validate", json={"sql": "CREATE TABLE t (id INT", "dialect": "MySQL"})

    assert valid.status_code == 200
    assert valid.json() == {"valid": True, "errors": []}
    assert invalid.json()["valid"] is False


def test_generate(client):
    payload = {
        "dialect": "MySQL",
        "tables": [{
            "id": "t-users",
            "name": "users",
            "columns": [
                {"id": "c-id", "name": "id", "type": "SERIAL", "primaryKey": True, "nullable": False, "unique": True},
                {"id": "c-name", "name": "name", "type": "VARCHAR", "length": 100, "nullable": False},
            ],
        }],
        "relations": [],
    }

    response = client.post("/sql/generate", json=payload)

    assert response.status_code == 200
    sql = response.json()["sql"]
    assert sql.startswith("-- Generated by DBKeep\n-- Database: MySQL\n")
    assert "  id INT AUTO_INCREMENT PRIMARY KEY,\n  name VARCHAR(100) NOT NULL\n);" in sql


def test_reconcile_rename(client):
    original_sql = "CREATE TABLE customers (id SERIAL PRIMARY KEY);"
    parsed = client.post("/sql/parse", json={"sql": original_sql}).json()
    customers = parsed["tables"][0]
    customers["position"] = {"x": 40, "y": 60}

    response = client.post("/sql/reconcile", json={
        "tables": [customers],
        "relations": [],
        "originalSql": original_sql,
        "sql": "CREATE TABLE clients (id SERIAL PRIMARY KEY);",
        "dialect": "PostgreSQL",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["renamedTables"] == {"customers": "clients"}
    clients = body["tables"][0]
    assert clients["id"] == customers["id"]
    assert clients["columns"][0]["id"] == customers["columns"][0]["id"]
    assert clients["position"] == {"x": 40, "y": 60}


def test_reconcile_with_invalid_sql_keeps_current_schema(client):
    table = {"id": "t-1", "name": "users", "columns": [{"id": "c-1", "name": "id", "type": "INT"}]}

    response = client.post("/sql/reconcile", json={
        "tables": [table],
        "sql": "CREATE TABLE users (id INT",
    })

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is False
    assert body["tables"][0]["id"] == "t-1"
    assert len(body["errors"]) == 1
