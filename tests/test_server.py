import pytest

from leal.server import build_app, main


@pytest.fixture
def app():
    application = build_app({"DATABASE_URL": "sqlite://"})
    yield application
    application.extensions["leal"]["transaction_service"].shutdown()


def _setup_business(client):
    business = {
        "razon_social": "Empresa XYZ",
        "nit": 987654321,
        "telefono": 5550100,
        "correo": "empresa@example.com",
        "valor_conversion": {"valor_minimo": 0, "puntos_por_unidad": 2, "cashback_por_unidad": 0.2},
    }
    assert client.post("/api/v1/business", json=business).status_code == 200
    branch = {
        "nit_empresa": 987654321,
        "nombre_sucursal": "Sucursal Central",
        "valor_conversion": {"valor_minimo": 0, "puntos_por_unidad": 1, "cashback_por_unidad": 0.05},
    }
    assert client.post("/api/v1/branches/", json=branch).status_code == 200


def test_branches_round_trip(app):
    client = app.test_client()
    _setup_business(client)
    response = client.get("/api/v1/branches/?tax_id=987654321")
    assert response.status_code == 200
    assert [b["nombre"] for b in response.get_json()["sucursales"]] == ["Sucursal Central"]


def test_duplicate_business_is_conflict(app):
    client = app.test_client()
    _setup_business(client)
    again = {"razon_social": "Empresa XYZ", "nit": 1, "telefono": 2, "correo": "otra@example.com"}
    response = client.post("/api/v1/business", json=again)
    assert response.status_code == 409
    assert response.get_json()["error"]["code"] == "DUPLICATE_KEY"


def test_unknown_business_branches_not_found(app):
    response = app.test_client().get("/api/v1/branches/?tax_id=1")
    assert response.status_code == 404


def test_transaction_credits_balance_with_branch_factor(app):
    client = app.test_client()
    _setup_business(client)
    user = {"nombre": "Juan Pérez", "numero_documento": 123456789, "correo": "juan.perez@example.com"}
    assert client.post("/api/v1/users/", json=user).status_code == 200
    purchase = {"usuario": {"numero_documento": 123456789}, "id_sucursal": 1, "valor": 200}
    response = client.post("/api/v1/transactions", json=purchase)
    assert response.get_json() == {"message": "Transacción encolada"}

    app.extensions["leal"]["transaction_service"].shutdown()
    balance = app.extensions["leal"]["repository"].get_user_balance(123456789)
    assert balance.points == 200
    assert balance.cashback == pytest.approx(10.0)


def test_main_fails_without_database(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("DATABASE_URL", "notadialect://")
    log_file = tmp_path / "error.log"
    assert main(["--log-file", str(log_file)]) == 1
    assert "cannot open the database" in log_file.read_text(encoding="utf-8")


def test_main_reads_env_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    (tmp_path / ".env").write_text("DATABASE_URL=notadialect://\n", encoding="utf-8")
    log_file = tmp_path / "error.log"
    assert main(["--log-file", str(log_file)]) == 1
    assert "notadialect" in log_file.read_text(encoding="utf-8")