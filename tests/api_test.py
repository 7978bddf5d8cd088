from __future__ import annotations

import json
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from ldap_auth.config import LdapConfig, LdapConfigStore, export_config
from ldap_auth.deps import SESSION_COOKIE, get_connection_factory, get_store, require_settings_access
from ldap_auth.env_settings import get_env
from ldap_auth.exceptions import DirectoryConnectionError
from ldap_auth.main import create_app
from ldap_auth.routers.config import MAX_CONFIG_IMPORT_BYTES

from .support.directory import ADMIN_PASSWORD, MockDirectory, hitchhiker_config


@pytest.fixture
def anonymous_client(store: LdapConfigStore, directory: MockDirectory) -> Iterator[TestClient]:
    app = create_app(configure_logging=False)
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_connection_factory] = lambda: directory.connect
    with TestClient(app) as client:
        yield client


@pytest.fixture
def client(anonymous_client: TestClient) -> TestClient:
    anonymous_client.app.dependency_overrides[require_settings_access] = lambda: {
        "u": "admin",
        "settings": True,
    }
    return anonymous_client


def test_profiles(client: TestClient):
    resp = client.get("/api/ldap/profiles")
    assert resp.status_code == 200
    assert "active-directory" in resp.json()


def test_read_default_config(client: TestClient):
    resp = client.get("/api/ldap/config")
    assert resp.status_code == 200
    data = resp.json()
    assert data["schema_version"] == 1
    assert data["enabled"] is False


def test_write_config(client: TestClient, store: LdapConfigStore):
    body = export_config(hitchhiker_config(), include_secrets=True)

    resp = client.put("/api/ldap/config", json=body)

    assert resp.status_code == 200
    assert resp.json()["connection_password"] == ""
    assert resp.json()["base_dn"] == "dc=hitchhiker,dc=com"
    assert store.get().connection_password == ADMIN_PASSWORD


def test_write_invalid_config(client: TestClient, store: LdapConfigStore):
    body = export_config(hitchhiker_config(base_dn="", search_filter="(uid=x)"))

    resp = client.put("/api/ldap/config", json=body)

    assert resp.status_code == 422
    assert resp.json()["detail"] == [
        "base_dn is required",
        "search_filter must contain the {0} placeholder for the username",
    ]
    assert store.get().base_dn == ""


def test_config_test_with_stored_settings(client: TestClient, store: LdapConfigStore):
    store.set(hitchhiker_config())

    resp = client.post(
        "/api/ldap/config/test", json={"username": "trillian", "password": "trilli123"}
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["user"]["name"] == "trillian"
    assert data["groups"] == ["HeartOfGold", "Magrathea", "RestaurantAtTheEnd"]


def test_config_test_with_unsaved_settings(client: TestClient, store: LdapConfigStore):
    store.set(hitchhiker_config())
    settings = export_config(hitchhiker_config(search_filter_group=""))

    resp = client.post(
        "/api/ldap/config/test",
        json={"settings": settings, "username": "trillian", "password": "trilli123"},
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["bind"] is True
    assert data["groups"] == ["HeartOfGold", "Magrathea"]


def test_config_test_failure(client: TestClient, store: LdapConfigStore):
    store.set(hitchhiker_config())

    resp = client.post(
        "/api/ldap/config/test", json={"username": "trillian", "password": "nope"}
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["user"] is None
    assert data["authenticate_user"] is False
    assert data["error"]


def test_export(client: TestClient, store: LdapConfigStore):
    store.set(hitchhiker_config())

    resp = client.get("/api/ldap/config/export")

    assert resp.status_code == 200
    assert resp.json()["connection_password"] == ""
    assert resp.json()["search_filter"] == hitchhiker_config().search_filter


def test_import(client: TestClient, store: LdapConfigStore):
    payload = json.dumps(export_config(hitchhiker_config(), include_secrets=True))

    resp = client.post("/api/ldap/config/import", content=payload)

    assert resp.status_code == 200
    assert store.get() == hitchhiker_config()


@pytest.mark.parametrize(
    "payload, status",
    [
        ("{broken", 400),
        (json.dumps({"search_scope": "everywhere"}), 400),
        (json.dumps({"host_url": "ldap://x", "base_dn": ""}), 422),
        ("x" * (MAX_CONFIG_IMPORT_BYTES + 1), 413),
    ],
)
def test_import_rejected(client: TestClient, payload: str, status: int):
    resp = client.post("/api/ldap/config/import", content=payload)
    assert resp.status_code == status


class RecordingFactory:
    """Connection factory that records bind credentials and refuses every bind."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, str]] = []

    def __call__(self, config: LdapConfig, bind_dn: str, bind_password: str):
        self.calls.append((config.host_url, bind_dn, bind_password))
        raise DirectoryConnectionError(f"bind as {bind_dn} rejected: unavailable")


@pytest.mark.parametrize(
    "method, path",
    [
        ("get", "/api/ldap/profiles"),
        ("get", "/api/ldap/config"),
        ("put", "/api/ldap/config"),
        ("post", "/api/ldap/config/test"),
        ("get", "/api/ldap/config/export"),
        ("post", "/api/ldap/config/import"),
    ],
)
def test_settings_require_session(anonymous_client: TestClient, method: str, path: str):
    resp = anonymous_client.request(method, path, json={})
    assert resp.status_code == 401


def test_tampered_session_rejected(anonymous_client: TestClient):
    anonymous_client.cookies.set(SESSION_COOKIE, "forged-token")
    assert anonymous_client.get("/api/ldap/config").status_code == 401


def test_unauthenticated_write_does_not_change_settings(
    anonymous_client: TestClient, store: LdapConfigStore
):
    store.set(hitchhiker_config())
    body = export_config(hitchhiker_config(host_url="ldap://elsewhere.example:389"))

    resp = anonymous_client.put("/api/ldap/config", json=body)

    assert resp.status_code == 401
    assert store.get().host_url == hitchhiker_config().host_url


def test_bootstrap_login(anonymous_client: TestClient, monkeypatch):
    monkeypatch.setenv("BOOTSTRAP_ADMIN_PASSWORD", "towel-42")
    get_env.cache_clear()

    resp = anonymous_client.post(
        "/api/auth/login", json={"username": "admin", "password": "towel-42"}
    )

    assert resp.status_code == 200
    assert resp.json()["settings"] is True
    assert anonymous_client.get("/api/ldap/config").status_code == 200


def test_bootstrap_login_disabled_without_password(anonymous_client: TestClient):
    resp = anonymous_client.post("/api/auth/login", json={"username": "admin", "password": "x"})
    assert resp.status_code == 401


def test_ldap_login_with_settings_group(
    anonymous_client: TestClient, store: LdapConfigStore, monkeypatch
):
    monkeypatch.setenv("LDAPAUTH_SETTINGS_GROUP", "HeartOfGold")
    get_env.cache_clear()
    store.set(hitchhiker_config())

    resp = anonymous_client.post(
        "/api/auth/login", json={"username": "trillian", "password": "trilli123"}
    )

    assert resp.status_code == 200
    assert resp.json() == {
        "username": "trillian",
        "settings": True,
        "groups": ["HeartOfGold", "Magrathea", "RestaurantAtTheEnd"],
    }
    assert anonymous_client.get("/api/ldap/config").status_code == 200


def test_ldap_login_without_settings_group(
    anonymous_client: TestClient, store: LdapConfigStore, monkeypatch
):
    monkeypatch.setenv("LDAPAUTH_SETTINGS_GROUP", "Vogons")
    get_env.cache_clear()
    store.set(hitchhiker_config())

    resp = anonymous_client.post(
        "/api/auth/login", json={"username": "trillian", "password": "trilli123"}
    )

    assert resp.status_code == 200
    assert resp.json()["settings"] is False
    assert anonymous_client.get("/api/ldap/config").status_code == 403


@pytest.mark.parametrize(
    "username, password, status",
    [("trillian", "wrong", 401), ("arthur", "towel", 401), ("", "x", 400), ("trillian", "", 400)],
)
def test_login_rejected(
    anonymous_client: TestClient, store: LdapConfigStore, username: str, password: str, status: int
):
    store.set(hitchhiker_config())

    resp = anonymous_client.post("/api/auth/login", json={"username": username, "password": password})

    assert resp.status_code == status
    assert SESSION_COOKIE not in resp.cookies


def test_logout(anonymous_client: TestClient):
    resp = anonymous_client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert SESSION_COOKIE in resp.headers.get("set-cookie", "")


def test_config_test_other_host_gets_no_stored_password(
    client: TestClient, store: LdapConfigStore
):
    store.set(hitchhiker_config(connection_password="stored-service-secret"))
    factory = RecordingFactory()
    client.app.dependency_overrides[get_connection_factory] = lambda: factory
    settings = export_config(hitchhiker_config(host_url="ldap://elsewhere.example:389"))

    resp = client.post(
        "/api/ldap/config/test",
        json={"settings": settings, "username": "trillian", "password": "trilli123"},
    )

    assert resp.status_code == 200
    assert resp.json()["bind"] is False
    assert factory.calls == [("ldap://elsewhere.example:389", hitchhiker_config().connection_dn, "")]
    assert "stored-service-secret" not in resp.text


def test_config_test_other_bind_dn_gets_no_stored_password(
    client: TestClient, store: LdapConfigStore
):
    store.set(hitchhiker_config(connection_password="stored-service-secret"))
    factory = RecordingFactory()
    client.app.dependency_overrides[get_connection_factory] = lambda: factory
    settings = export_config(hitchhiker_config(connection_dn="cn=someone,dc=elsewhere"))

    client.post(
        "/api/ldap/config/test",
        json={"settings": settings, "username": "trillian", "password": "trilli123"},
    )

    assert [password for _, _, password in factory.calls] == [""]


def test_config_test_same_target_uses_stored_password(
    client: TestClient, store: LdapConfigStore
):
    store.set(hitchhiker_config(connection_password="stored-service-secret"))
    factory = RecordingFactory()
    client.app.dependency_overrides[get_connection_factory] = lambda: factory
    settings = export_config(hitchhiker_config())

    client.post(
        "/api/ldap/config/test",
        json={"settings": settings, "username": "trillian", "password": "trilli123"},
    )

    assert [password for _, _, password in factory.calls] == ["stored-service-secret"]


def test_write_config_other_host_drops_stored_password(
    client: TestClient, store: LdapConfigStore
):
    store.set(hitchhiker_config())
    body = export_config(hitchhiker_config(host_url="ldap://elsewhere.example:389"))

    resp = client.put("/api/ldap/config", json=body)

    assert resp.status_code == 200
    assert store.get().host_url == "ldap://elsewhere.example:389"
    assert store.get().connection_password == ""


def test_write_config_same_host_keeps_stored_password(
    client: TestClient, store: LdapConfigStore
):
    store.set(hitchhiker_config())
    body = export_config(hitchhiker_config(base_dn="dc=hitchhiker,dc=com", search_scope="one"))

    resp = client.put("/api/ldap/config", json=body)

    assert resp.status_code == 200
    assert store.get().search_scope == "one"
    assert store.get().connection_password == ADMIN_PASSWORD


def test_health(anonymous_client: TestClient):
    resp = anonymous_client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
