from tests.helpers import add_module, auth

API = "/api/v1"


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy"}
    assert resp.headers["X-Frame-Options"] == "DENY"


def test_me_requires_token(client):
    resp = client.get(f"{API}/auth/me")
    assert resp.status_code == 401


def test_me_rejects_unknown_token(client):
    resp = client.get(f"{API}/auth/me", headers=auth("forged-token"))
    assert resp.status_code == 401


def test_me_without_profile(client):
    resp = client.get(f"{API}/auth/me", headers=auth("orphan-token"))
    assert resp.status_code == 403
    assert "Perfil" in resp.json()["detail"]


def test_me_inactive_profile(client):
    resp = client.get(f"{API}/auth/me", headers=auth("inactive-token"))
    assert resp.status_code == 403


def test_me_returns_role_grants_and_modules(client, db):
    add_module(db, "Equipamentos", "equipamentos")
    add_module(db, "Relatórios", "relatorios")
    resp = client.get(f"{API}/auth/me", headers=auth("tec-token"))
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["role"] == "tecnico"
    assert body["company_id"] == "c1"
    assert "ordens:update" in body["permissions"]
    assert "ordens:delete" not in body["permissions"]
    assert [m["module_name"] for m in body["modules"]] == ["equipamentos"]


def test_navigation_for_admin_master(client):
    resp = client.get(f"{API}/access/navigation", headers=auth("master-token"))
    assert resp.status_code == 200, resp.text
    titles = [item["title"] for item in resp.json()["items"]]
    assert titles == ["Dashboard", "Cadastros", "Configurações"]


def test_user_modules(client, db):
    add_module(db, "Equipamentos", "equipamentos", icon="Package")
    resp = client.get(f"{API}/access/modules", headers=auth("tec-token"))
    assert resp.status_code == 200
    assert resp.json()["modules"][0]["module_url"] == "/equipamentos"


def test_access_check_without_session(client):
    resp = client.post(f"{API}/access/check", json={"route": "/dashboard"})
    assert resp.status_code == 200
    assert resp.json()["state"] == "denied"
    assert resp.json()["message"].startswith("Acesso negado")


def test_access_check_granted_by_role(client):
    resp = client.post(
        f"{API}/access/check",
        json={"route": "/ordens", "allowed_roles": ["tecnico"]},
        headers=auth("tec-token"),
    )
    assert resp.json()["state"] == "granted"


def test_access_check_denied_with_fallback(client, db):
    add_module(db, "Relatórios", "relatorios")
    resp = client.post(
        f"{API}/access/check",
        json={"route": "/relatorios", "allowed_roles": ["gestor"], "fallback": "/dashboard"},
        headers=auth("tec-token"),
    )
    body = resp.json()
    assert body["state"] == "denied"
    assert body["fallback"] == "/dashboard"
    assert body["message"] is None


def test_module_can_endpoint(client, db):
    module = add_module(db, "Equipamentos", "equipamentos")
    url = f"{API}/access/modules/{module['id']}/can"
    assert client.get(url, params={"action": "view"}, headers=auth("tec-token")).json()["allowed"] is True
    assert client.get(url, params={"action": "delete"}, headers=auth("tec-token")).json()["allowed"] is False
    assert client.get(url, params={"action": "export"}, headers=auth("tec-token")).status_code == 422


def test_system_role_cannot_be_deleted(client, db):
    role_id = next(r["id"] for r in db.rows("roles") if r["name"] == "tecnico")
    resp = client.delete(f"{API}/roles/{role_id}", headers=auth("master-token"))
    assert resp.status_code == 400


def test_custom_role_lifecycle(client, db):
    resp = client.post(
        f"{API}/roles",
        json={"name": "supervisor", "display_name": "Supervisor", "color": "#123456"},
        headers=auth("master-token"),
    )
    assert resp.status_code == 201, resp.text
    role_id = resp.json()["id"]
    assert resp.json()["is_system_role"] is False

    permission_id = next(p["id"] for p in db.rows("permissions") if p["name"] == "chamados:view")
    resp = client.put(
        f"{API}/roles/{role_id}/permissions",
        json={"permission_ids": [permission_id]},
        headers=auth("master-token"),
    )
    assert resp.json()["assigned_count"] == 1

    resp = client.delete(f"{API}/roles/{role_id}", headers=auth("master-token"))
    assert resp.status_code == 204
    assert not any(r["name"] == "supervisor" for r in db.rows("roles"))


def test_tecnico_cannot_create_roles(client):
    resp = client.post(
        f"{API}/roles",
        json={"name": "supervisor", "display_name": "Supervisor"},
        headers=auth("tec-token"),
    )
    assert resp.status_code == 403


def test_create_module_as_admin_master(client):
    resp = client.post(
        f"{API}/modules",
        json={"name": "Ordens de Serviço", "icon": "ClipboardList", "status": "active"},
        headers=auth("master-token"),
    )
    assert resp.status_code == 201, resp.text
    assert resp.json()["slug"] == "ordens-de-servico"
    assert resp.json()["url"] == "/ordens-de-servico"


def test_create_module_requires_admin_master(client):
    resp = client.post(f"{API}/modules", json={"name": "Agenda"}, headers=auth("tec-token"))
    assert resp.status_code == 403


def test_permission_matrix_via_api(client, db):
    module = add_module(db, "Equipamentos", "equipamentos")
    url = f"{API}/modules/{module['id']}/permissions"
    matrix = client.get(url, headers=auth("master-token")).json()
    entries = matrix["permissions"]
    for entry in entries:
        entry["allowed"] = entry["role"] == "tecnico" and entry["action"] in ("view", "delete")

    resp = client.put(url, json={"permissions": entries}, headers=auth("master-token"))
    assert resp.status_code == 200, resp.text

    saved = client.get(url, headers=auth("master-token")).json()["permissions"]
    assert {(e["role"], e["action"]) for e in saved if e["allowed"]} == {("tecnico", "view"), ("tecnico", "delete")}

    can = client.get(
        f"{API}/access/modules/{module['id']}/can", params={"action": "delete"}, headers=auth("tec-token")
    )
    assert can.json()["allowed"] is True


def test_partial_matrix_via_api(client, db):
    module = add_module(db, "Equipamentos", "equipamentos")
    resp = client.put(
        f"{API}/modules/{module['id']}/permissions",
        json={"permissions": [{"role": "tecnico", "action": "view", "allowed": True}]},
        headers=auth("master-token"),
    )
    assert resp.status_code == 400


def test_invalid_semver_via_api(client, db):
    module = add_module(db, "Agenda", "agenda")
    resp = client.post(
        f"{API}/modules/{module['id']}/versions",
        json={"semver": "1.0"},
        headers=auth("master-token"),
    )
    assert resp.status_code == 422


def test_users_listing_requires_permission(client):
    assert client.get(f"{API}/users", headers=auth("tec-token")).status_code == 403
    resp = client.get(f"{API}/users", headers=auth("master-token"))
    assert resp.status_code == 200
    assert {u["company_id"] for u in resp.json()} == {"c1", "c2"}


def test_cannot_change_own_role(client):
    resp = client.patch(
        f"{API}/users/p-master/role", json={"role": "tecnico"}, headers=auth("master-token")
    )
    assert resp.status_code == 400


def test_change_role(client, db):
    resp = client.patch(
        f"{API}/users/p-tec/role", json={"role": "gestor"}, headers=auth("master-token")
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["role"] == "gestor"
    resp = client.patch(
        f"{API}/users/p-tec/role", json={"role": "inexistente"}, headers=auth("master-token")
    )
    assert resp.status_code == 404


def test_core_module_created_via_api_is_visible(client):
    resp = client.post(
        f"{API}/modules", json={"name": "Painel", "is_core": True}, headers=auth("master-token")
    )
    assert resp.status_code == 201, resp.text
    assert resp.json()["status"] == "active"

    modules = client.get(f"{API}/access/modules", headers=auth("tec-token")).json()["modules"]
    assert [m["module_url"] for m in modules] == ["/painel"]


def test_patch_inactive_module_to_core_is_rejected(client, db):
    module = add_module(db, "Agenda", "agenda", status="inactive")
    resp = client.patch(
        f"{API}/modules/{module['id']}", json={"is_core": True}, headers=auth("master-token")
    )
    assert resp.status_code == 400


def test_rename_role_to_taken_name(client):
    role_id = client.post(
        f"{API}/roles", json={"name": "auditor", "display_name": "Auditor"}, headers=auth("master-token")
    ).json()["id"]
    resp = client.put(f"{API}/roles/{role_id}", json={"name": "gestor"}, headers=auth("master-token"))
    assert resp.status_code == 400


def test_access_check_for_user_without_profile(client):
    resp = client.post(f"{API}/access/check", json={"route": "/dashboard"}, headers=auth("orphan-token"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["state"] == "denied"
    assert "Contate o administrador" in body["message"]


def test_user_module_access_via_api(client, db):
    module = add_module(db, "Relatórios", "relatorios")
    url = f"{API}/users/p-tec/modules"

    rows = client.get(url, headers=auth("master-token")).json()["modules"]
    assert [(r["module_name"], r["is_allowed"]) for r in rows] == [("relatorios", False)]

    resp = client.put(f"{url}/{module['id']}", json={"can_access": True}, headers=auth("master-token"))
    assert resp.status_code == 200, resp.text
    assert resp.json()["granted_by"] == "p-master"

    rows = client.get(url, headers=auth("master-token")).json()["modules"]
    assert rows[0]["is_allowed"] is True
    assert rows[0]["has_custom_permission"] is True
    tec_modules = client.get(f"{API}/access/modules", headers=auth("tec-token")).json()["modules"]
    assert [m["module_name"] for m in tec_modules] == ["relatorios"]

    assert client.delete(f"{url}/{module['id']}", headers=auth("master-token")).status_code == 204
    rows = client.get(url, headers=auth("master-token")).json()["modules"]
    assert rows[0]["is_allowed"] is False
    assert rows[0]["has_custom_permission"] is False


def test_user_module_access_requires_permission(client, db):
    module = add_module(db, "Relatórios", "relatorios")
    resp = client.put(
        f"{API}/users/p-tec/modules/{module['id']}", json={"can_access": True}, headers=auth("tec-token")
    )
    assert resp.status_code == 403
    assert db.rows("user_permissions") == []


def test_user_module_access_unknown_module(client):
    resp = client.put(
        f"{API}/users/p-tec/modules/missing", json={"can_access": True}, headers=auth("master-token")
    )
    assert resp.status_code == 404
