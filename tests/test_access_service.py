from app.config.settings import settings
from app.modules.access.service import AccessService
from app.modules.module_registry.schemas import ModulePermissionMatrix, ModuleResponse
from app.modules.module_registry.service import ModulePermissionService
from app.modules.users.service import UserPermissionService
from tests.helpers import add_module, user


def grant_matrix(db, module_id, allowed):
    """Save a full matrix where exactly the (role, action) pairs in ``allowed`` are true"""
    service = ModulePermissionService(db)
    entries = [
        {"role": entry.role, "action": entry.action, "allowed": (entry.role, entry.action) in allowed}
        for entry in service.get_matrix(module_id).permissions
    ]
    service.save_matrix(module_id, ModulePermissionMatrix(permissions=entries))


def test_role_grant_without_override(db):
    module = ModuleResponse(**add_module(db, "Equipamentos", "equipamentos"))
    service = AccessService(db)
    tecnico = user("tec-token")
    assert service.can(tecnico, module, "view")
    assert not service.can(tecnico, module, "delete")


def test_matrix_override_grants_delete(db):
    module = ModuleResponse(**add_module(db, "Equipamentos", "equipamentos"))
    tecnico = user("tec-token")
    assert not AccessService(db).can(tecnico, module, "delete")

    grant_matrix(db, module.id, {("tecnico", "view"), ("tecnico", "delete")})

    assert AccessService(db).can(tecnico, module, "delete")
    # gestor rows were saved as false and now hide the blanket grant
    assert not AccessService(db).can(user("gestor-token"), module, "update")


def test_view_override_false_hides_module(db):
    module = add_module(db, "Equipamentos", "equipamentos")
    tecnico = user("tec-token")
    assert [m.module_name for m in AccessService(db).allowed_modules(tecnico)] == ["equipamentos"]

    grant_matrix(db, module["id"], set())

    assert AccessService(db).allowed_modules(tecnico) == []


def test_core_module_stays_visible(db):
    module = add_module(db, "Painel", "painel", is_core=True)
    grant_matrix(db, module["id"], set())
    rows = AccessService(db).allowed_modules(user("tec-token"))
    assert [r.module_name for r in rows] == ["painel"]
    assert rows[0].has_custom_permission


def test_modules_without_grant_are_hidden(db):
    add_module(db, "Relatórios", "relatorios")
    add_module(db, "Equipamentos", "equipamentos")
    names = [m.module_name for m in AccessService(db).allowed_modules(user("tec-token"))]
    assert names == ["equipamentos"]


def test_inactive_modules_are_hidden(db):
    add_module(db, "Equipamentos", "equipamentos", status="inactive")
    assert AccessService(db).allowed_modules(user("tec-token")) == []


def test_fetch_failure_fails_closed(db):
    module = ModuleResponse(**add_module(db, "Equipamentos", "equipamentos"))
    db.failing_tables = {"module_permissions"}
    service = AccessService(db)
    tecnico = user("tec-token")
    assert service.allowed_modules(tecnico) == []
    assert not service.can(tecnico, module, "view")
    assert not service.can_access_resource(tecnico, "equipamentos", "view")


def test_module_load_failure_fails_closed(db):
    add_module(db, "Equipamentos", "equipamentos")
    db.failing_tables = {"modules"}
    assert AccessService(db).allowed_modules(user("tec-token")) == []


def test_navigation_for_tecnico(db):
    add_module(db, "Equipamentos", "equipamentos", icon="Package")
    add_module(db, "Cadastros", "cadastros", icon="FolderOpen", resource="dashboard")
    items = AccessService(db).navigation(user("tec-token"))
    assert [(i.title, i.url) for i in items] == [
        ("Dashboard", "/dashboard"),
        ("Cadastros", "/cadastros"),
        ("Equipamentos", "/equipamentos"),
    ]


def test_navigation_for_admin_master_without_modules(db):
    items = AccessService(db).navigation(user("master-token"))
    assert [i.url for i in items] == ["/dashboard", "/cadastros", "/settings"]


def test_snapshot_is_reused_within_a_request(db):
    cache = {}
    service = AccessService(db, cache)
    first = service.snapshot_for(user("tec-token"))
    assert service.snapshot_for(user("tec-token")) is first
    assert cache["snapshots"]["tecnico"] is first


def test_can_access_resource_via_module_and_role(db):
    module = add_module(db, "Equipamentos", "equipamentos")
    tecnico = user("tec-token")
    assert AccessService(db).can_access_resource(tecnico, "equipamentos", "view")
    # no module maps to "faq": the blanket grant decides
    assert AccessService(db).can_access_resource(tecnico, "faq", "view")
    assert not AccessService(db).can_access_resource(tecnico, "roles", "create")

    grant_matrix(db, module["id"], set())
    assert not AccessService(db).can_access_resource(tecnico, "equipamentos", "view")


def test_route_allowed(db):
    add_module(db, "Equipamentos", "equipamentos")
    add_module(db, "Relatórios", "relatorios")
    service = AccessService(db)
    tecnico = user("tec-token")
    assert service.route_allowed(tecnico, "/equipamentos/")
    assert not service.route_allowed(tecnico, "/relatorios")
    assert not service.route_allowed(tecnico, "/sem-modulo")


def test_check_route_denies_on_backend_error(db):
    add_module(db, "Equipamentos", "equipamentos")
    db.failing_tables = {"role_permissions"}
    tecnico = user("tec-token")
    decision = AccessService(db).check_route(lambda: tecnico, "/equipamentos", ["gestor"])
    assert decision.state.value == "denied"


def test_rpc_mode(db, monkeypatch):
    monkeypatch.setattr(settings, "use_allowed_modules_rpc", True)
    calls = []

    def handler(params):
        calls.append(params)
        return [
            {"module_name": "agenda", "module_title": "Agenda", "module_url": "/agenda",
             "module_icon": "Calendar", "has_custom_permission": True, "is_allowed": True},
            {"module_name": "relatorios", "module_title": "Relatórios", "module_url": "/relatorios",
             "module_icon": "BarChart", "has_custom_permission": False, "is_allowed": False},
        ]

    db.rpc_handlers["get_user_allowed_modules"] = handler
    rows = AccessService(db).allowed_modules(user("tec-token"))
    assert [r.module_name for r in rows] == ["agenda"]
    assert calls == [{"target_user_id": "u-tec"}]


def test_rpc_mode_failure_is_empty(db, monkeypatch):
    monkeypatch.setattr(settings, "use_allowed_modules_rpc", True)
    assert AccessService(db).allowed_modules(user("tec-token")) == []


def test_user_access_grants_module_outside_role(db):
    module = add_module(db, "Relatórios", "relatorios")
    UserPermissionService(db).set_module_access("p-tec", module["id"], True, granted_by="p-master")

    rows = AccessService(db).allowed_modules(user("tec-token"))
    assert [r.module_name for r in rows] == ["relatorios"]
    assert rows[0].has_custom_permission
    assert rows[0].module_id == module["id"]
    # only this profile is affected
    assert AccessService(db).allowed_modules(dict(user("tec-token"), id="p-other")) == []


def test_user_access_revokes_role_default(db):
    module = add_module(db, "Equipamentos", "equipamentos")
    service = UserPermissionService(db)
    service.set_module_access("p-tec", module["id"], False)
    assert AccessService(db).allowed_modules(user("tec-token")) == []

    # saving again updates the same row
    service.set_module_access("p-tec", module["id"], False)
    assert len(db.rows("user_permissions")) == 1

    assert service.reset_module_access("p-tec", module["id"])
    rows = AccessService(db).allowed_modules(user("tec-token"))
    assert [r.module_name for r in rows] == ["equipamentos"]
    assert not rows[0].has_custom_permission


def test_user_access_only_covers_view(db):
    module = ModuleResponse(**add_module(db, "Relatórios", "relatorios"))
    UserPermissionService(db).set_module_access("p-tec", module.id, True)
    tecnico = user("tec-token")
    assert AccessService(db).can(tecnico, module, "view")
    assert not AccessService(db).can(tecnico, module, "delete")


def test_user_access_cannot_hide_core_module(db):
    module = add_module(db, "Painel", "painel", is_core=True)
    UserPermissionService(db).set_module_access("p-tec", module["id"], False)
    assert [r.module_name for r in AccessService(db).allowed_modules(user("tec-token"))] == ["painel"]


def test_user_access_fetch_failure_fails_closed(db):
    add_module(db, "Equipamentos", "equipamentos")
    db.failing_tables = {"user_permissions"}
    assert AccessService(db).allowed_modules(user("tec-token")) == []
