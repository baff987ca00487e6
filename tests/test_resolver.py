from app.modules.access.resolver import PermissionSnapshot, resolve, resolve_permission
from app.modules.module_registry.schemas import ModuleResponse


def make_module(**overrides):
    fields = {"id": "m1", "name": "Equipamentos", "slug": "equipamentos", "status": "active"}
    fields.update(overrides)
    return ModuleResponse(**fields)


def test_core_module_view_is_always_allowed():
    core = make_module(is_core=True)
    overrides = {("m1", "tecnico", "view"): False}
    assert resolve_permission("tecnico", core, "view", overrides, set())


def test_core_module_other_actions_follow_normal_rules():
    core = make_module(is_core=True)
    assert not resolve_permission("tecnico", core, "delete", {}, set())
    assert resolve_permission("tecnico", core, "delete", {("m1", "tecnico", "delete"): True}, set())


def test_override_true_beats_missing_grant():
    module = make_module()
    assert resolve_permission("tecnico", module, "delete", {("m1", "tecnico", "delete"): True}, set())


def test_override_false_beats_grant():
    module = make_module()
    grants = {("equipamentos", "view")}
    assert not resolve_permission("tecnico", module, "view", {("m1", "tecnico", "view"): False}, grants)


def test_override_for_another_role_is_ignored():
    module = make_module()
    overrides = {("m1", "gestor", "delete"): True}
    assert not resolve_permission("tecnico", module, "delete", overrides, set())


def test_role_grant_applies_without_override():
    module = make_module()
    assert resolve_permission("tecnico", module, "view", {}, {("equipamentos", "view")})


def test_nothing_known_means_denied():
    assert not resolve_permission("tecnico", make_module(), "view", {}, set())


def test_explicit_resource_takes_precedence_over_slug():
    module = make_module(slug="equipamentos-v2", resource="equipamentos")
    assert module.resource_key == "equipamentos"
    assert resolve_permission("tecnico", module, "view", {}, {("equipamentos", "view")})


def test_snapshot_reports_overrides():
    module = make_module()
    snapshot = PermissionSnapshot("tecnico", {("equipamentos", "view")}, {("m1", "tecnico", "delete"): True})
    assert snapshot.has_override(module, "delete")
    assert not snapshot.has_override(module, "view")
    assert snapshot.can(module, "view")
    assert snapshot.can(module, "delete")
    assert not snapshot.can(module, "update")


def test_empty_snapshot_denies_everything_but_core_view():
    snapshot = PermissionSnapshot.empty("gestor")
    assert not snapshot.can(make_module(), "view")
    assert snapshot.can(make_module(is_core=True), "view")


def test_resolve_ignores_grants_of_another_role():
    module = make_module()
    snapshot = PermissionSnapshot("gestor", {("equipamentos", "view")}, {})
    assert resolve({"role": "gestor"}, module, "view", snapshot)
    assert not resolve({"role": "tecnico"}, module, "view", snapshot)


def test_resolve_without_role_is_denied():
    snapshot = PermissionSnapshot("tecnico", {("equipamentos", "view")}, {})
    assert not resolve({}, make_module(), "view", snapshot)
