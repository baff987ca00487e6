"""
Permissions and Roles Configuration
This config defines the built-in roles, the permission catalog and the default
grants each role receives. Used by the seed script and by the access service
when building full module permission matrices.
"""

# Actions that can be granted or overridden per module
MODULE_ACTIONS = ["view", "create", "update", "delete", "configure", "activate"]

ACTION_LABELS = {
    "view": "Visualizar",
    "create": "Criar",
    "update": "Editar",
    "delete": "Excluir",
    "configure": "Configurar",
    "activate": "Ativar/Desativar",
}

# Built-in roles, highest privilege first
SYSTEM_ROLES = {
    "admin_master": {
        "display_name": "Admin Master",
        "description": "Acesso total a todas as empresas e configurações",
        "color": "#7C3AED",
    },
    "admin": {
        "display_name": "Administrador",
        "description": "Administração da plataforma",
        "color": "#DC2626",
    },
    "admin_cliente": {
        "display_name": "Admin Cliente",
        "description": "Administração da própria empresa",
        "color": "#EA580C",
    },
    "gestor": {
        "display_name": "Gestor",
        "description": "Gestão de chamados, ordens e equipes",
        "color": "#4F46E5",
    },
    "tecnico": {
        "display_name": "Técnico",
        "description": "Execução de ordens de serviço",
        "color": "#2563EB",
    },
    "cliente_final": {
        "display_name": "Cliente Final",
        "description": "Abertura e acompanhamento de chamados",
        "color": "#16A34A",
    },
}

# Resources of the permission catalog; resource names match module slugs
RESOURCES = {
    "dashboard": "Painel inicial",
    "empresas": "Empresas",
    "clientes": "Clientes",
    "tecnicos": "Técnicos",
    "equipamentos": "Equipamentos",
    "chamados": "Chamados",
    "ordens": "Ordens de serviço",
    "manutencao": "Manutenção",
    "faq": "Base de conhecimento",
    "relatorios": "Relatórios",
    "usuarios": "Usuários",
    "roles": "Papéis e permissões",
    "modulos": "Módulos",
}

# Default (blanket) grants per role: resource -> actions
DEFAULT_ROLE_GRANTS = {
    "admin_master": {resource: list(MODULE_ACTIONS) for resource in RESOURCES},
    "admin": {
        "dashboard": ["view"],
        "empresas": ["view", "create", "update", "delete"],
        "clientes": ["view", "create", "update", "delete"],
        "tecnicos": ["view", "create", "update", "delete"],
        "equipamentos": ["view", "create", "update", "delete"],
        "chamados": ["view", "create", "update", "delete"],
        "ordens": ["view", "create", "update", "delete"],
        "relatorios": ["view"],
        "usuarios": ["view", "create", "update"],
        "roles": ["view"],
    },
    "admin_cliente": {
        "dashboard": ["view"],
        "clientes": ["view", "create", "update"],
        "equipamentos": ["view", "create", "update"],
        "chamados": ["view", "create", "update"],
        "ordens": ["view", "create", "update"],
        "relatorios": ["view"],
        "usuarios": ["view", "update"],
    },
    "gestor": {
        "dashboard": ["view"],
        "clientes": ["view"],
        "tecnicos": ["view"],
        "equipamentos": ["view", "update"],
        "chamados": ["view", "create", "update"],
        "ordens": ["view", "create", "update"],
        "manutencao": ["view", "create", "update"],
        "relatorios": ["view"],
    },
    "tecnico": {
        "dashboard": ["view"],
        "equipamentos": ["view"],
        "chamados": ["view", "update"],
        "ordens": ["view", "update"],
        "faq": ["view"],
    },
    "cliente_final": {
        "dashboard": ["view"],
        "chamados": ["view", "create"],
        "ordens": ["view"],
        "faq": ["view"],
    },
}

# Static navigation entries, always rendered first and in this order
BASE_NAVIGATION = [
    {"title": "Dashboard", "url": "/dashboard", "icon": "LayoutDashboard"},
    {"title": "Cadastros", "url": "/cadastros", "icon": "FolderOpen"},
]

SETTINGS_NAVIGATION = {"title": "Configurações", "icon": "Settings"}


def get_permission_matrix():
    """
    Returns a dictionary with all permissions and the built-in roles
    Format: {
        "permissions": [
            {"name": "ordens:create", "resource": "ordens", "action": "create", ...},
            ...
        ],
        "roles": [
            {
                "name": "tecnico",
                "display_name": "Técnico",
                "permissions": ["chamados:update", "chamados:view", ...]
            },
            ...
        ]
    }
    """
    permissions = []
    roles = []

    for resource, resource_label in RESOURCES.items():
        for action in MODULE_ACTIONS:
            permissions.append({
                "name": f"{resource}:{action}",
                "resource": resource,
                "action": action,
                "display_name": f"{ACTION_LABELS[action]} {resource_label}",
                "description": f"{ACTION_LABELS[action]} - {resource_label}"
            })

    for role_name, role_config in SYSTEM_ROLES.items():
        grants = DEFAULT_ROLE_GRANTS.get(role_name, {})
        role_permissions = [
            f"{resource}:{action}"
            for resource, actions in grants.items()
            for action in actions
        ]
        roles.append({
            "name": role_name,
            "display_name": role_config["display_name"],
            "description": role_config["description"],
            "color": role_config["color"],
            "is_system_role": True,
            "permissions": sorted(role_permissions)
        })

    return {
        "permissions": permissions,
        "roles": roles
    }


# Export the matrix for use in seed scripts
PERMISSION_MATRIX = get_permission_matrix()
