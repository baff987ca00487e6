USERS = {
    "master-token": {"user_id": "u-master", "id": "p-master", "name": "Ana Master",
                     "email": "master@ordi.test", "role": "admin_master", "company_id": "c1"},
    "tec-token": {"user_id": "u-tec", "id": "p-tec", "name": "Bruno Técnico",
                  "email": "tec@ordi.test", "role": "tecnico", "company_id": "c1"},
    "gestor-token": {"user_id": "u-gestor", "id": "p-gestor", "name": "Carla Gestora",
                     "email": "gestor@ordi.test", "role": "gestor", "company_id": "c2"},
    "inactive-token": {"user_id": "u-inactive", "id": "p-inactive", "name": "Davi Inativo",
                       "email": "inactive@ordi.test", "role": "tecnico", "company_id": "c1",
                       "active": False},
}


def add_module(db, name, slug, url=None, icon="Wrench", is_core=False, status="active", resource=None):
    return db.table("modules").insert({
        "name": name,
        "slug": slug,
        "url": url or f"/{slug}",
        "icon": icon,
        "is_core": is_core,
        "status": status,
        "resource": resource,
    }).execute().data[0]


def auth(token):
    return {"Authorization": f"Bearer {token}"}


def user(token):
    return dict(USERS[token])
