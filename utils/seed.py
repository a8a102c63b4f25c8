from models import db
from models.user import Role

DEFAULT_ROLES = ["USER", "CAPTAIN", "ADMIN"]

def seed_roles():
    existing = {r.name for r in Role.query.all()}
    for name in DEFAULT_ROLES:
        if name not in existing:
            db.session.add(Role(name=name))
    db.session.commit()

def grant_role(user, role_name: str) -> bool:
    """Attach a role to a user, creating the role row if needed. Returns False if already held."""
    role = Role.query.filter_by(name=role_name).first()
    if not role:
        role = Role(name=role_name)
        db.session.add(role)
    if role in user.roles:
        return False
    user.roles.append(role)
    db.session.commit()
    return True
