from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from app.extensions import db
from app.models import Permission, Role, User
from app.security.password import hash_password, verify_password

DEFAULT_ROLE_PERMISSIONS: dict[str, tuple[str, ...]] = {
    "admin": ("audit.read",),
    "operator": (),
}

PERMISSION_DESCRIPTIONS = {
    "audit.read": "Read the activity log",
}


def find_user_by_email(email: str) -> User | None:
    stmt = (
        select(User)
        .where(User.email == email.lower().strip())
        .options(selectinload(User.roles).selectinload(Role.permissions))
    )
    return db.session.execute(stmt).scalar_one_or_none()


def find_user_by_id(user_id: int) -> User | None:
    stmt = (
        select(User)
        .where(User.id == user_id)
        .options(selectinload(User.roles).selectinload(Role.permissions))
    )
    return db.session.execute(stmt).scalar_one_or_none()


def authenticate_user(email: str, password: str) -> User | None:
    user = find_user_by_email(email)
    if not user or not user.is_active:
        return None

    if not verify_password(user.password_hash, password):
        return None

    return user


def any_users_exist() -> bool:
    return db.session.scalar(select(User.id).limit(1)) is not None


def ensure_default_roles() -> dict[str, Role]:
    """Create any missing default roles and permissions; return roles by name."""
    permissions = {permission.code: permission for permission in db.session.execute(select(Permission)).scalars()}
    roles = {role.name: role for role in db.session.execute(select(Role)).scalars()}

    for role_name, codes in DEFAULT_ROLE_PERMISSIONS.items():
        role = roles.get(role_name)
        if role is None:
            role = Role(name=role_name)
            db.session.add(role)
            roles[role_name] = role
        for code in codes:
            permission = permissions.get(code)
            if permission is None:
                permission = Permission(code=code, description=PERMISSION_DESCRIPTIONS.get(code))
                db.session.add(permission)
                permissions[code] = permission
            if permission not in role.permissions:
                role.permissions.append(permission)

    db.session.commit()
    return roles


def create_user(
    email: str,
    password: str,
    roles: list[Role] | None = None,
    display_name: str | None = None,
) -> User:
    user = User(
        email=email.lower().strip(),
        display_name=display_name,
        password_hash=hash_password(password),
        is_active=True,
    )
    if roles:
        user.roles.extend(roles)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise

    db.session.refresh(user)
    return user


def build_auth_claims(user: User) -> dict[str, list[str]]:
    roles = sorted({role.name for role in user.roles})
    permissions = sorted({permission.code for role in user.roles for permission in role.permissions})
    return {"roles": roles, "permissions": permissions}
