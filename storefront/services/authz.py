# storefront/services/authz.py
from storefront.data.models.user import UserModel
from storefront.domain.enums import UserRole
from storefront.domain.errors import Forbidden, Unauthorized

ADMIN_ROLES = (UserRole.ADMIN, UserRole.SUPERADMIN)


def require_role(user: UserModel | None, *roles: UserRole) -> UserModel:
    """
    Explicit role check called at the top of a privileged operation.
    No roles given means any authenticated user is fine.
    """
    if user is None:
        raise Unauthorized("User not authenticated")

    if roles and user.role not in {r.value for r in roles}:
        raise Forbidden(
            f"You do not have permission. Required: {', '.join(r.value for r in roles)}"
        )
    return user
