from storefront.models.user import UserRole


def is_admin(role) -> bool:
    return str(getattr(role, "value", role)) == UserRole.ADMIN.value
