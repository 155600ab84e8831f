from rest_framework import permissions

from .models import CustomUser

# Role matrix for the rate catalog. Reads are open to every back-office role.
RATE_PERMISSIONS = {
    'read': (CustomUser.ADMIN, CustomUser.DISPATCHER, CustomUser.ACCOUNTANT),
    'create': (CustomUser.ADMIN, CustomUser.DISPATCHER),
    'update': (CustomUser.ADMIN, CustomUser.DISPATCHER),
    'delete': (CustomUser.ADMIN,),
}


def has_role(user, roles) -> bool:
    return bool(user and user.is_authenticated and getattr(user, 'role', None) in roles)


class RatePermission(permissions.BasePermission):
    """
    Maps the request method onto the rate role matrix.

    Safe methods need `read`, POST needs `create`, PUT/PATCH need `update`
    and DELETE needs `delete`. Views may narrow this further by setting
    `rate_action` on themselves.
    """
    METHOD_ACTIONS = {
        'POST': 'create',
        'PUT': 'update',
        'PATCH': 'update',
        'DELETE': 'delete',
    }

    def has_permission(self, request, view):
        action = getattr(view, 'rate_action', None)
        if action is None:
            if request.method in permissions.SAFE_METHODS:
                action = 'read'
            else:
                action = self.METHOD_ACTIONS.get(request.method, 'delete')
        return has_role(request.user, RATE_PERMISSIONS[action])
