"""
RBAC dependencies for FastAPI routes
Role-based access control implemented as dependencies that run after authentication
"""
from fastapi import Depends, HTTPException, status, Request
from routers.auth.auth import get_current_user
import logging

logger = logging.getLogger(__name__)

# 'user' is an authenticated identity that has not created a profile yet
RESOURCES_FOR_ROLES = {
    'supplier': {
        'users/profile': ['read', 'write'],
        'products': ['read', 'write', 'delete'],
        'orders': ['read'],
        'orders/status': ['write'],
        'group-buys': ['read'],
        'dashboard/supplier': ['read'],
    },
    'vendor': {
        'users/profile': ['read', 'write'],
        'products': ['read'],
        'orders': ['read', 'write'],
        'orders/status': [],
        'group-buys': ['read', 'write'],
        'inventory': ['read', 'write', 'delete'],
        'dashboard/vendor': ['read'],
    },
    'user': {
        'users/profile': ['read', 'write'],
        'products': ['read'],
        'group-buys': ['read'],
    }
}

def normalize_path(path: str) -> str:
    """Normalize request path for RBAC checking"""
    if path.startswith('/'):
        path = path[1:]

    segments = [segment for segment in path.split('/') if segment]

    if len(segments) == 0:
        return path

    if segments[0] == 'users':
        return 'users/profile'

    elif segments[0] == 'orders':
        if len(segments) >= 3 and segments[2] == 'status':
            return 'orders/status'
        return 'orders'

    elif segments[0] == 'dashboard':
        if len(segments) >= 2:
            return f'dashboard/{segments[1]}'
        return 'dashboard'

    return segments[0]

def translate_method_to_action(method: str) -> str:
    """Map HTTP methods to RBAC actions"""
    method_permission_mapping = {
        'GET': 'read',
        'POST': 'write',
        'PUT': 'write',
        'PATCH': 'write',
        'DELETE': 'delete',
    }
    return method_permission_mapping.get(method.upper(), 'read')

def has_permission(user_role: str, resource_name: str, required_permission: str) -> bool:
    """Check if user role has permission for the resource and action"""
    if user_role not in RESOURCES_FOR_ROLES:
        return False

    user_permissions = RESOURCES_FOR_ROLES[user_role]

    if resource_name in user_permissions:
        return required_permission in user_permissions[resource_name]

    parent_resource = resource_name.split('/')[0] if '/' in resource_name else resource_name
    if parent_resource in user_permissions:
        return required_permission in user_permissions[parent_resource]

    return False

def require_permission(resource: str = None, permission: str = None, detail: str = None):
    """
    Create an RBAC dependency that checks permissions

    Args:
        resource: Specific resource name (auto-detected if not provided)
        permission: Specific permission (auto-detected if not provided)
        detail: Message for the 403 response (generic if not provided)
    """
    def check_rbac(request: Request, current_user = Depends(get_current_user)):
        """RBAC dependency function"""
        user_role = current_user.get('role') or 'user'

        path = request.url.path
        root_path = request.scope.get("root_path", "")
        if root_path and path.startswith(root_path):
            path = path[len(root_path):]

        resource_name = resource or normalize_path(path)
        required_permission = permission or translate_method_to_action(request.method)

        logger.debug(f"RBAC Check - User: {user_role}, Resource: {resource_name}, Permission: {required_permission}")

        if not has_permission(user_role, resource_name, required_permission):
            logger.warning(f"Access denied - User: {user_role}, Resource: {resource_name}, Permission: {required_permission}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=detail or f"Access denied. {user_role.title()} role does not have {required_permission} permission for {resource_name}"
            )

        return current_user

    return check_rbac

# Catalog (suppliers only)
require_product_write = require_permission("products", "write", "Only suppliers can create products")
require_product_delete = require_permission("products", "delete", "Only suppliers can delete products")

# Orders
require_order_write = require_permission("orders", "write", "Only vendors can create orders")
require_order_status_write = require_permission("orders/status", "write", "Only suppliers can update order status")

# Group buying (vendors only)
require_group_buy_create = require_permission("group-buys", "write", "Only vendors can create group buys")
require_group_buy_join = require_permission("group-buys", "write", "Only vendors can join group buys")

# Inventory (vendors only), resource/permission derived from the request
require_inventory_access = require_permission(detail="Only vendors can manage inventory")
