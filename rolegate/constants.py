# rolegate/constants.py
from enum import Enum

# --- Role Levels (낮을수록 높은 권한) ---
CEILING_LEVEL = 1            # SUPER_ADMIN
ADMIN_LEVEL_THRESHOLD = 2    # level <= 2 이면 관리자 취급
LOWEST_PRIVILEGE_LEVEL = 3   # USER, 역할 없음, 게스트

# --- Snapshot Labels ---
GUEST_ROLE_LABEL = "Guest"   # 인증되지 않은 요청
NO_ROLE_LABEL = "User"       # 인증되었지만 역할이 없는 사용자

# --- Audit Tags ---
ACTION_ASSIGN_ROLE = "ASSIGN_ROLE"
ACTION_REVOKE_ROLE = "REVOKE_ROLE"
RESOURCE_USER = "USER"


class PermissionCategory(str, Enum):
    USER_MANAGEMENT = "USER_MANAGEMENT"
    PRODUCT_MANAGEMENT = "PRODUCT_MANAGEMENT"
    ORDER_MANAGEMENT = "ORDER_MANAGEMENT"
    CONTENT_MANAGEMENT = "CONTENT_MANAGEMENT"
    ANALYTICS = "ANALYTICS"
    SYSTEM_MANAGEMENT = "SYSTEM_MANAGEMENT"
    CUSTOMER_SUPPORT = "CUSTOMER_SUPPORT"


# (code, display_name, description, category)
SEED_PERMISSIONS = [
    ("MANAGE_USERS", "Manage Users", "Create, update, delete users", PermissionCategory.USER_MANAGEMENT),
    ("VIEW_USERS", "View Users", "View user list and details", PermissionCategory.USER_MANAGEMENT),
    ("MANAGE_ROLES", "Manage Roles", "Assign and revoke user roles", PermissionCategory.USER_MANAGEMENT),
    ("MANAGE_PRODUCTS", "Manage Products", "Create, update, delete products", PermissionCategory.PRODUCT_MANAGEMENT),
    ("VIEW_PRODUCTS", "View Products", "View product list and details", PermissionCategory.PRODUCT_MANAGEMENT),
    ("MANAGE_INVENTORY", "Manage Inventory", "Update product inventory", PermissionCategory.PRODUCT_MANAGEMENT),
    ("MANAGE_ORDERS", "Manage Orders", "View and update order status", PermissionCategory.ORDER_MANAGEMENT),
    ("VIEW_ORDERS", "View Orders", "View order list and details", PermissionCategory.ORDER_MANAGEMENT),
    ("PROCESS_REFUNDS", "Process Refunds", "Process order refunds", PermissionCategory.ORDER_MANAGEMENT),
    ("MANAGE_BLOG", "Manage Blog", "Create, update, delete blog posts", PermissionCategory.CONTENT_MANAGEMENT),
    ("MANAGE_NEWSLETTER", "Manage Newsletter", "Send newsletters and manage subscribers", PermissionCategory.CONTENT_MANAGEMENT),
    ("VIEW_ANALYTICS", "View Analytics", "Access analytics and reports", PermissionCategory.ANALYTICS),
    ("VIEW_FINANCIAL_REPORTS", "View Financial Reports", "Access financial data and reports", PermissionCategory.ANALYTICS),
    ("MANAGE_SETTINGS", "Manage Settings", "Update system settings", PermissionCategory.SYSTEM_MANAGEMENT),
    ("VIEW_AUDIT_LOGS", "View Audit Logs", "Access system audit logs", PermissionCategory.SYSTEM_MANAGEMENT),
    ("MANAGE_COUPONS", "Manage Coupons", "Create and manage discount coupons", PermissionCategory.SYSTEM_MANAGEMENT),
    ("MANAGE_REVIEWS", "Manage Reviews", "Moderate product reviews", PermissionCategory.CUSTOMER_SUPPORT),
    ("MANAGE_RETURNS", "Manage Returns", "Process return requests", PermissionCategory.CUSTOMER_SUPPORT),
]

SEED_ROLES = [
    {
        "name": "SUPER_ADMIN",
        "display_name": "Super Admin",
        "description": "Full system access with all permissions",
        "level": CEILING_LEVEL,
        "permissions": [code for code, _, _, _ in SEED_PERMISSIONS],
    },
    {
        "name": "ADMIN",
        "display_name": "Admin",
        "description": "Administrative access with limited system management",
        "level": ADMIN_LEVEL_THRESHOLD,
        "permissions": [
            "VIEW_USERS", "MANAGE_PRODUCTS", "VIEW_PRODUCTS", "MANAGE_INVENTORY",
            "MANAGE_ORDERS", "VIEW_ORDERS", "PROCESS_REFUNDS",
            "MANAGE_BLOG", "MANAGE_NEWSLETTER",
            "VIEW_ANALYTICS", "MANAGE_COUPONS",
            "MANAGE_REVIEWS", "MANAGE_RETURNS",
        ],
    },
    {
        "name": "USER",
        "display_name": "User",
        "description": "Standard user with basic permissions",
        "level": LOWEST_PRIVILEGE_LEVEL,
        "permissions": ["VIEW_PRODUCTS"],
    },
]

# Capabilities 필드 -> 해당 필드를 true로 만드는 권한 코드 목록.
# 레거시 이름(CREATE_PRODUCTS, SYSTEM_SETTINGS 등)은 정식 이름의 별칭으로 취급합니다.
CAPABILITY_ALIASES = {
    "can_manage_users": ("MANAGE_USERS",),
    "can_manage_products": ("CREATE_PRODUCTS", "EDIT_PRODUCTS", "MANAGE_PRODUCTS"),
    "can_manage_orders": ("VIEW_ALL_ORDERS", "MANAGE_ORDERS"),
    "can_manage_blog": ("MANAGE_BLOG",),
    "can_manage_newsletter": ("MANAGE_NEWSLETTER",),
    "can_view_analytics": ("VIEW_ANALYTICS",),
    "can_manage_roles": ("MANAGE_ROLES",),
    "can_access_system_settings": ("SYSTEM_SETTINGS", "MANAGE_SETTINGS"),
}
