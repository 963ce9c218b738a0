"""Allowed values for string status/role columns."""

# User
ROLE_STUDENT = "student"
ROLE_EMPLOYEE = "employee"
ROLE_INSTRUCTOR = "instructor"
ROLE_BUSINESS_INSTRUCTOR = "business_instructors"
ROLE_COMPANY_ADMIN = "company_admin"
ROLE_SUPER_ADMIN = "super_admin"
ALLOWED_ROLES = (
    ROLE_STUDENT,
    ROLE_EMPLOYEE,
    ROLE_INSTRUCTOR,
    ROLE_BUSINESS_INSTRUCTOR,
    ROLE_COMPANY_ADMIN,
    ROLE_SUPER_ADMIN,
)

USER_ACTIVE = "active"
USER_BLOCKED = "blocked"
ALLOWED_USER_STATUSES = (USER_ACTIVE, USER_BLOCKED)

# Course
COURSE_PENDING = "pending"
COURSE_APPROVED = "approved"
COURSE_DENIED = "denied"
ALLOWED_COURSE_STATUSES = (COURSE_PENDING, COURSE_APPROVED, COURSE_DENIED)

COURSE_EXTERNAL = "external"
COURSE_INTERNAL = "internal"
ALLOWED_COURSE_TYPES = (COURSE_EXTERNAL, COURSE_INTERNAL)

ALLOWED_COURSE_LEVELS = ("beginner", "intermediate", "advanced")

# Promo codes / coupons
CODE_MODEL_COURSE = "course"
CODE_MODEL_GLOBAL = "global"
ALLOWED_CODE_MODELS = (CODE_MODEL_COURSE, CODE_MODEL_GLOBAL)

# Revenue split (instructor, platform) shares of the final amount
PROMO_SPLIT = (0.97, 0.03)
COUPON_SPLIT = (0.5, 0.5)
AFFILIATE_CUT = 0.2

# Grades
ALLOWED_GRADE_LABELS = ("A_PLUS", "A", "A_MINUS", "B_PLUS", "B", "B_MINUS", "C_PLUS", "C", "D", "F")

# Packages / subscriptions
BILLING_MONTHLY = "monthly"
BILLING_YEARLY = "yearly"
BILLING_CYCLE_DAYS = {
    BILLING_MONTHLY: 30,
    BILLING_YEARLY: 365,
}

SUBSCRIPTION_PENDING = "pending"
SUBSCRIPTION_ACTIVE = "active"
SUBSCRIPTION_EXPIRED = "expired"
SUBSCRIPTION_CANCELLED = "cancelled"
ALLOWED_SUBSCRIPTION_STATUSES = (
    SUBSCRIPTION_PENDING,
    SUBSCRIPTION_ACTIVE,
    SUBSCRIPTION_EXPIRED,
    SUBSCRIPTION_CANCELLED,
)

PAYMENT_UNPAID = "unpaid"
PAYMENT_PAID = "paid"
PAYMENT_FAILED = "failed"
ALLOWED_PAYMENT_STATUSES = (PAYMENT_UNPAID, PAYMENT_PAID, PAYMENT_FAILED)

ALLOWED_SUBSCRIPTION_TYPES = ("basic", "standard", "premium", "ngo", "sme")

# Notifications
NOTIFY_COURSE = "course"
NOTIFY_SUBSCRIPTION = "subscription"
ALLOWED_NOTIFICATION_MODES = (NOTIFY_COURSE, NOTIFY_SUBSCRIPTION)

SORT_ASC = "asc"
SORT_DESC = "desc"
ALLOWED_SORT_ORDERS = (SORT_ASC, SORT_DESC)
