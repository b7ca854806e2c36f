# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - user.py: users and roles
# - store.py: stores, spreadsheet import results, store backups
# - product.py: products and their images
# - route.py: routes, work plans, driving legs, visit stats
# - form.py: form templates, questions and compliance config
# - visit_log.py: visit logs, evaluated answers and change history
# - workgroup.py: supervisor workgroups
# - place.py: Google Places lookups
#
# These models define the "contract" between API and clients.
# =============================================================================

from .user import (
    ASSIGNEE_ROLES,
    SUPERVISOR_ROLES,
    UserCreate,
    UserResponse,
    UserRole,
    UserUpdate,
)

from .store import (
    ImportIssue,
    STORE_FORMAT_OPTIONS,
    StoreBackupResponse,
    StoreCreate,
    StoreFormat,
    StoreImportResponse,
    StoreImportSummary,
    StoreLocation,
    StoreResponse,
    StoreUpdate,
)

from .product import (
    ProductCreate,
    ProductImage,
    ProductResponse,
    ProductUpdate,
)

from .route import (
    DAY_ORDER,
    DayOfWeek,
    RouteCreate,
    RouteLeg,
    RouteResponse,
    RouteStoreSnapshot,
    RouteUpdate,
    VisitStats,
    WorkPlan,
    WorkPlanInput,
)

from .form import (
    FormAction,
    FormActionRequest,
    FormQuestion,
    FormQuestionInput,
    FormScope,
    FormScopeKind,
    FormStatus,
    FormTemplateCreate,
    FormTemplateResponse,
    FormTemplateUpdate,
    QuestionConfig,
    QuestionOption,
    QuestionType,
)

from .visit_log import (
    ComplianceStatus,
    VisitAnswerInput,
    VisitLogAnswer,
    VisitLogChange,
    VisitLogCreate,
    VisitLogResponse,
    VisitLogStatus,
)

from .workgroup import (
    MemberSupervisorsResponse,
    MemberSupervisorsUpdate,
    WorkgroupMembersUpdate,
    WorkgroupResponse,
)

from .place import (
    PlaceDetails,
    PlaceLocation,
    PlaceSearchResult,
)

__all__ = [
    # User
    "ASSIGNEE_ROLES",
    "SUPERVISOR_ROLES",
    "UserCreate",
    "UserResponse",
    "UserRole",
    "UserUpdate",
    # Store
    "ImportIssue",
    "STORE_FORMAT_OPTIONS",
    "StoreBackupResponse",
    "StoreCreate",
    "StoreFormat",
    "StoreImportResponse",
    "StoreImportSummary",
    "StoreLocation",
    "StoreResponse",
    "StoreUpdate",
    # Product
    "ProductCreate",
    "ProductImage",
    "ProductResponse",
    "ProductUpdate",
    # Route
    "DAY_ORDER",
    "DayOfWeek",
    "RouteCreate",
    "RouteLeg",
    "RouteResponse",
    "RouteStoreSnapshot",
    "RouteUpdate",
    "VisitStats",
    "WorkPlan",
    "WorkPlanInput",
    # Form
    "FormAction",
    "FormActionRequest",
    "FormQuestion",
    "FormQuestionInput",
    "FormScope",
    "FormScopeKind",
    "FormStatus",
    "FormTemplateCreate",
    "FormTemplateResponse",
    "FormTemplateUpdate",
    "QuestionConfig",
    "QuestionOption",
    "QuestionType",
    # Visit log
    "ComplianceStatus",
    "VisitAnswerInput",
    "VisitLogAnswer",
    "VisitLogChange",
    "VisitLogCreate",
    "VisitLogResponse",
    "VisitLogStatus",
    # Workgroup
    "MemberSupervisorsResponse",
    "MemberSupervisorsUpdate",
    "WorkgroupMembersUpdate",
    "WorkgroupResponse",
    # Place
    "PlaceDetails",
    "PlaceLocation",
    "PlaceSearchResult",
]
