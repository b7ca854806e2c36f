# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - users.py: User management and emergency store lookup
# - stores.py: Store CRUD, spreadsheet export/import, backups
# - products.py: Product catalogue and product photos
# - routes.py: Routes, work plans and driving directions
# - forms.py: Form templates and active form lookup
# - visit_logs.py: Visit checklist submission and history
# - workgroups.py: Supervisor workgroups
# - places.py: Google Places search and details
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import users
from . import stores
from . import products
from . import routes
from . import forms
from . import visit_logs
from . import workgroups
from . import places

__all__ = [
    "health",
    "users",
    "stores",
    "products",
    "routes",
    "forms",
    "visit_logs",
    "workgroups",
    "places",
]
