# =============================================================================
# app/routers/forms.py - Form Template Endpoints
# =============================================================================
# Form template CRUD and lifecycle actions (publish / archive), plus the
# lookup field users make to find the form that applies to a store.
#
# Two routers live here:
# - router: mounted at /forms
# - templates_router: read-only listing mounted at /form-templates
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from app.auth import AuthUser, get_current_user, require_admin
from app.exceptions import ValidationFailedError
from core.models.form import (
    FormAction,
    FormActionRequest,
    FormScopeKind,
    FormStatus,
    FormTemplateCreate,
    FormTemplateResponse,
    FormTemplateUpdate,
)
from core.services.form_service import FormService
from core.services.store_service import StoreService

router = APIRouter()
templates_router = APIRouter()


def _list(
    statuses: list[FormStatus] | None,
    scope_kind: FormScopeKind | None,
    store_format: str | None,
    store_id: str | None,
) -> list[FormTemplateResponse]:
    templates = FormService.list_templates(
        statuses=statuses,
        scope_kind=scope_kind,
        store_format=store_format,
        store_id=store_id,
    )
    return [FormTemplateResponse.from_row(template) for template in templates]


@router.get("", response_model=list[FormTemplateResponse])
async def list_forms(
    user: AuthUser = Depends(get_current_user),
    status: Annotated[list[FormStatus] | None, Query(description="One or more statuses")] = None,
    scope_kind: Annotated[FormScopeKind | None, Query(description="Scope kind")] = None,
    format: Annotated[str | None, Query(description="Store format in a formats scope")] = None,
    store_id: Annotated[str | None, Query(description="Store the form may apply to")] = None,
):
    """List form templates, most recently updated first."""
    return _list(status, scope_kind, format, store_id)


@router.post("", response_model=FormTemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_form(
    request: FormTemplateCreate,
    user: AuthUser = Depends(require_admin),
):
    """Create a draft form template at version 1."""
    template = FormService.create_template(request, created_by=str(user.id))
    return FormTemplateResponse.from_row(template)


@router.get("/active", response_model=FormTemplateResponse | None)
async def get_active_form(
    store_id: Annotated[str, Query(description="Store UUID")],
    user: AuthUser = Depends(get_current_user),
    format: Annotated[str | None, Query(description="Store format; read from the store when omitted")] = None,
):
    """
    Get the published form that applies to a store.

    Returns null when no published form applies.
    """
    store_format = format or StoreService.get_store(store_id).get("format")
    template = FormService.find_active_for_store(store_id, store_format)
    return FormTemplateResponse.from_row(template) if template else None


@router.get("/{form_id}", response_model=FormTemplateResponse)
async def get_form(
    form_id: Annotated[str, Path(description="Form template UUID")],
    user: AuthUser = Depends(get_current_user),
):
    return FormTemplateResponse.from_row(FormService.get_template(form_id))


@router.put("/{form_id}", response_model=FormTemplateResponse)
async def update_form(
    form_id: Annotated[str, Path(description="Form template UUID")],
    request: FormTemplateUpdate,
    user: AuthUser = Depends(require_admin),
):
    """Partially update a template; any change bumps its version."""
    template = FormService.update_template(form_id, request, updated_by=str(user.id))
    return FormTemplateResponse.from_row(template)


@router.patch("/{form_id}", response_model=FormTemplateResponse)
async def change_form_status(
    form_id: Annotated[str, Path(description="Form template UUID")],
    request: FormActionRequest,
    user: AuthUser = Depends(require_admin),
):
    """
    Publish or archive a template.

    Example:
        {"action": "publish", "scope": {"kind": "formats", "formats": ["Pali"]}}
    """
    if request.action == FormAction.PUBLISH:
        template = FormService.publish_template(form_id, scope=request.scope, updated_by=str(user.id))
    elif request.action == FormAction.ARCHIVE:
        template = FormService.archive_template(form_id, updated_by=str(user.id))
    else:
        raise ValidationFailedError(f"Unsupported action: {request.action}")
    return FormTemplateResponse.from_row(template)


@router.delete("/{form_id}")
async def delete_form(
    form_id: Annotated[str, Path(description="Form template UUID")],
    user: AuthUser = Depends(require_admin),
):
    FormService.delete_template(form_id)
    return {"form_id": form_id, "message": "Form template deleted successfully"}


@templates_router.get("", response_model=list[FormTemplateResponse])
async def list_form_templates(
    user: AuthUser = Depends(get_current_user),
    status: Annotated[list[FormStatus] | None, Query(description="One or more statuses")] = None,
    scope_kind: Annotated[FormScopeKind | None, Query(description="Scope kind")] = None,
    format: Annotated[str | None, Query(description="Store format in a formats scope")] = None,
    store_id: Annotated[str | None, Query(description="Store the form may apply to")] = None,
):
    return _list(status, scope_kind, format, store_id)
