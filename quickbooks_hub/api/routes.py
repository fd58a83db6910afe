"""
FastAPI routes for the QuickBooks connection hub.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Dict

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import RedirectResponse

from quickbooks_hub.core.errors import (
    ApiError,
    AuthenticationError,
    CompanyNotFoundError,
    InvalidStateError,
    QuickBooksError,
    RateLimitError,
)
from quickbooks_hub.dependencies import get_manager, get_tenant_context
from quickbooks_hub.manager import QuickBooksManager
from quickbooks_hub.models import TenantContext
from quickbooks_hub.schemas import AuthorizationResponse, ConnectionResponse

router = APIRouter()
logger = logging.getLogger(__name__)

ManagerDependency = Annotated[QuickBooksManager, Depends(get_manager)]
TenantDependency = Annotated[TenantContext, Depends(get_tenant_context)]


def _http_error(exc: QuickBooksError) -> HTTPException:
    """Translate a domain error into the matching HTTP response."""
    if isinstance(exc, CompanyNotFoundError):
        status = HTTPStatus.NOT_FOUND
    elif isinstance(exc, InvalidStateError):
        status = HTTPStatus.BAD_REQUEST
    elif isinstance(exc, AuthenticationError):
        status = HTTPStatus.UNAUTHORIZED
    elif isinstance(exc, RateLimitError):
        status = HTTPStatus.TOO_MANY_REQUESTS
    elif isinstance(exc, ApiError):
        status = HTTPStatus.BAD_GATEWAY
    else:
        status = HTTPStatus.INTERNAL_SERVER_ERROR
    return HTTPException(status_code=status, detail=str(exc))


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get(
    "/quickbooks/companies/{company_id}/authorize",
    status_code=HTTPStatus.OK,
    response_model=AuthorizationResponse,
)
async def start_quickbooks_oauth_flow(
    company_id: str,
    request: Request,
    manager: ManagerDependency,
    context: TenantDependency,
    redirect: bool = Query(
        default=False,
        description="When true, respond with a redirect to the Intuit consent screen.",
    ),
):
    """Issue a signed authorization URL for the company."""
    try:
        authorization_url = manager.authorization_url(company_id, context=context)
    except QuickBooksError as exc:
        raise _http_error(exc) from exc

    accept_header = request.headers.get("accept", "")
    wants_html = "text/html" in accept_header.lower()
    if redirect or wants_html:
        return RedirectResponse(url=authorization_url, status_code=HTTPStatus.TEMPORARY_REDIRECT)

    return AuthorizationResponse(authorization_url=authorization_url)


@router.get("/quickbooks/callback", status_code=HTTPStatus.OK, response_model=ConnectionResponse)
async def handle_quickbooks_oauth_callback(
    manager: ManagerDependency,
    context: TenantDependency,
    code: str = Query(..., description="Authorization code returned by Intuit."),
    realm_id: str = Query(..., alias="realmId", description="QuickBooks company realm id."),
    state: str = Query(..., description="Signed state token issued with the consent URL."),
) -> ConnectionResponse:
    """Complete the OAuth exchange and persist the connection."""
    try:
        client = await manager.handle_callback(code, realm_id, state, context=context)
    except QuickBooksError as exc:
        logger.warning("QuickBooks callback rejected: %s", exc)
        raise _http_error(exc) from exc

    return ConnectionResponse(
        status="connected", company_id=client.company_id, realm_id=client.realm_id
    )


@router.post(
    "/quickbooks/companies/{company_id}/disconnect",
    status_code=HTTPStatus.OK,
    response_model=ConnectionResponse,
)
async def disconnect_quickbooks_company(
    company_id: str,
    manager: ManagerDependency,
    context: TenantDependency,
) -> ConnectionResponse:
    try:
        await manager.disconnect(company_id, context=context)
    except QuickBooksError as exc:
        raise _http_error(exc) from exc
    return ConnectionResponse(status="disconnected", company_id=company_id)


@router.get("/quickbooks/status", status_code=HTTPStatus.OK)
async def quickbooks_connection_status(
    manager: ManagerDependency,
    context: TenantDependency,
) -> Dict[str, bool]:
    """Map every known company id to whether it currently holds usable tokens."""
    return await manager.connection_status(context=context)


__all__ = ["router"]
