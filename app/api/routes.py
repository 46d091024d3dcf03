"""
FastAPI routes for the expense companion backend.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse, RedirectResponse

from app.api.pages import error_page, success_page
from app.clients import (
    EmailDeliveryError,
    InvalidOAuthStateError,
    OAuthTokenExchangeError,
    ProviderRequestError,
)
from app.dependencies import (
    get_account_linking_service,
    get_app_settings,
    get_connection_service,
    get_kpi_service,
    get_meeting_service,
    get_opportunity_search_service,
    get_passcode_service,
    get_profile_service,
)
from app.models import Provider
from app.schemas import (
    ConnectionStatusResponse,
    DisconnectRequest,
    KPIResponse,
    MeetingListResponse,
    MeetingSyncRequest,
    OpportunitySearchResponse,
    PasscodeIssueRequest,
    PasscodeIssueResponse,
    PasscodeVerifyRequest,
    ProfileLookupResponse,
    ProfileRegistrationRequest,
    ProfileRegistrationResponse,
    StatusResponse,
)
from app.services import (
    ConnectionRequiredError,
    ConnectionStorageError,
    KPIRowNotFoundError,
    PasscodeError,
    ProfileRequiredError,
    ProviderNotConfiguredError,
    ReconnectionRequiredError,
)
from app.services.opportunities import MIN_QUERY_LENGTH

router = APIRouter()
logger = logging.getLogger(__name__)

EmailQuery = Annotated[str, Query(min_length=1, description="User email address.")]


def _provider_http_error(exc: Exception, *, failure_detail: str) -> HTTPException:
    """Translate provider-call failures into API errors."""
    if isinstance(exc, (ConnectionRequiredError, ReconnectionRequiredError)):
        return HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail=str(exc))
    logger.warning("%s: %s", failure_detail, exc)
    return HTTPException(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR, detail=failure_detail
    )


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.post(
    "/auth/send-otp",
    response_model=PasscodeIssueResponse,
    response_model_exclude_none=True,
)
async def send_passcode(
    payload: PasscodeIssueRequest,
    service: Annotated[Any, Depends(get_passcode_service)],
    settings: Annotated[Any, Depends(get_app_settings)],
) -> PasscodeIssueResponse:
    """Issue a one-time passcode and email it (or log it in development mode)."""
    try:
        issued = await service.issue(payload.email)
    except EmailDeliveryError as exc:
        logger.error("Passcode email to %s failed: %s", payload.email, exc)
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail="Failed to send the verification email.",
        ) from exc

    if issued.delivered:
        return PasscodeIssueResponse(message="Verification code sent.")

    return PasscodeIssueResponse(
        message="Development mode: the verification code was written to the server log.",
        devMode=True,
        devOtp=issued.code if settings.is_development else None,
    )


@router.post("/auth/verify-otp", response_model=StatusResponse)
async def verify_passcode(
    payload: PasscodeVerifyRequest,
    service: Annotated[Any, Depends(get_passcode_service)],
) -> StatusResponse:
    try:
        service.verify(payload.email, payload.otp)
    except PasscodeError as exc:
        raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail=str(exc)) from exc

    if service.dev_mode:
        return StatusResponse(message="Verified (development mode).")
    return StatusResponse(message="Verified.")


@router.post("/user/register", response_model=ProfileRegistrationResponse)
async def register_profile(
    payload: ProfileRegistrationRequest,
    profiles: Annotated[Any, Depends(get_profile_service)],
) -> ProfileRegistrationResponse:
    profile = profiles.register(payload)
    return ProfileRegistrationResponse(message="Registration complete.", profile=profile)


@router.get("/user/profile", response_model=ProfileLookupResponse)
async def get_profile(
    email: EmailQuery,
    profiles: Annotated[Any, Depends(get_profile_service)],
) -> ProfileLookupResponse:
    profile = profiles.get(email)
    return ProfileLookupResponse(registered=profile is not None, profile=profile)


@router.get("/user/connections", response_model=ConnectionStatusResponse)
async def get_connections(
    email: EmailQuery,
    connections: Annotated[Any, Depends(get_connection_service)],
) -> ConnectionStatusResponse:
    status = connections.status(email)
    return ConnectionStatusResponse(
        google_connected=status[Provider.GOOGLE],
        salesforce_connected=status[Provider.SALESFORCE],
    )


@router.post("/user/disconnect", response_model=StatusResponse)
async def disconnect(
    payload: DisconnectRequest,
    connections: Annotated[Any, Depends(get_connection_service)],
) -> StatusResponse:
    connections.clear(payload.email, payload.service)
    return StatusResponse(
        message=f"Disconnected from {payload.service.display_name}."
    )


def _start_linking(linking: Any, provider: Provider, email: str) -> RedirectResponse:
    try:
        authorization_url = linking.build_authorization_url(provider, email)
    except ProviderNotConfiguredError as exc:
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    return RedirectResponse(url=authorization_url, status_code=HTTPStatus.TEMPORARY_REDIRECT)


async def _complete_linking(
    linking: Any,
    provider: Provider,
    *,
    code: Optional[str],
    state: Optional[str],
    error: Optional[str],
) -> HTMLResponse:
    """Finish the OAuth flow; every outcome is an HTML page for the popup window."""
    if error:
        logger.info("%s authorization declined: %s", provider.display_name, error)
        return error_page("Authorization was cancelled.")
    if not code or not state:
        return error_page("Authorization parameters are missing.")

    try:
        await linking.complete(provider, code=code, state=state)
    except InvalidOAuthStateError as exc:
        logger.warning("Rejected %s OAuth state: %s", provider.value, exc)
        return error_page("The authorization request is invalid or has expired.")
    except ProviderNotConfiguredError as exc:
        return error_page(str(exc))
    except OAuthTokenExchangeError as exc:
        logger.warning("%s token exchange failed: %s", provider.display_name, exc)
        return error_page("Could not obtain an access token.")
    except ConnectionStorageError:
        return error_page("Could not save the connection.")
    except Exception:
        logger.exception("%s callback failed", provider.display_name)
        return error_page("An unexpected server error occurred.")

    return success_page(provider)


@router.get("/google/auth")
async def start_google_linking(
    email: EmailQuery,
    linking: Annotated[Any, Depends(get_account_linking_service)],
) -> RedirectResponse:
    """Redirect the browser to the Google consent screen."""
    return _start_linking(linking, Provider.GOOGLE, email)


@router.get("/google/callback", response_class=HTMLResponse)
async def complete_google_linking(
    linking: Annotated[Any, Depends(get_account_linking_service)],
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
) -> HTMLResponse:
    return await _complete_linking(
        linking, Provider.GOOGLE, code=code, state=state, error=error
    )


@router.get("/sfdc/auth")
async def start_salesforce_linking(
    email: EmailQuery,
    linking: Annotated[Any, Depends(get_account_linking_service)],
) -> RedirectResponse:
    """Redirect the browser to the Salesforce login page."""
    return _start_linking(linking, Provider.SALESFORCE, email)


@router.get("/sfdc/callback", response_class=HTMLResponse)
async def complete_salesforce_linking(
    linking: Annotated[Any, Depends(get_account_linking_service)],
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
) -> HTMLResponse:
    return await _complete_linking(
        linking, Provider.SALESFORCE, code=code, state=state, error=error
    )


@router.get("/calendar/meetings", response_model=MeetingListResponse)
async def list_meetings(
    email: EmailQuery,
    service: Annotated[Any, Depends(get_meeting_service)],
) -> MeetingListResponse:
    """This month's customer meetings; sample data when Google is not linked."""
    try:
        meetings = await service.list_meetings(email)
    except (ReconnectionRequiredError, ProviderRequestError) as exc:
        raise _provider_http_error(
            exc, failure_detail="Failed to fetch calendar events."
        ) from exc
    return MeetingListResponse(meetings=meetings)


@router.get("/sfdc/search", response_model=OpportunitySearchResponse)
async def search_opportunities(
    email: EmailQuery,
    service: Annotated[Any, Depends(get_opportunity_search_service)],
    q: Optional[str] = Query(default=None, description="Opportunity or account name."),
) -> OpportunitySearchResponse:
    if not q or len(q) < MIN_QUERY_LENGTH:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail=f"search query must be at least {MIN_QUERY_LENGTH} characters",
        )

    try:
        opportunities = await service.search(email, q)
    except (
        ConnectionRequiredError,
        ReconnectionRequiredError,
        ProviderRequestError,
    ) as exc:
        raise _provider_http_error(exc, failure_detail="Opportunity search failed.") from exc
    return OpportunitySearchResponse(opportunities=opportunities)


@router.get("/sheets/kpi", response_model=KPIResponse)
async def get_kpi(
    email: EmailQuery,
    service: Annotated[Any, Depends(get_kpi_service)],
) -> KPIResponse:
    return await service.get_kpi(email)


@router.post("/sheets/meeting/sync", response_model=StatusResponse)
async def sync_meetings(
    payload: MeetingSyncRequest,
    service: Annotated[Any, Depends(get_kpi_service)],
) -> StatusResponse:
    """Add meetings to the user's KPI cell for the current quarter."""
    try:
        await service.sync_meetings(payload.email, payload.meetingCount)
    except ProfileRequiredError as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST, detail="User profile not found."
        ) from exc
    except KPIRowNotFoundError as exc:
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    except (
        ConnectionRequiredError,
        ReconnectionRequiredError,
        ProviderRequestError,
    ) as exc:
        raise _provider_http_error(exc, failure_detail="Failed to update the KPI sheet.") from exc

    return StatusResponse(
        message=f"Added {payload.meetingCount} meetings to the KPI sheet."
    )


__all__ = ["router"]
