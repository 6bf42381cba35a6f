"""Status page API.

Exposes status page sessions to a browser front end:
  POST   /api/v1/status-pages                          -> enter a page
  GET    /api/v1/status-pages/{page_id}                -> current view
  POST   /api/v1/status-pages/{page_id}/actions/{act}  -> user action
  DELETE /api/v1/status-pages/{page_id}                -> leave the page

The page's token provider is bound at entry from the caller's bearer token,
falling back to the configured static token. Token issuance itself happens
elsewhere.
"""

from __future__ import annotations

from enum import Enum

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from server_status.launch import ServerReference
from server_status.lifecycle.coordinator import StopAlreadyInFlight
from server_status.lifecycle.session import StatusPageSession
from server_status.observability.logging import page_log_context
from server_status.providers.token_provider import StaticTokenProvider
from server_status.registry import RegistryFullError, StatusPageRegistry


class PageAction(str, Enum):
    REQUEST_STOP = 'request-stop'
    CONFIRM_STOP = 'confirm-stop'
    CANCEL_STOP = 'cancel-stop'
    DISMISS_SUCCESS_ALERT = 'dismiss-success-alert'
    DISMISS_INACTIVITY_ALERT = 'dismiss-inactivity-alert'


# ── Request schemas ───────────────────────────────────────────────────


class LaunchParams(BaseModel):
    """Launch parameters as carried in the status page URL."""

    model_config = ConfigDict(populate_by_name=True)

    instance_id: str = Field(default='', alias='instanceId')
    public_ip: str = Field(default='', alias='publicIp')
    server_address: str = Field(default='', alias='serverAddress')
    server_name: str = Field(default='', alias='serverName')
    minecraft_version: str = Field(default='', alias='minecraftVersion')
    server_type: str = Field(default='', alias='serverType')

    def to_reference(self) -> ServerReference:
        return ServerReference(**self.model_dump())


# ── Response helpers ──────────────────────────────────────────────────


def _page_response(session: StatusPageSession) -> dict:
    return {'page_id': session.page_id, 'view': session.view().to_dict()}


def _page_not_found(page_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={
            'error': 'page_not_found',
            'detail': f'No open status page {page_id!r}.',
        },
    )


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get('authorization', '')
    if header.lower().startswith('bearer '):
        return header[7:].strip() or None
    return None


# ── Route factory ─────────────────────────────────────────────────────


def create_status_pages_router(
    registry: StatusPageRegistry,
    *,
    fallback_token: str | None = None,
) -> APIRouter:
    """Create the status page router.

    Args:
        registry: Holds the open page sessions.
        fallback_token: Token used when the entering request carries none.

    Returns:
        FastAPI router with status page endpoints.
    """
    router = APIRouter(prefix='/api/v1/status-pages', tags=['status-pages'])

    @router.post('', status_code=201)
    async def open_page(params: LaunchParams, request: Request):
        """Enter a status page; state is rebuilt from the launch params."""
        token = _bearer_token(request) or fallback_token
        try:
            session = registry.open(
                params.to_reference(), StaticTokenProvider(token)
            )
        except RegistryFullError as exc:
            return JSONResponse(
                status_code=429,
                content={'error': 'too_many_pages', 'detail': str(exc)},
            )
        return _page_response(session)

    @router.get('/{page_id}')
    async def get_page(page_id: str):
        session = registry.get(page_id)
        if session is None:
            return _page_not_found(page_id)
        return _page_response(session)

    @router.post('/{page_id}/actions/{action}')
    async def run_action(page_id: str, action: PageAction):
        session = registry.get(page_id)
        if session is None:
            return _page_not_found(page_id)

        with page_log_context(page_id, session.reference.instance_id):
            if action is PageAction.CONFIRM_STOP:
                try:
                    await session.confirm_stop()
                except StopAlreadyInFlight:
                    return JSONResponse(
                        status_code=409,
                        content={
                            'error': 'stop_in_flight',
                            'detail': 'A stop request is already in progress.',
                        },
                    )
            elif action is PageAction.REQUEST_STOP:
                session.request_stop()
            elif action is PageAction.CANCEL_STOP:
                session.cancel_stop()
            elif action is PageAction.DISMISS_SUCCESS_ALERT:
                session.dismiss_success_alert()
            else:
                session.dismiss_inactivity_alert()

        return _page_response(session)

    @router.delete('/{page_id}', status_code=204)
    async def close_page(page_id: str):
        if not await registry.close(page_id):
            return _page_not_found(page_id)
        return Response(status_code=204)

    return router
