"""HTTP route modules."""

from .status_pages import PageAction, create_status_pages_router

__all__ = ['PageAction', 'create_status_pages_router']
