"""
Request dependencies resolving the app's injected collaborators.
"""

from fastapi import Request

from energy_market.core.config import Settings
from energy_market.storage.base import Storage


def get_storage(request: Request) -> Storage:
    """Storage instance registered on the application."""
    return request.app.state.storage


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings
