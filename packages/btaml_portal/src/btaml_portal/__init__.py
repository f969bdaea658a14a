"""BTAML Universe: regional news, business, scholarships and security updates."""

from .main import create_app
from .settings import PortalSettings

__all__ = ["PortalSettings", "create_app"]
