from .config import BtamlSettings
from .logging import scoped_correlation_id, setup_logging

__all__ = ["BtamlSettings", "scoped_correlation_id", "setup_logging"]
