from .db import close_db, create_tables, get_db, get_session_factory, init_db
from .exceptions import BtamlDBError, DoesNotExistError, MultipleObjectsReturnedError
from .expressions import F, Q, Sum
from .models import Model, TimestampMixin

__all__ = [
    "BtamlDBError",
    "DoesNotExistError",
    "F",
    "Model",
    "MultipleObjectsReturnedError",
    "Q",
    "Sum",
    "TimestampMixin",
    "close_db",
    "create_tables",
    "get_db",
    "get_session_factory",
    "init_db",
]
