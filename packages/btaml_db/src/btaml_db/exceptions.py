class BtamlDBError(Exception):
    """Base class for all BTAML DB exceptions."""


class DoesNotExistError(BtamlDBError, ValueError):
    """Raised when a single object was expected but none was found."""


class MultipleObjectsReturnedError(BtamlDBError, ValueError):
    """Raised when a single object was expected but multiple were found."""
