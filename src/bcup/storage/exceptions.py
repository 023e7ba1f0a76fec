"""Storage exceptions"""

from bcup.exceptions import BcupError, ValidationError


class StorageError(BcupError):
    """Reading or writing the backup file store failed"""

    default_code = "STORAGE_ERROR"


class InvalidNameError(ValidationError):
    """A file or project name cannot be used as a storage identifier"""

    default_code = "INVALID_NAME"
