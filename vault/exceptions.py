"""Custom exception classes for the media vault."""


class VaultException(Exception):
    """
    Base exception class for all vault errors.
    """
    pass


class NotFoundError(VaultException):
    """
    Raised when a referenced media record or ciphertext file does not exist.
    """
    pass


class DecryptionError(VaultException):
    """
    Raised when ciphertext, IV or padding cannot be decrypted with the configured key.
    """
    pass


class PersistenceError(VaultException):
    """
    Raised when a write, read or delete against the content directory or metadata store fails.
    """
    pass


class InvalidStateError(VaultException):
    """
    Raised when the archive encoder is used out of order (e.g. append after finish).
    """
    pass


class MalformedInputError(VaultException):
    """
    Raised when a request body cannot be interpreted (e.g. no multipart boundary).
    """
    pass
