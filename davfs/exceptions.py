"""Custom exception classes for the file system adapter and object stores."""


class DAVFSException(Exception):
    """
    Base exception class for all adapter and storage errors.
    """
    pass


class NotFoundError(DAVFSException):
    """
    Raised when a stat or read targets an object that does not exist.
    """
    pass


class NotDirectoryError(DAVFSException):
    """
    Raised when a listing is requested on anything but the pseudo-root.
    """
    pass


class IsDirectoryError(DAVFSException):
    """
    Raised when byte-level I/O or a rename targets the pseudo-root.
    """
    pass


class IncompleteIOError(DAVFSException):
    """
    Raised when a read or write moved a different number of bytes than expected.
    """

    def __init__(self, operation: str, object_id: str, expected: int, actual: int):
        self.operation = operation
        self.object_id = object_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Incomplete {operation} on {object_id!r}: expected {expected} bytes, got {actual}"
        )


class DecodeError(DAVFSException):
    """
    Raised when a metadata record is truncated, malformed or fails its checksum.
    """
    pass


class ConnectFailureError(DAVFSException):
    """
    Raised when the storage pool cannot be opened at startup.
    """
    pass


class UseAfterCloseError(DAVFSException):
    """
    Raised when an operation is attempted on a closed file handle.
    """
    pass


class ObjectStoreError(DAVFSException):
    """
    Raised by object store clients for backend failures.
    """
    pass


class ObjectNotFoundError(ObjectStoreError):
    """
    Raised by object store clients when the requested object id does not exist.
    """
    pass
