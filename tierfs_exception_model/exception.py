class TierFsException(Exception):
    """
    Base class for every error raised by the tierfs client, engine and transport.

    Attributes:
        message -- explanation of the error
        path -- logical path the operation targeted, if known
        file_id -- file handle the operation targeted, if known
    """

    def __init__(self, message, path=None, file_id=None):
        self.message = message
        self.path = path
        self.file_id = file_id
        super().__init__(self.message)

    def __str__(self):
        details = []
        if self.path is not None:
            details.append(f"path={self.path}")
        if self.file_id is not None:
            details.append(f"file_id={self.file_id}")

        if details:
            return f"{self.message} ({', '.join(details)})"
        return self.message


class ConfigurationError(TierFsException):
    """
    Exception raised when a client context cannot be built, e.g. the master
    endpoint is missing or malformed or a config file cannot be loaded.
    """

    def __init__(self, message, setting=None, cause: Exception = None):
        self.setting = setting
        self.cause = cause
        super().__init__(message)

    def __str__(self):
        details = []
        if self.setting is not None:
            details.append(f"setting={self.setting}")
        if self.cause is not None:
            details.append(f"cause={self.cause}")

        if details:
            return f"{self.message} ({', '.join(details)})"
        return self.message


class InvalidPathError(TierFsException, ValueError):
    """
    Exception raised when a logical path is malformed or cannot be placed in the
    namespace (for instance, one of its ancestors is a file).
    """


class FileAlreadyExistsError(TierFsException, FileExistsError):
    """
    Exception raised when creating a file at a path that is already occupied.
    """


class FileDoesNotExistError(TierFsException, FileNotFoundError):
    """
    Exception raised when a file handle or path no longer resolves to a file,
    e.g. because another actor deleted it.
    """


class StorageCapacityError(TierFsException):
    """
    Exception raised when the storage tier cannot allocate room for new data.
    """

    def __init__(self, message, path=None, file_id=None, requested_bytes=None, available_bytes=None):
        self.requested_bytes = requested_bytes
        self.available_bytes = available_bytes
        super().__init__(message, path, file_id)


class StreamClosedError(TierFsException):
    """
    Exception raised when an operation is attempted on a stream that was
    already closed or cancelled.
    """


class StorageIOError(TierFsException, IOError):
    """
    Generic transport or storage failure.
    """

    def __init__(self, message, path=None, file_id=None, cause: Exception = None):
        self.cause = cause
        super().__init__(message, path, file_id)


class StorageTimeoutError(StorageIOError):
    """
    Exception raised when the storage endpoint did not answer within the
    configured timeout.
    """

    def __init__(self, message, operation=None, timeout_seconds=None, cause: Exception = None):
        self.operation = operation
        self.timeout_seconds = timeout_seconds
        super().__init__(message, cause=cause)

    def __str__(self):
        details = []
        if self.operation is not None:
            details.append(f"operation={self.operation}")
        if self.timeout_seconds is not None:
            details.append(f"timeout={self.timeout_seconds}s")

        if details:
            return f"{self.message} ({', '.join(details)})"
        return self.message


class InvalidPayloadError(TierFsException, ValueError):
    """
    Exception raised when a byte payload or wire body cannot be decoded.
    """
