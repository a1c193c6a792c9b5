class AbsenceError(Exception):
    """Base exception for the absence scan station."""


class CameraError(AbsenceError):
    """Raised when camera access fails."""


class MediaAccessError(CameraError):
    """Raised when a camera stream cannot be acquired.

    ``name`` mirrors the error names a browser reports for ``getUserMedia``
    (``NotFoundError``, ``NotReadableError``, ``NotSupportedError``,
    ``OverconstrainedError``) so callers can present them uniformly.
    """

    def __init__(self, name: str, message: str) -> None:
        super().__init__(message)
        self.name = name
        self.message = message


class DetectorError(AbsenceError):
    """Raised when face detection or feature extraction fails."""


class ModelLoadError(AbsenceError):
    """Raised when a model asset cannot be found or downloaded."""
