# lms/utils/errors.py


class ServiceError(Exception):
    """Base de los errores de dominio; cada subclase fija su status HTTP."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    status_code = 400


class Unavailable(ServiceError):
    # curso archivado (soft delete): existe pero no acepta nuevas inscripciones
    status_code = 400


class AuthenticationError(ServiceError):
    status_code = 401


class Forbidden(ServiceError):
    status_code = 403


class NotFound(ServiceError):
    status_code = 404


class Conflict(ServiceError):
    status_code = 409
