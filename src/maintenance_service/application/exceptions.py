from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    pass


class ConflictError(AppError):
    pass


class ValidationError(AppError):
    pass


class JobNotFoundError(NotFoundError):
    def __init__(self, job_name: str) -> None:
        super().__init__(f"Unknown job: {job_name}")
        self.job_name = job_name
