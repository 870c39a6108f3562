from __future__ import annotations


class TaskTrackError(Exception):
    pass


class NotFoundOrUnauthorized(TaskTrackError):
    def __init__(self, entity: str, entity_id: int | None = None) -> None:
        self.entity = entity
        self.entity_id = entity_id
        if entity_id is None:
            message = f"{entity} not found or user not authorized"
        else:
            message = f"{entity} {entity_id} not found or user not authorized"
        super().__init__(message)


class ValidationFailed(TaskTrackError):
    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class TransactionFailed(TaskTrackError):
    pass
