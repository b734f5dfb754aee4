"""
Business exceptions raised by the service layer

Every error carries an HTTP status, a stable machine code and a human readable
message. They subclass FastAPI's HTTPException so routers can let them propagate
untouched; main.py renders them in the common error envelope.
"""
from typing import Optional

from fastapi import HTTPException


class BusinessException(HTTPException):
    """Base class for user-facing business errors"""

    status_code_default = 400
    code = "business_error"
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        super().__init__(
            status_code=status_code or self.status_code_default,
            detail=self.message,
        )

    def __str__(self) -> str:
        return self.message


class RecordNotFound(BusinessException):
    status_code_default = 404
    code = "record_not_found"
    default_message = "Record does not exist"

    def __init__(self, record: Optional[str] = None):
        super().__init__(f"{record} does not exist" if record else None)


class RecordUnavailable(BusinessException):
    status_code_default = 403
    code = "record_unavailable"
    default_message = "Record is not available"

    def __init__(self, record: Optional[str] = None):
        super().__init__(f"{record} is not available" if record else None)


class RecordExisted(BusinessException):
    status_code_default = 409
    code = "record_existed"
    default_message = "Record already exists"

    def __init__(self, record: Optional[str] = None):
        super().__init__(f"{record} already exists" if record else None)


class RecordInUse(BusinessException):
    status_code_default = 409
    code = "record_in_use"
    default_message = "Record is in use"

    def __init__(self, record: Optional[str] = None, used_by: Optional[str] = None):
        if record and used_by:
            message = f"{record} is still used by {used_by}"
        elif record:
            message = f"{record} is in use"
        else:
            message = None
        super().__init__(message)


class NoPermission(BusinessException):
    status_code_default = 403
    code = "no_permission"
    default_message = "Access denied"

    def __init__(self, record: Optional[str] = None):
        super().__init__(f"Access denied to {record}" if record else None)


class InvalidScalePercent(BusinessException):
    code = "invalid_scale_percent"
    default_message = "Scale percentages must add up to 100"


class InsufficientQuestions(BusinessException):
    code = "insufficient_questions"

    def __init__(self, chapter_id: str, level: str, available: int, required: int):
        self.chapter_id = chapter_id
        self.level = level
        self.available = available
        self.required = required
        super().__init__(
            f"Chapter {chapter_id} has {available} '{level}' question(s) available, "
            f"{required} required"
        )


class InvalidFillInFormat(BusinessException):
    code = "invalid_fill_in_format"
    default_message = "Invalid fill-in-the-blank format"


class TooManyDistractorsRequested(BusinessException):
    code = "too_many_distractors"

    def __init__(self, requested: int, maximum: int):
        self.requested = requested
        self.maximum = maximum
        super().__init__(
            f"Requested {requested} wrong answer(s) but at most {maximum} can be generated"
        )


class InvalidLabelScheme(BusinessException):
    code = "invalid_label_scheme"
    default_message = "Invalid label scheme"

    def __init__(self, label=None):
        super().__init__(f"Invalid label scheme: {label!r}" if label is not None else None)


class InvalidAnswerSet(BusinessException):
    code = "invalid_answer_set"
    default_message = "Invalid answer set"


class ExamSizeExceeded(BusinessException):
    code = "exam_size_exceeded"
    default_message = "Requested exam is too large"


class ConcurrentModification(BusinessException):
    status_code_default = 409
    code = "concurrent_modification"
    default_message = "Record was modified concurrently, please retry"


class UploadFailed(BusinessException):
    status_code_default = 502
    code = "upload_failed"
    default_message = "Image upload failed"
