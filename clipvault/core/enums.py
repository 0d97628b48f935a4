"""Core enums used across modules."""

from enum import StrEnum


class RoleEnum(StrEnum):
    """System roles."""

    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


class SubmissionStatusEnum(StrEnum):
    """Submission moderation status."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewDecisionEnum(StrEnum):
    """Terminal statuses a reviewer may choose."""

    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def status(self) -> SubmissionStatusEnum:
        return SubmissionStatusEnum(self.value)


class FileTypeEnum(StrEnum):
    """Kind of media attached to a submission."""

    IMAGE = "image"
    VIDEO = "video"


class PayoutStatusEnum(StrEnum):
    """Payout ledger entry status."""

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AdminActionEnum(StrEnum):
    """Action tags written to the admin audit log."""

    REVIEW_SUBMISSION = "REVIEW_SUBMISSION"
    BULK_REVIEW_SUBMISSIONS = "BULK_REVIEW_SUBMISSIONS"
    ADD_BALANCE = "ADD_BALANCE"
    UPDATE_USER = "UPDATE_USER"
    UPDATE_SETTING = "UPDATE_SETTING"
