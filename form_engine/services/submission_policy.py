from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from form_engine.schemas.form import Form

REASON_NOT_PUBLISHED = "not_published"
REASON_DEADLINE_PASSED = "deadline_passed"
REASON_LIMIT_REACHED = "limit_reached"
REASON_ALREADY_SUBMITTED = "already_submitted"

_MESSAGES = {
    REASON_NOT_PUBLISHED: "This form is not accepting submissions",
    REASON_DEADLINE_PASSED: "The submission deadline has passed",
    REASON_LIMIT_REACHED: "This form has reached its maximum number of submissions",
    REASON_ALREADY_SUBMITTED: "You have already submitted this form",
}


class SubmissionClosed(Exception):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(_MESSAGES.get(reason, reason))


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def submission_block_reason(
    form: Form,
    *,
    submission_count: int = 0,
    submitter_has_submitted: bool = False,
    now: Optional[datetime] = None,
) -> Optional[str]:
    if not form.is_published:
        return REASON_NOT_PUBLISHED
    if form.submission_deadline is not None:
        current = _as_aware(now or datetime.now(timezone.utc))
        if _as_aware(form.submission_deadline) < current:
            return REASON_DEADLINE_PASSED
    if form.max_submissions is not None and int(submission_count or 0) >= form.max_submissions:
        return REASON_LIMIT_REACHED
    if not form.allow_multiple_submissions and submitter_has_submitted:
        return REASON_ALREADY_SUBMITTED
    return None


def ensure_accepting_submissions(
    form: Form,
    *,
    submission_count: int = 0,
    submitter_has_submitted: bool = False,
    now: Optional[datetime] = None,
) -> None:
    reason = submission_block_reason(
        form,
        submission_count=submission_count,
        submitter_has_submitted=submitter_has_submitted,
        now=now,
    )
    if reason is not None:
        raise SubmissionClosed(reason)
