# models.py
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, TypedDict

from errors import JobError


class ContactRecord(TypedDict, total=False):
    name: str | None
    address: str | None
    phone: str | None
    email: str | None    # 重複判定キー


class FailedExtraction(TypedDict, total=False):
    fileName: str
    error: str


@dataclass(frozen=True)
class ResultBundle:
    extracted_contacts: List[ContactRecord] = field(default_factory=list)  # 表示対象
    duplicates: List[ContactRecord] = field(default_factory=list)
    empty_records: List[ContactRecord] = field(default_factory=list)
    failed_extractions: List[FailedExtraction] = field(default_factory=list)


class JobStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ABORTED = "aborted"

    @property
    def terminal(self) -> bool:
        return self is not JobStatus.PENDING


@dataclass(frozen=True)
class Job:
    id: str
    status: JobStatus = JobStatus.PENDING
    reason: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def succeed(self) -> "Job":
        return replace(self, status=JobStatus.SUCCEEDED, reason=None)

    def fail(self, reason: str) -> "Job":
        return replace(self, status=JobStatus.FAILED, reason=reason)

    def abort(self) -> "Job":
        return replace(self, status=JobStatus.ABORTED)


class PollState(TypedDict, total=False):
    payload: Dict[str, Any]          # POST body
    job_id: str | None               # submit で確定
    status: JobStatus
    attempts: int                    # 実行済み poll 回数
    raw_result: Any                  # 200 の本文
    bundle: ResultBundle | None      # normalize 後
    error: JobError | None           # 終了理由


Phase = Literal["idle", "submitting", "polling", "done"]


@dataclass(frozen=True)
class ViewState:
    """Snapshot of everything the page renders. Replaced, never mutated."""

    phase: Phase = "idle"
    job: Optional[Job] = None
    result: Optional[ResultBundle] = None
    error: Optional[str] = None
    search_term: str = ""
    attempts: int = 0

    @property
    def in_flight(self) -> bool:
        return self.phase in ("submitting", "polling")

    def submit(self) -> "ViewState":
        # 新規送信で前回の結果とエラーを破棄
        return ViewState(phase="submitting")

    def job_created(self, job_id: str) -> "ViewState":
        return replace(self, phase="polling", job=Job(id=job_id), attempts=0)

    def poll_tick(self, attempts: int) -> "ViewState":
        return replace(self, attempts=attempts)

    def poll_success(self, bundle: ResultBundle) -> "ViewState":
        job = self.job.succeed() if self.job else None
        return replace(self, phase="done", job=job, result=bundle, error=None)

    def poll_failure(self, message: str) -> "ViewState":
        job = self.job.fail(message) if self.job else None
        return replace(self, phase="done", job=job, result=None, error=message)

    def abort(self) -> "ViewState":
        job = self.job.abort() if self.job else None
        return replace(self, phase="idle", job=job)

    def set_search_term(self, term: str) -> "ViewState":
        return replace(self, search_term=term)

    def reset(self) -> "ViewState":
        return ViewState()
