# session.py
import logging
import threading
from typing import Any, Callable, Dict, Optional

from client import GreenCloudClient
from config import settings
from graph import create_graph, run_job
from models import JobStatus, ViewState

logger = logging.getLogger(__name__)


class CancelToken:
    """One per poll loop. Cancelling wakes a waiting tick immediately."""

    def __init__(self):
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self):
        self._event.set()

    def wait(self, seconds: float) -> bool:
        # True = キャンセル済み
        return self._event.wait(seconds)


class JobSession:
    """
    Owns the single live job of a page and the view snapshot built from it.

    Only the most recently started job may change the view: results that
    arrive for any other job id are dropped.
    """

    def __init__(
        self,
        client: Optional[GreenCloudClient] = None,
        poll_interval: Optional[float] = None,
        max_polls: Optional[int] = None,
        dedupe: Optional[bool] = None,
    ):
        # 渡された client は呼び出し側の管理。自前で作ったものだけ close する
        self._owns_client = client is None
        self.client = client or GreenCloudClient()
        self.poll_interval = settings.POLL_INTERVAL if poll_interval is None else poll_interval
        self.max_polls = settings.MAX_POLLS if max_polls is None else max_polls
        self.dedupe = settings.DEDUPE_BY_EMAIL if dedupe is None else dedupe

        self.view = ViewState()
        self.active_job_id: Optional[str] = None
        self._token: Optional[CancelToken] = None
        self._run = 0  # 送信ごとに増える世代番号
        self._lock = threading.Lock()

    # --- 状態遷移 ---------------------------------------------------------
    def _is_current(self, run: int, job_id: Optional[str] = None) -> bool:
        if run != self._run:
            return False
        return job_id is None or job_id == self.active_job_id

    def _on_tick(self, run: int, job_id: str, attempts: int):
        with self._lock:
            if not self._is_current(run):
                return
            if attempts == 0:
                self.active_job_id = job_id
                self.view = self.view.job_created(job_id)
            elif job_id == self.active_job_id:
                self.view = self.view.poll_tick(attempts)

    def cancel(self):
        """Stop the outstanding poll loop, if any."""
        with self._lock:
            if self._token and not self._token.cancelled:
                logger.info("Cancelling poll loop for job %s", self.active_job_id)
                self._token.cancel()
                self.view = self.view.abort() if self.view.in_flight else self.view

    def start(self, payload: Optional[Dict[str, Any]] = None,
              on_tick: Optional[Callable[[ViewState], None]] = None) -> ViewState:
        """
        Submit a new job and poll it to a terminal state.

        Any previous poll loop is cancelled first. Returns the view after the
        run; if a newer submission superseded this one meanwhile, the view
        is left as the newer run made it.
        """
        with self._lock:
            if self._token:
                self._token.cancel()
            token = CancelToken()
            self._token = token
            self._run += 1
            run = self._run
            self.active_job_id = None
            self.view = self.view.submit()

        def tick(job_id: str, attempts: int):
            self._on_tick(run, job_id, attempts)
            if on_tick and self._is_current(run, job_id):
                on_tick(self.view)

        graph = create_graph(
            self.client,
            token,
            poll_interval=self.poll_interval,
            max_polls=self.max_polls,
            dedupe=self.dedupe,
            on_tick=tick,
        )
        final = run_job(graph, payload=settings.JOB_PAYLOAD if payload is None else payload)
        self._apply(run, final)
        return self.view

    def _apply(self, run: int, final):
        status = final.get("status")
        with self._lock:
            if not self._is_current(run, final.get("job_id")):
                logger.info("Ignoring stale result for job %s", final.get("job_id"))
                return
            if status is JobStatus.ABORTED:
                self.view = self.view.abort()
            elif final.get("error") is not None:
                self.view = self.view.poll_failure(str(final["error"]))
            elif final.get("bundle") is not None:
                self.view = self.view.poll_success(final["bundle"])
            self._token = None

    def set_search_term(self, term: str) -> ViewState:
        self.view = self.view.set_search_term(term)
        return self.view

    def close(self):
        """Tear down: cancel polling and close the HTTP client if this session created it."""
        self.cancel()
        if self._owns_client:
            self.client.close()
