# graph.py
# ------------------------------------------------------------
# submit → poll (404 の間ループ) → normalize のジョブフロー
# ------------------------------------------------------------
import logging
from typing import Callable, Optional

from langgraph.graph import END, StateGraph

from client import GreenCloudClient
from config import settings
from errors import JobError, PollTimeoutError, ServerError, UnexpectedStatusError
from models import JobStatus, PollState
from normalize import normalize

logger = logging.getLogger(__name__)

# max_polls=0 のときの recursion_limit 上限
UNBOUNDED_POLLS = 1_000_000

TickCallback = Callable[[str, int], None]


def create_graph(
    client: GreenCloudClient,
    token,
    poll_interval: Optional[float] = None,
    max_polls: Optional[int] = None,
    dedupe: Optional[bool] = None,
    on_tick: Optional[TickCallback] = None,
):
    """
    Build the job workflow graph.

    `token` is the cancellation token for this run; it must offer `cancelled`
    and `wait(seconds) -> bool`. `on_tick(job_id, attempts)` is called once
    the job exists and after every pending poll.
    """
    interval = settings.POLL_INTERVAL if poll_interval is None else poll_interval
    limit = settings.MAX_POLLS if max_polls is None else max_polls
    dedupe = settings.DEDUPE_BY_EMAIL if dedupe is None else dedupe

    def submit_node(state: PollState) -> PollState:
        try:
            job_id = client.create_job(state.get("payload"))
        except JobError as e:
            logger.warning("Submission failed: %s", e)
            return {"status": JobStatus.FAILED, "error": e}
        if on_tick:
            on_tick(job_id, 0)
        return {"job_id": job_id, "status": JobStatus.PENDING, "attempts": 0}

    def poll_node(state: PollState) -> PollState:
        job_id = state["job_id"]
        attempts = state.get("attempts", 0)

        if limit and attempts >= limit:
            logger.warning("Job %s still pending after %d polls", job_id, attempts)
            return {"status": JobStatus.FAILED, "error": PollTimeoutError(attempts)}

        # 次の tick まで待機。キャンセルされたら即終了
        if token.cancelled or token.wait(interval):
            logger.info("Polling for job %s cancelled", job_id)
            return {"status": JobStatus.ABORTED}

        attempts += 1
        try:
            resp = client.fetch_result(job_id)
        except JobError as e:
            return {"status": JobStatus.FAILED, "error": e, "attempts": attempts}

        # 古いジョブの結果は適用しない
        if token.cancelled:
            logger.info("Discarding result for superseded job %s", job_id)
            return {"status": JobStatus.ABORTED, "attempts": attempts}

        if resp.status_code == 200:
            logger.info("Job %s finished after %d polls", job_id, attempts)
            return {"status": JobStatus.SUCCEEDED, "raw_result": resp.body, "attempts": attempts}
        if resp.status_code == 404:
            logger.debug("Polling: result for %s not ready yet...", job_id)
            if on_tick:
                on_tick(job_id, attempts)
            return {"attempts": attempts}
        if resp.status_code in (500, 408):
            error = ServerError(resp.status_code, resp.body_text())
            logger.error("Job %s failed: %s", job_id, error)
            return {"status": JobStatus.FAILED, "error": error, "attempts": attempts}

        logger.error("Unexpected status during polling of %s: %d", job_id, resp.status_code)
        return {
            "status": JobStatus.FAILED,
            "error": UnexpectedStatusError(resp.status_code),
            "attempts": attempts,
        }

    def normalize_node(state: PollState) -> PollState:
        try:
            bundle = normalize(state.get("raw_result"), dedupe=dedupe)
        except JobError as e:
            return {"status": JobStatus.FAILED, "error": e}
        return {"bundle": bundle}

    def after_submit(state: PollState) -> str:
        return "poll" if state["status"] is JobStatus.PENDING else END

    def after_poll(state: PollState) -> str:
        status = state["status"]
        if status is JobStatus.PENDING:
            return "poll"
        if status is JobStatus.SUCCEEDED:
            return "normalize"
        return END

    sg = StateGraph(PollState)
    sg.add_node("submit", submit_node)
    sg.add_node("poll", poll_node)
    sg.add_node("normalize", normalize_node)

    sg.set_entry_point("submit")
    sg.add_conditional_edges("submit", after_submit, ["poll", END])
    sg.add_conditional_edges("poll", after_poll, ["poll", "normalize", END])
    sg.add_edge("normalize", END)

    # poll 1 回 = 1 superstep
    return sg.compile().with_config(recursion_limit=(limit or UNBOUNDED_POLLS) + 5)


def run_job(graph, payload=None) -> PollState:
    """Run one job through the graph and return the final state."""
    initial: PollState = {
        "payload": payload,
        "job_id": None,
        "status": JobStatus.PENDING,
        "attempts": 0,
        "raw_result": None,
        "bundle": None,
        "error": None,
    }
    return graph.invoke(initial)
