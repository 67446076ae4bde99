# ui.py
import streamlit as st

from client import GreenCloudClient
from config import settings
from models import ViewState
from search import filter_rows, to_frame
from session import JobSession

WAIT_MESSAGE = "Please be patient, GreenCloud is hard at work!"


@st.cache_resource
def get_client() -> GreenCloudClient:
    # ブラウザセッション間で共有する httpx client
    return GreenCloudClient()


def init_session_state():
    if "job_session" not in st.session_state: st.session_state.job_session = JobSession(client=get_client())
    if "start_requested" not in st.session_state: st.session_state.start_requested = False
    if "search_term" not in st.session_state: st.session_state.search_term = ""


def get_session() -> JobSession:
    return st.session_state.job_session


def request_start():
    # ボタンの on_click。再実行前に送信状態へ遷移させてボタンを無効化する
    session = get_session()
    session.cancel()
    session.view = session.view.submit()
    st.session_state.start_requested = True
    st.session_state.search_term = ""


def button_label(view: ViewState) -> str:
    if view.phase == "submitting":
        return "Initializing ..."
    if view.phase == "polling":
        return "Processing ..."
    return "Click to start processing"


def render_action_bar():
    view = get_session().view
    st.button(
        button_label(view),
        on_click=request_start,
        disabled=view.in_flight,
        type="primary",
        key="start_button",
    )


def run_pending_job():
    if not st.session_state.start_requested:
        return
    st.session_state.start_requested = False

    session = get_session()
    status = st.empty()

    def show_progress(view: ViewState):
        # st 呼び出しがここで再実行/終了を受け取る
        if view.attempts:
            status.caption(f"Waiting for job {view.job.id} (check {view.attempts})")
        else:
            status.caption(f"Job {view.job.id} submitted")

    try:
        with st.spinner(WAIT_MESSAGE):
            session.start(on_tick=show_progress)
    finally:
        # 途中で中断されたらポーリングも止める
        if session.view.in_flight:
            session.cancel()
    status.empty()
    st.rerun()


def render_results():
    session = get_session()
    view = session.view
    if view.result is None:
        return

    st.text_input("Search", key="search_term", placeholder="Search the table...")
    view = session.set_search_term(st.session_state.get("search_term", ""))

    rows = view.result.extracted_contacts
    filtered = filter_rows(rows, view.search_term)

    st.dataframe(to_frame(filtered), use_container_width=True, hide_index=True, height=400)
    st.caption(f"Showing {len(filtered)} of {len(rows)} contacts")

    render_buckets(view)


def render_buckets(view: ViewState):
    bundle = view.result
    cols = st.columns(3)
    cols[0].metric("Duplicates", len(bundle.duplicates))
    cols[1].metric("Empty records", len(bundle.empty_records))
    cols[2].metric("Failed extractions", len(bundle.failed_extractions))

    if bundle.duplicates:
        with st.expander("Duplicates"):
            st.dataframe(to_frame(bundle.duplicates), use_container_width=True, hide_index=True)
    if bundle.empty_records:
        with st.expander("Empty records"):
            st.dataframe(to_frame(bundle.empty_records), use_container_width=True, hide_index=True)
    if bundle.failed_extractions:
        with st.expander("Failed extractions"):
            st.table([{"File": f.get("fileName"), "Error": f.get("error")}
                      for f in bundle.failed_extractions])


def render_error():
    error = get_session().view.error
    if not error:
        return
    st.subheader("Error")
    st.code(error, language=None)


def render_page():
    st.set_page_config(page_title=settings.APP_TITLE, page_icon="📇", layout="wide")
    st.title(f"📇 {settings.APP_TITLE}")

    init_session_state()
    render_action_bar()
    run_pending_job()
    render_results()
    render_error()
