#!/usr/bin/env python3
"""
EduPulse: educator-facing student performance analyzer.

Enter or upload per-student marks, attendance and study hours, then review
pass/fail outcomes, class averages, charts and an AI-written summary.

Run locally:
    python3 -m venv .venv
    source .venv/bin/activate
    pip install -e .
    export OPENAI_API_KEY=...   # optional; the insight panel falls back without it
    streamlit run streamlit_app.py

Views:
- Home: overview and entry points.
- Data Entry: edit rows by hand or replace them from a CSV, then save.
- Analysis: statistics and charts for the last saved class.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List

import plotly.express as px
import streamlit as st

from analytics import (
    FAIL_COLOR,
    PASS_COLOR,
    chart_frame,
    compute_stats,
    pass_fail_frame,
    report_frame,
)
from config import Settings, configure_logging
from csv_ingest import EXPECTED_HEADER
from insights import InsightRequester
from roster import Roster
from student_records import DerivedStudent, RecordError

LOGGER = logging.getLogger(__name__)

VIEW_HOME = "Home"
VIEW_ENTRY = "Data Entry"
VIEW_ANALYSIS = "Analysis"
VIEWS = [VIEW_HOME, VIEW_ENTRY, VIEW_ANALYSIS]

# --- Page Configuration ---
st.set_page_config(page_title="EduPulse", page_icon="📊", layout="wide")


# --- CSS Styling ---
def apply_custom_css():
    """Injects custom CSS for the stat cards and feature tiles."""
    st.markdown(
        """
        <style>
            .feature-card {
                border: 1px solid #e6e6e6; border-radius: 12px; padding: 14px 16px;
                margin: 8px 0; background: #fff; min-height: 130px;
            }
            .feature-card h4 { margin: 0 0 6px; }
            .muted { color: #666; }
            .csv-hint { font-family: monospace; background: #f8fafc; padding: 8px 10px; border-radius: 8px; }
        </style>
        """,
        unsafe_allow_html=True,
    )


# --- Process-wide resources ---
@st.cache_resource
def load_settings() -> Settings:
    """Reads configuration once per process and sets up logging."""
    settings = Settings.from_env()
    configure_logging(settings)
    LOGGER.info("Loaded settings (model=%s, credential=%s)", settings.model, settings.has_credential)
    return settings


@st.cache_resource
def load_insight_executor() -> ThreadPoolExecutor:
    """Background workers shared by every session's insight requests."""
    return ThreadPoolExecutor(max_workers=4, thread_name_prefix="insight")


# --- Session State Management ---
def initialize_session_state():
    """Initializes session state with default values."""
    if st.session_state.get("initialized"):
        return

    settings = load_settings()
    st.session_state.roster = Roster()
    st.session_state.requester = InsightRequester(settings, executor=load_insight_executor())
    st.session_state.insight_revision = 0
    st.session_state.entry_error = None
    st.session_state.view = VIEW_HOME

    st.session_state.initialized = True


def go_to(view: str):
    st.session_state.view = view


# --- Widget callbacks ---
def _on_field_change(student_id: str, field: str):
    st.session_state.roster.update(student_id, field, st.session_state[f"{field}-{student_id}"])


def _on_remove(student_id: str):
    st.session_state.roster.remove(student_id)


def _on_add():
    st.session_state.roster.add_blank()


def _on_upload():
    upload = st.session_state.get("csv_upload")
    if upload is None:
        return
    try:
        st.session_state.roster.replace_from_csv(upload)
    except RecordError as exc:
        st.session_state.entry_error = str(exc)
        return
    st.session_state.entry_error = None


def _on_save():
    try:
        st.session_state.roster.save()
    except RecordError as exc:
        st.session_state.entry_error = str(exc)
        return
    st.session_state.entry_error = None
    go_to(VIEW_ANALYSIS)


# --- UI Components ---
def display_header():
    """Renders the sidebar navigation."""
    with st.sidebar:
        st.title("EduPulse")
        st.radio("Navigate", VIEWS, key="view")


def home_view():
    st.title("Master Student Performance with EduPulse")
    st.write(
        "The analytical tool for educators. Clean data, visualize trends, and get "
        "AI-powered insights to help every student succeed."
    )

    col1, col2, _ = st.columns([1, 1, 3])
    col1.button("Get Started", type="primary", on_click=go_to, args=(VIEW_ENTRY,))
    col2.button("View Analysis", on_click=go_to, args=(VIEW_ANALYSIS,))

    features = [
        ("Data Visualization", "Turn raw marks into interactive charts that show trends at a glance."),
        ("Smart Validation", "Every save is checked so your analysis is based on accurate data."),
        ("AI Analysis", "Language-model insights suggest study plans and identify students at risk."),
    ]
    for column, (title, desc) in zip(st.columns(3), features):
        column.markdown(
            f'<div class="feature-card"><h4>{title}</h4><div class="muted">{desc}</div></div>',
            unsafe_allow_html=True,
        )

    st.subheader("Ready to predict student outcomes?")
    st.write(
        "Upload your class spreadsheet or enter data manually. A student passes with "
        "at least 50 marks and 75% attendance."
    )


def entry_view():
    roster: Roster = st.session_state.roster

    st.header("Student Data Entry")
    st.caption("Add students by hand or upload a CSV. Saving validates every row.")

    with st.expander("Bulk upload (CSV)"):
        st.file_uploader("CSV file", type=["csv"], key="csv_upload", on_change=_on_upload)
        st.markdown("For bulk upload, format your CSV like this:")
        st.markdown(
            f'<div class="csv-hint">{EXPECTED_HEADER}<br>John Doe, 85, 92, 4.5</div>',
            unsafe_allow_html=True,
        )

    if st.session_state.entry_error:
        st.error(st.session_state.entry_error)

    widths = [4, 2, 2, 2, 1, 1]
    hdr = st.columns(widths)
    for column, label in zip(hdr, ["Name", "Marks (0-100)", "Attendance %", "Study h/day", "Status", ""]):
        column.markdown(f"**{label}**")

    for student, preview in zip(roster.draft, roster.preview()):
        sid = student.id
        cols = st.columns(widths)
        cols[0].text_input(
            "Name", value=student.name, key=f"name-{sid}", placeholder="e.g. John Doe",
            label_visibility="collapsed", on_change=_on_field_change, args=(sid, "name"),
        )
        cols[1].number_input(
            "Marks", value=float(student.marks), key=f"marks-{sid}",
            label_visibility="collapsed", on_change=_on_field_change, args=(sid, "marks"),
        )
        cols[2].number_input(
            "Attendance", value=float(student.attendance), key=f"attendance-{sid}",
            label_visibility="collapsed", on_change=_on_field_change, args=(sid, "attendance"),
        )
        cols[3].number_input(
            "Study hours", value=float(student.study_hours), step=0.5, key=f"study_hours-{sid}",
            label_visibility="collapsed", on_change=_on_field_change, args=(sid, "study_hours"),
        )
        cols[4].markdown(f":green[{preview.status.value}]" if preview.passed else f":red[{preview.status.value}]")
        cols[5].button(
            "🗑", key=f"remove-{sid}", on_click=_on_remove, args=(sid,),
            disabled=len(roster.draft) <= 1, help="Remove student",
        )

    col1, col2, _ = st.columns([1, 1, 3])
    col1.button("➕ Add Student", on_click=_on_add)
    col2.button("Save & Analyze", type="primary", on_click=_on_save)


def refresh_insight(students: List[DerivedStudent]):
    """Starts a new insight request whenever a new class has been saved."""
    roster: Roster = st.session_state.roster
    if st.session_state.insight_revision == roster.revision:
        return
    st.session_state.insight_revision = roster.revision
    st.session_state.requester.submit(students)


@st.fragment(run_every=1.5)
def pending_insight_panel():
    """Polls the background request without rerunning the rest of the page."""
    if st.session_state.requester.latest() is not None:
        st.rerun()
    st.info("Generating AI insights... the rest of the page stays usable while this loads.")


def insight_panel():
    st.subheader("AI Insights")
    requester: InsightRequester = st.session_state.requester
    result = requester.latest()
    if result is None and requester.pending:
        pending_insight_panel()
        return
    st.markdown(result.text if result else "No insights available.")


def analysis_view():
    roster: Roster = st.session_state.roster
    students = roster.derived()

    if not students:
        st.header("No data to analyze")
        st.info("Enter or upload student records first.")
        st.button("Go to Data Entry", type="primary", on_click=go_to, args=(VIEW_ENTRY,))
        return

    refresh_insight(students)
    stats = compute_stats(students)

    st.header("Class Analysis")
    st.button("← Edit data", on_click=go_to, args=(VIEW_ENTRY,))

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Avg Marks", f"{stats.avg_marks}/100")
    c2.metric("Avg Attendance", f"{stats.avg_attendance}%")
    c3.metric("Avg Study Hours", f"{stats.avg_study_hours}h")
    c4.metric("Pass Rate", f"{stats.pass_rate}%", help=f"{stats.pass_count} of {stats.total} passed")

    frame = chart_frame(students)
    left, right = st.columns(2)
    with left:
        st.subheader("Marks vs Attendance")
        fig = px.bar(frame, x="name", y=["marks", "attendance"], barmode="group")
        st.plotly_chart(fig, use_container_width=True)
    with right:
        st.subheader("Performance Score & Study Hours")
        fig = px.line(frame, x="name", y=["score", "study_hours"], markers=True)
        st.plotly_chart(fig, use_container_width=True)

    left, right = st.columns([2, 1])
    with left:
        insight_panel()
    with right:
        st.subheader("Pass / Fail")
        fig = px.pie(
            pass_fail_frame(students), names="outcome", values="count", hole=0.6,
            color="outcome", color_discrete_map={"Passed": PASS_COLOR, "Failed": FAIL_COLOR},
        )
        st.plotly_chart(fig, use_container_width=True)

    st.subheader("Auto-Generated Report")
    st.dataframe(
        report_frame(students),
        hide_index=True,
        use_container_width=True,
        column_config={
            "rank": st.column_config.NumberColumn("#"),
            "marks": st.column_config.ProgressColumn("Marks", min_value=0, max_value=100, format="%.0f"),
            "attendance": st.column_config.NumberColumn("Attendance %"),
            "study_hours": st.column_config.NumberColumn("Study h/day"),
            "points": st.column_config.NumberColumn("Score (pts)"),
        },
    )


# --- Main Application ---
def main():
    """Main function to run the Streamlit application."""
    initialize_session_state()
    apply_custom_css()
    display_header()

    view = st.session_state.view
    if view == VIEW_ENTRY:
        entry_view()
    elif view == VIEW_ANALYSIS:
        analysis_view()
    else:
        home_view()


if __name__ == "__main__":
    main()
