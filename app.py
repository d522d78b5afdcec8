"""ASCPi Exam Simulator — Streamlit front end for the session engine and question bank."""
import logging
import sys
from pathlib import Path

# Ensure project root is in path
project_root = Path(__file__).resolve().parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import streamlit as st

from db import get_store, get_supabase_uncached
from examsim import auth, question_bank
from examsim.constants import CHOICE_LABELS, DEFAULT_CHOICE_COUNT, DIFFICULTIES, TOPICS
from examsim.database import DatabaseClient
from examsim.engine import SessionEngine
from examsim.errors import ExamSimError, NoOpenSession, NoQuestionsAvailable
from examsim.models import Mode

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

PAGES = ["Exam", "Question Bank"]

st.set_page_config(page_title="ASCPi Exam Simulator", layout="wide")
st.sidebar.title("ASCPi Exam Simulator")
default_page = st.query_params.get("page", "Exam")
if default_page not in PAGES:
    default_page = "Exam"
page = st.sidebar.radio("Navigate", PAGES, index=PAGES.index(default_page), label_visibility="collapsed")


def _auth_client():
    # One Supabase client per browser session so auth state is never shared between users
    if "auth_client" not in st.session_state:
        st.session_state["auth_client"] = get_supabase_uncached()
    return st.session_state["auth_client"]


def _signed_in_user():
    if st.session_state.get("user") is None:
        st.session_state["user"] = auth.current_user(_auth_client())
    return st.session_state["user"]


def render_sign_in():
    st.caption("Shared login · Multi-device sync · Resume progress")
    email = st.text_input("Email", placeholder="you@example.com", key="sign_in_email")
    if st.button("Email me a code", type="primary"):
        try:
            auth.send_sign_in_code(_auth_client(), email)
            st.session_state["code_sent_to"] = email.strip()
            st.success("Code sent. Check your email and enter it below.")
        except ValueError as e:
            st.warning(str(e))
        except ExamSimError as e:
            st.error(str(e))

    if st.session_state.get("code_sent_to"):
        with st.form("verify_code"):
            token = st.text_input("Sign-in code", max_chars=10)
            if st.form_submit_button("Sign in", type="primary"):
                try:
                    st.session_state["user"] = auth.verify_code(
                        _auth_client(), st.session_state["code_sent_to"], token
                    )
                except ValueError as e:
                    st.warning(str(e))
                except ExamSimError as e:
                    st.error(f"Sign-in failed. Request a new code if this one expired. {e}")
                else:
                    st.session_state.pop("code_sent_to", None)
                    st.rerun()


def _engine(user) -> SessionEngine:
    engine = st.session_state.get("engine")
    if engine is None or engine.user_id != user.id:
        engine = SessionEngine(DatabaseClient(_auth_client()), user.id)
        st.session_state["engine"] = engine
    return engine


def _label(i: int, choice: str) -> str:
    return f"{CHOICE_LABELS[i]}. {choice}"


def render_question_panel(engine: SessionEngine):
    session = engine.session
    try:
        question = engine.current_question()
    except ExamSimError as e:
        st.error(f"Could not load this question. {e}")
        return
    if question is None:
        st.warning("This question is no longer available.")
        return
    attempt = engine.current_attempt()

    st.caption(f"Topic: {question.topic or '—'} · Difficulty: {question.difficulty or '—'}")
    st.subheader(f"Question {session.current_index + 1} of {session.total}")
    st.write(question.stem)
    if question.image_url:
        st.image(question.image_url, caption="Question illustration")

    if engine.can_answer():
        selected = st.radio(
            "Choose your answer:",
            options=list(range(len(question.choices))),
            format_func=lambda i: _label(i, question.choices[i]),
            index=attempt.choice_index if attempt else None,
            key=f"choice_{session.id}_{question.id}",
        )
        if st.button("Submit Answer", type="primary", disabled=selected is None):
            try:
                engine.submit_answer(selected)
            except ExamSimError as e:
                st.error(str(e))
            else:
                st.rerun()
    else:
        for i, choice in enumerate(question.choices):
            if i == question.correct_index:
                st.success(f"✓ {_label(i, choice)} (Correct Answer)")
            elif attempt and i == attempt.choice_index:
                st.error(f"✗ {_label(i, choice)} (Your Answer)")
            else:
                st.write(f"○ {_label(i, choice)}")

    if attempt:
        st.divider()
        if attempt.correct:
            st.success("✓ Correct! Well done.")
        else:
            st.error(f"✗ Incorrect. The correct answer is {CHOICE_LABELS[question.correct_index]}.")
        if question.explanation:
            st.info(question.explanation)

    col1, col2, _ = st.columns([1, 1, 2])
    with col1:
        if st.button("← Previous", disabled=session.current_index == 0):
            engine.navigate(-1)
            st.rerun()
    with col2:
        if st.button("Next →", disabled=session.current_index >= session.total - 1):
            engine.navigate(1)
            st.rerun()


def render_review_panel(engine: SessionEngine):
    incorrect = engine.incorrect_questions
    if not incorrect:
        st.subheader("Review Incorrect")
        st.success("No incorrect answers! Perfect score!")
        return
    st.subheader(f"Review Incorrect ({len(incorrect)})")
    for question in incorrect:
        with st.container(border=True):
            tags = " · ".join(t for t in (question.topic, question.difficulty) if t)
            if tags:
                st.caption(tags)
            st.write(f"**{question.stem}**")
            if question.image_url:
                st.image(question.image_url)
            st.write(f"Correct answer: {_label(question.correct_index, question.correct_choice or '')}")
            if question.explanation:
                st.caption(question.explanation)


# ----- Exam -----
if page == "Exam":
    st.header("Exam")
    try:
        user = _signed_in_user()
    except (ValueError, ExamSimError) as e:
        st.error(f"Could not check sign-in. Check .env (SUPABASE_URL, SUPABASE_KEY). {e}")
        st.stop()

    if user is None:
        render_sign_in()
        st.stop()

    col_user, col_out = st.columns([3, 1])
    with col_user:
        st.caption(f"Signed in as {user.email}")
    with col_out:
        if st.button("Sign out"):
            try:
                auth.sign_out(_auth_client())
            except ExamSimError as e:
                st.error(str(e))
            for k in ("user", "engine"):
                st.session_state.pop(k, None)
            st.rerun()

    engine = _engine(user)

    col1, col2, col3, col4, col5 = st.columns([2, 1, 1, 1, 1])
    with col1:
        topic_choice = st.selectbox("Topic", ["All topics"] + TOPICS)
    with col2:
        mode_choice = st.selectbox("Mode", [m.value for m in Mode], format_func=str.title)
    with col3:
        if st.button("New Exam", type="primary"):
            topic = None if topic_choice == "All topics" else topic_choice
            try:
                session = engine.create_session(topic, mode_choice)
                st.toast(f"Started {session.mode.value} with {session.total} questions.")
            except NoQuestionsAvailable:
                st.warning("No active questions found for the selected topic.")
            except ExamSimError as e:
                st.error(str(e))
    with col4:
        if st.button("Resume Last"):
            try:
                session = engine.resume_session()
                st.toast(f"Resumed {session.mode.value} session.")
            except NoOpenSession as e:
                st.info(str(e))
            except ExamSimError as e:
                st.error(str(e))
    with col5:
        if engine.session is not None and st.button("Finish Exam", type="secondary"):
            try:
                result = engine.finish_session()
                st.toast(f"Final score: {result.session.score}/{result.session.total}")
            except ExamSimError as e:
                st.error(str(e))

    session = engine.session
    if session is None:
        st.info("Start a new exam or resume your last one.")
        st.stop()

    st.caption(
        f"Mode: {session.mode.value} · Score: {session.score}/{session.total} · "
        f"Q {session.current_index + 1}/{session.total}"
    )
    st.progress(len(engine.attempts) / session.total if session.total else 0)

    if session.is_finished:
        render_review_panel(engine)
    else:
        render_question_panel(engine)

# ----- Question Bank -----
elif page == "Question Bank":
    st.header("Question Bank")
    st.caption("Add questions, browse the bank and check the database connection")
    try:
        store = get_store()
    except ValueError as e:
        st.error(str(e))
        st.stop()

    tab_add, tab_view, tab_db = st.tabs(["Add Question", "View Questions", "Database"])

    with tab_add:
        with st.form("add_question", clear_on_submit=True):
            stem = st.text_area("Question Stem", placeholder="Enter the question text...")
            choices = [
                st.text_input(f"Choice {CHOICE_LABELS[i]}", key=f"new_choice_{i}")
                for i in range(DEFAULT_CHOICE_COUNT)
            ]
            correct_index = st.selectbox(
                "Correct Answer",
                list(range(DEFAULT_CHOICE_COUNT)),
                format_func=lambda i: CHOICE_LABELS[i],
            )
            col1, col2 = st.columns(2)
            with col1:
                topic = st.selectbox("Topic", [""] + TOPICS, format_func=lambda t: t or "—")
            with col2:
                difficulty = st.selectbox("Difficulty", [""] + DIFFICULTIES, format_func=lambda d: d or "—")
            explanation = st.text_area("Explanation (Optional)")
            if st.form_submit_button("Add Question", type="primary", use_container_width=True):
                try:
                    q = question_bank.add_question(store, {
                        "stem": stem,
                        "choices": choices,
                        "correct_index": correct_index,
                        "topic": topic,
                        "difficulty": difficulty,
                        "explanation": explanation,
                    })
                    st.success(f"Question {q.id} added successfully!")
                except ExamSimError as e:
                    st.error(str(e))

    with tab_view:
        try:
            recent = question_bank.list_recent_questions(store)
        except ExamSimError as e:
            st.error(str(e))
            recent = []
        if not recent:
            st.info("No questions found. Add some questions to get started!")
        for q in recent:
            with st.container(border=True):
                tags = [f"ID: {q.id}", q.topic, q.difficulty, "Active" if q.is_active else "Inactive"]
                st.caption(" · ".join(t for t in tags if t))
                st.write(f"**{q.stem}**")
                for i, choice in enumerate(q.choices):
                    marker = " ✓" if i == q.correct_index else ""
                    st.write(f"{_label(i, choice)}{marker}")
                if q.explanation:
                    st.caption(f"Explanation: {q.explanation}")

    with tab_db:
        col1, col2 = st.columns(2)
        with col1:
            if st.button("Test Database Connection", use_container_width=True):
                try:
                    question_bank.check_connection(store)
                    st.success("✅ Successfully connected to Supabase!")
                except ExamSimError as e:
                    st.error(f"Database Error: {e}")
        with col2:
            if st.button("Add Sample Questions", type="primary", use_container_width=True):
                try:
                    added = question_bank.add_sample_questions(store)
                    st.success(f"Added {len(added)} sample questions!")
                except ExamSimError as e:
                    st.error(str(e))
