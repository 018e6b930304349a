"""
SylMan Streamlit UI

Thin shell over the editor engine:
- Sign in: login / signup against the syllabus store
- My Syllabi: list, create, copy, delete
- Editor: course fields, program outcomes, instructors, modules, policies,
  manual save plus change-gated autosave on each rerun
"""
import asyncio
import time

import streamlit as st

from sylman.core.config import get_settings
from sylman.core.logger import setup_logging, status_buffer
from sylman.services.dashboard import SyllabusDashboard
from sylman.services.editor import SyllabusEditor
from sylman.services.form_layout import FIELD_LABELS, RICH_TEXT_FIELDS
from sylman.services.gateway import GatewayError, SyllabusGateway
from sylman.services.program_defaults import POLICY_KEYS
from sylman.services.session import SessionContext
from sylman.services.syllabus_formatter import policy_title

settings = get_settings()
setup_logging()

st.set_page_config(page_title=settings.app_name, page_icon="📘", layout="wide")

if "session" not in st.session_state:
    st.session_state.session = SessionContext()
    st.session_state.editor = None
    st.session_state.last_autosave = 0.0

session: SessionContext = st.session_state.session
gateway = SyllabusGateway()


def run(coro):
    """Run one gateway/engine coroutine from the script thread."""
    try:
        return asyncio.run(coro)
    except GatewayError as e:
        st.error(f"API Error: {e.message}")
        return None


def open_editor(syllabus_id):
    editor = SyllabusEditor(session, gateway, settings)
    if run(editor.open(syllabus_id)) is not None:
        st.session_state.editor = editor
        st.session_state.last_autosave = time.monotonic()


# Sidebar navigation
st.sidebar.title(settings.app_name)
st.sidebar.markdown("Syllabus builder")
page = st.sidebar.radio("Navigation", ["Sign In", "My Syllabi", "Editor"])
if session.user_id:
    st.sidebar.markdown(f"**User:** {session.user_id}" + (" (admin)" if session.is_admin else ""))


# ============ SIGN IN PAGE ============
if page == "Sign In":
    st.title("Sign In")
    tab1, tab2 = st.tabs(["Login", "Create Account"])

    with tab1:
        with st.form("login"):
            username = st.text_input("Username")
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Login"):
                result = run(gateway.login(username, password))
                if result:
                    st.session_state.session = SessionContext.from_login(result.user_id, result.role)
                    st.success("Signed in.")
                    st.rerun()

    with tab2:
        with st.form("signup"):
            username = st.text_input("Username", key="signup_username")
            email = st.text_input("Email")
            password = st.text_input("Password", type="password", key="signup_password")
            if st.form_submit_button("Sign Up"):
                if run(gateway.signup(username, email, password)) is not None:
                    st.success("Account created. You can log in now.")


# ============ DASHBOARD PAGE ============
elif page == "My Syllabi":
    st.title("My Syllabi")
    if not session.user_id:
        st.warning("Sign in first.")
        st.stop()

    dashboard = SyllabusDashboard(session, gateway)
    if st.button("New Syllabus"):
        new_id = run(dashboard.new_syllabus())
        if new_id:
            open_editor(new_id)
            st.success("New syllabus created. Open the Editor page to start.")

    rows = run(dashboard.rows()) or []
    if not rows:
        st.info("No syllabi available.")
    for row in rows:
        col1, col2, col3, col4, col5 = st.columns([4, 2, 1, 1, 1])
        col1.markdown(f"**{row.title}**")
        col2.markdown(row.last_updated)
        if col3.button("Edit", key=f"edit_{row.syllabus_id}"):
            open_editor(row.syllabus_id)
            st.info("Loaded. Open the Editor page.")
        if col4.button("Copy", key=f"copy_{row.syllabus_id}"):
            new_id = run(dashboard.copy(row.syllabus_id))
            if new_id:
                open_editor(new_id)
                st.info("You are now working on a copy of the syllabus.")
        if col5.button("Delete", key=f"delete_{row.syllabus_id}"):
            run(dashboard.delete(row.syllabus_id))
            st.rerun()


# ============ EDITOR PAGE ============
elif page == "Editor":
    editor: SyllabusEditor = st.session_state.editor
    if editor is None:
        st.warning("Open a syllabus from My Syllabi first.")
        st.stop()

    st.title(editor.fields.get_value("courseTitle") or "Untitled Syllabus")
    status_placeholder = st.empty()

    tab1, tab2, tab3, tab4, tab5 = st.tabs(["Course", "Instructors", "Outcomes", "Modules", "Policies"])

    with tab1:
        programs = editor.tree.get("programSelect").option_values()
        current = editor.fields.get_value("programSelect")
        program = st.selectbox("Program", programs, index=programs.index(current) if current in programs else 0)
        if program != current:
            run(editor.change_program(program))

        for field_id in ("courseTitle", "courseNumber", "credits", "placement", "courseType",
                         "courseDelivery", "courseLead", "leadEmail", "leadPhone", "leadOffice", "courseReqs"):
            node = editor.tree.get(field_id)
            value = st.text_input(FIELD_LABELS[field_id], value=node.value, placeholder=node.placeholder)
            if value != node.value:
                editor.fields.set_value(field_id, value)

        for field_id in RICH_TEXT_FIELDS:
            rich = editor.bridge.get(field_id)
            html = rich.get_html() if rich else editor.fields.get_value(field_id)
            value = st.text_area(FIELD_LABELS[field_id], value=html, height=100)
            if rich and value != html:
                rich.set_html(value)

    with tab2:
        count = st.number_input("Number of instructors", min_value=0, max_value=settings.max_instructors,
                                value=editor.builder.instructor_count(), step=1)
        if count != editor.builder.instructor_count():
            editor.builder.set_instructor_count(int(count))
        for index in range(1, editor.builder.instructor_count() + 1):
            with st.expander(f"Course Instructor {index}", expanded=index == 1):
                for suffix in ("Name", "Email", "Phone", "Office"):
                    field_id = f"instructor{index}{suffix}"
                    node = editor.tree.get(field_id)
                    value = st.text_input(suffix, value=node.value, key=field_id)
                    if value != node.value:
                        editor.fields.set_value(field_id, value)
                rich = editor.bridge.get(f"instructor{index}OfficeHours")
                if rich:
                    value = st.text_area("Office Hours", value=rich.get_html(), key=f"hours_{index}")
                    if value != rich.get_html():
                        rich.set_html(value)

    with tab3:
        for cell in editor.builder.slo_cells():
            outcome = cell.get_attr("data-outcome-index")
            row = cell.parent
            st.markdown(f"**{outcome}.** {row.first_by_class('prog-outcome').text}")
            for group in cell.by_class("slo-group"):
                node = group.by_tag("textarea")[0]
                col1, col2 = st.columns([5, 1])
                value = col1.text_area(node.placeholder, value=node.value, key=f"slo_{node.placeholder}")
                if value != node.value:
                    node.value = value
                if col2.button("Remove", key=f"remove_slo_{node.placeholder}"):
                    group.first_by_class("removeOutcomeButton").click()
                    st.rerun()
            if st.button("Add SLO", key=f"add_slo_{outcome}"):
                cell.first_by_class("addOutcomeButton").click()
                st.rerun()

        st.subheader("Assessments")
        assessment_body = editor.tree.tbody("outcomesAssessmentTable")
        for row in list(assessment_body.children) if assessment_body else []:
            slo_key = row.get_attr("data-slo-key")
            st.markdown(f"**SLO {row.first_by_class('outcome-cell').text}**")
            assessment_cell = row.first_by_class("assessment-cell")
            for index, wrapper in enumerate(assessment_cell.by_class("assessment-input-wrapper")):
                node = wrapper.by_tag("input")[0]
                col1, col2 = st.columns([5, 1])
                value = col1.text_input(node.placeholder, value=node.value, key=f"assessment_{slo_key}_{index}")
                if value != node.value:
                    node.value = value
                remove_button = wrapper.first_by_class("minus-button")
                if remove_button is not None and col2.button("-", key=f"remove_assessment_{slo_key}_{index}"):
                    remove_button.click()
                    st.rerun()
            if st.button("+ Add Assessment", key=f"add_assessment_{slo_key}"):
                assessment_cell.first_by_class("addAssessmentButton").click()
                st.rerun()

    with tab4:
        start = st.text_input("Start date (YYYY-MM-DD)", value=editor.fields.get_value("datePicker"))
        module_count = st.number_input("Modules", min_value=1, max_value=settings.max_modules, value=1, step=1)
        if st.button("Generate Modules"):
            editor.fields.set_value("datePicker", start)
            editor.builder.generate_modules(int(module_count), start)
        for block in editor.builder.module_blocks():
            number = block.get_attr("data-module-number")
            title = editor.tree.get(f"module{number}Title")
            dates = editor.tree.get(f"module{number}Dates")
            with st.expander(f"Module {number} ({dates.value})", expanded=True):
                value = st.text_input("Title", value=title.value, key=f"module_{number}")
                if value != title.value:
                    title.value = value
                assignments = editor.tree.get(f"module{number}AssignmentsContainer")
                for index, wrapper in enumerate(assignments.by_class("assignment-wrapper")):
                    node = wrapper.by_tag("textarea")[0]
                    col1, col2 = st.columns([5, 1])
                    value = col1.text_input(node.placeholder, value=node.value, key=f"assignment_{number}_{index}")
                    if value != node.value:
                        node.value = value
                    if col2.button("Remove", key=f"remove_assignment_{number}_{index}"):
                        wrapper.first_by_class("remove-assignment-button").click()
                        st.rerun()
                col1, col2 = st.columns(2)
                if col1.button("+ Add Assignment", key=f"add_assignment_{number}"):
                    block.first_by_class("add-assignment-button").click()
                    st.rerun()
                if col2.button("Remove Module", key=f"remove_module_{number}"):
                    block.first_by_class("remove-module-button").click()
                    st.rerun()
        if st.button("Add Module"):
            editor.fields.set_value("datePicker", start)
            editor.tree.get("addModuleButton").click()
            st.rerun()

        st.subheader("Weighting Details")
        body = editor.tree.tbody("weightingDetailsTable")
        for index, row in enumerate(body.by_class("weighting-row") if body else []):
            label = row.by_name("assessedElements[]")[0]
            weight = row.by_name("weight[]")[0]
            col1, col2, col3 = st.columns([4, 1, 1])
            new_label = col1.text_input("Assessed element", value=label.value, key=f"weight_label_{index}")
            new_weight = col2.text_input("Weight (%)", value=weight.value, key=f"weight_value_{index}")
            if new_label != label.value:
                label.value = new_label
            if new_weight != weight.value:
                weight.value = new_weight
                weight.dispatch("input")
            if col3.button("Remove", key=f"weight_remove_{index}"):
                row.first_by_class("remove-weighting-row").click()
                st.rerun()
        if st.button("+ Add Row"):
            editor.tree.get("addWeightingRowButton").click()
            st.rerun()
        total = editor.builder.update_total_weight()
        if total is not None:
            (st.error if total.over_limit else st.markdown)(f"Total weight: {total.display}")

    with tab5:
        for key in POLICY_KEYS:
            rich = editor.bridge.get(key)
            if rich is None:
                continue
            with st.expander(policy_title(key)):
                value = st.text_area(key, value=rich.get_html(), height=150, label_visibility="collapsed")
                if value != rich.get_html():
                    rich.set_html(value)

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Save", use_container_width=True):
            result = run(editor.submit())
            if result and not result.ok:
                st.error(result.message)
    with col2:
        with st.expander("Preview"):
            st.markdown(editor.export_text())

    # Change-gated autosave, evaluated on every rerun
    now = time.monotonic()
    if now - st.session_state.last_autosave >= settings.autosave_interval_seconds:
        st.session_state.last_autosave = now
        run(editor.engine.autosave_tick())

    editor.status.expire()
    status_placeholder.caption(editor.status.text)
    with st.sidebar.expander("Status history"):
        for entry in reversed(status_buffer.get_entries()[-10:]):
            st.caption(f"{entry['timestamp'][11:19]} {entry['message']}")
