"""
Feedback
Author: Bryce Fountain | Skoll.dev

Chat with the assistant about bugs and feature requests; the collected
report can be sent to the developers by e-mail.
"""
import streamlit as st

from propdesk import config
from propdesk.assistant import split_feedback_report
from propdesk.errors import PropDeskError
from propdesk.letters import mailto_link
from tools._common import get_assistant

# Tool metadata for auto-discovery
TOOL_NAME = "Feedback"
TOOL_ICON = "💬"
TOOL_DESCRIPTION = "Report bugs or request features."
TOOL_ORDER = 90

HISTORY_KEY = "feedback_history"
REPORT_KEY = "feedback_report"


def render():
    """Main entry point for the feedback chat."""
    st.title("💬 Feedback")
    st.caption("Tell us what is missing or broken. The assistant collects a short report for the developers.")

    history = st.session_state.setdefault(HISTORY_KEY, [])
    for message in history:
        with st.chat_message(message["role"]):
            st.markdown(message["content"])

    prompt = st.chat_input("Your feedback")
    if prompt:
        history.append({"role": "user", "content": prompt})
        with st.chat_message("user"):
            st.markdown(prompt)
        try:
            with st.spinner("Thinking..."):
                reply, report = split_feedback_report(get_assistant().feedback_reply(prompt))
        except PropDeskError as exc:
            st.error(f"LLM request failed: {exc}")
            return
        history.append({"role": "assistant", "content": reply})
        if report:
            st.session_state[REPORT_KEY] = report
        with st.chat_message("assistant"):
            st.markdown(reply)

    report = st.session_state.get(REPORT_KEY)
    if report:
        st.markdown("---")
        st.markdown("**Report**")
        st.code(report, language=None)
        st.link_button("Send report by e-mail",
                       mailto_link(config.FEEDBACK_EMAIL, "Property Desk feedback", report))
