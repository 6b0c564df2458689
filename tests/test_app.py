"""
Streamlit front end: session reset behaviour.
"""

from pathlib import Path

from streamlit.testing.v1 import AppTest

APP = str(Path(__file__).resolve().parent.parent / "app.py")


def _reset_button(at):
    return next(b for b in at.button if b.label == "Reset selections")


def test_reset_restores_first_preset_and_clears_findings():
    at = AppTest.from_file(APP, default_timeout=30).run()
    at.radio(key="preset_cap").set_value("ed_adult").run()
    at.button(key="cap_fever_present").click().run()
    assert at.session_state["probid"]["preset_id"] == "ed_adult"
    assert at.session_state["probid"]["states"] == {"cap_fever": "present"}

    _reset_button(at).click().run()
    assert at.session_state["probid"]["preset_id"] == "pc_adult"
    assert at.session_state["probid"]["states"] == {}
    assert at.session_state["probid"]["order"] == []
    assert at.radio(key="preset_cap").value == "pc_adult"


def test_reset_clears_filter():
    at = AppTest.from_file(APP, default_timeout=30).run()
    at.text_input(key="q_cap").input("fever").run()
    _reset_button(at).click().run()
    assert at.text_input(key="q_cap").value == ""
