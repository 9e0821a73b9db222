# src/e2e/test_integration_keyboard_navigation.py

import pytest

from contentref.autocomplete import ContentRefAutocomplete
from contentref.document import count_refs
from contentref.editor import Editor
from contentref.models import ContentRef

from conftest import DAR, RecordingSource, RIAD, TREK

THREE = [RIAD, DAR, TREK]


def _open_with(scheduler, rows, html=""):
    ed = Editor(html)
    ac = ContentRefAutocomplete(ed, RecordingSource(rows), scheduler)
    ed.set_cursor(ed.doc.blocks[0].content_size + 1)
    ed.type_text("{{a")
    scheduler.advance(0.3)
    return ed, ac


def test_arrow_up_stays_at_first(scheduler):
    ed, ac = _open_with(scheduler, THREE)
    cursor = ed.cursor
    assert ed.press_key("ArrowUp") is True
    assert ac.selected_index == 0
    assert ed.cursor == cursor


def test_arrow_down_stops_at_last(scheduler):
    ed, ac = _open_with(scheduler, THREE)
    ed.press_key("ArrowDown")
    ed.press_key("ArrowDown")
    assert ac.selected_index == 2
    ed.press_key("ArrowDown")
    assert ac.selected_index == 2
    assert [item.selected for item in ac.view().items] == [False, False, True]


def test_arrow_down_without_results_keeps_zero(scheduler):
    ed, ac = _open_with(scheduler, [])
    assert ed.press_key("ArrowDown") is True
    assert ac.selected_index == 0


def test_enter_commits_highlighted_result(scheduler):
    ed, ac = _open_with(scheduler, THREE)
    ed.press_key("ArrowDown")
    ed.press_key("Enter")
    refs = [node for node in ed.doc.blocks[0].content if isinstance(node, ContentRef)]
    assert [r.slug for r in refs] == ["dar-atlas"]


def test_new_results_reset_selection(scheduler):
    ed, ac = _open_with(scheduler, THREE)
    ed.press_key("ArrowDown")
    ed.type_text("b")
    scheduler.advance(0.3)
    assert ac.selected_index == 0


@pytest.mark.e2e
def test_escape_closes_without_touching_document(scheduler):
    html = '<p><content-ref data-type="activity" data-slug="trek-atlas">Trek</content-ref> </p>'
    ed, ac = _open_with(scheduler, THREE, html=html)
    before = ed.get_html()
    assert ac.state.query == "a"

    assert ed.press_key("Escape") is True
    assert not ac.is_open
    assert count_refs(ed.doc) == 1
    assert ed.get_html() == before


def test_enter_without_results_falls_through_to_editor(scheduler):
    ed, ac = _open_with(scheduler, [])
    ed.press_key("Enter")
    assert len(ed.doc.blocks) == 2
    assert count_refs(ed.doc) == 0


def test_keys_ignored_when_closed(scheduler):
    ed = Editor("<p>ab</p>")
    ac = ContentRefAutocomplete(ed, RecordingSource(THREE), scheduler)
    assert ac.handle_key("ArrowDown") is False
    assert ed.press_key("Escape") is False
    assert ed.keyboard.listener_count == 0


@pytest.mark.e2e
def test_key_listener_lives_only_while_open(scheduler):
    ed = Editor()
    ac = ContentRefAutocomplete(ed, RecordingSource(THREE), scheduler)
    for _ in range(5):
        ed.type_text(" {{")
        assert ed.keyboard.listener_count == 1
        ed.press_key("Escape")
        assert ed.keyboard.listener_count == 0

    ed.type_text(" {{")
    ac.destroy()
    assert ed.keyboard.listener_count == 0
    assert ed.listener_count("update") == 0
    assert ed.listener_count("selectionUpdate") == 0


def test_editor_destroy_tears_down_session(scheduler):
    ed = Editor()
    ac = ContentRefAutocomplete(ed, RecordingSource(THREE), scheduler)
    ed.type_text("{{ri")
    ed.destroy()
    assert not ac.is_open
    assert ed.keyboard.listener_count == 0
    assert scheduler.pending_timers == []
