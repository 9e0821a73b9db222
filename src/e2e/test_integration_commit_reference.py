# src/e2e/test_integration_commit_reference.py

import pytest

from contentref.autocomplete import ContentRefAutocomplete
from contentref.commands import delete_content_ref, insert_content_ref, ref_from_entity
from contentref.document import count_refs, iter_refs
from contentref.editor import Editor
from contentref.models import ContentEntity, ContentRef, Text
from contentref.picker import ContentRefPicker

from conftest import CATALOG, DAR, RecordingSource, RIAD, TREK

RIAD_REF = ContentRef("accommodation", "riad-jnane", "Riad Jnane", "42")


def _open_on(scheduler, rows=(RIAD,)):
    ed = Editor("<p>Dormir à </p>")
    ac = ContentRefAutocomplete(ed, RecordingSource(rows), scheduler)
    ed.set_cursor(10)
    ed.type_text("{{ri")
    scheduler.advance(0.3)
    return ed, ac


@pytest.mark.e2e
def test_enter_replaces_trigger_span_with_one_node(scheduler):
    ed, ac = _open_on(scheduler)
    assert (ac.state.from_, ac.state.to) == (10, 14)

    assert ed.press_key("Enter") is True
    assert ed.doc.blocks[0].content == (Text("Dormir à "), RIAD_REF)
    assert list(iter_refs(ed.doc)) == [(10, RIAD_REF)]
    assert RIAD_REF.attrs() == {
        "type": "accommodation",
        "slug": "riad-jnane",
        "title": "Riad Jnane",
        "entityId": "42",
    }
    assert ed.cursor == 11
    assert not ac.is_open
    assert ed.keyboard.listener_count == 0


@pytest.mark.e2e
def test_commit_undoes_in_one_step(scheduler):
    ed, ac = _open_on(scheduler)
    ed.press_key("Enter")
    assert ed.undo() is True
    assert ed.get_text() == "Dormir à {{ri"
    assert count_refs(ed.doc) == 0
    assert ed.redo() is True
    assert list(iter_refs(ed.doc)) == [(10, RIAD_REF)]


def test_commit_serializes_to_markup(scheduler):
    ed, ac = _open_on(scheduler)
    ac.click(0)
    assert ed.get_html() == (
        '<p>Dormir à <content-ref data-type="accommodation" data-slug="riad-jnane" '
        'data-entity-id="42">Riad Jnane</content-ref></p>'
    )


def test_click_out_of_range_does_nothing(scheduler):
    ed, ac = _open_on(scheduler)
    assert ac.click(3) is False
    assert ac.is_open
    assert count_refs(ed.doc) == 0


def test_stale_range_cancels_silently():
    ed = Editor("<p>abc</p>")
    assert insert_content_ref(ed, RIAD, replace=(1, 3)) is False
    assert ed.get_text() == "abc"
    assert ed.undo() is False


def test_range_outside_document_is_rejected():
    ed = Editor("<p>{{x</p>")
    assert insert_content_ref(ed, RIAD, replace=(1, 40)) is False
    assert ed.get_text() == "{{x"


def test_read_only_editor_refuses_insertion():
    ed = Editor("<p>{{ri</p>", editable=False)
    assert insert_content_ref(ed, RIAD, replace=(1, 5)) is False
    assert count_refs(ed.doc) == 0


def test_insert_at_cursor_without_range():
    ed = Editor("<p>Voir </p>")
    ed.set_cursor(6)
    assert insert_content_ref(ed, TREK) is True
    assert list(iter_refs(ed.doc)) == [(6, ref_from_entity(TREK))]
    assert ed.cursor == 7


def test_ref_from_entity_falls_back_to_type_for_title():
    bare = ContentEntity(5, "region")
    ref = ref_from_entity(bare)
    assert ref == ContentRef("region", "", "region", "5")


def test_delete_reference_node():
    ed = Editor("<p>a</p>")
    ed.set_cursor(2)
    insert_content_ref(ed, DAR)
    assert delete_content_ref(ed, 1) is False   # plain text there
    assert delete_content_ref(ed, 2) is True
    assert count_refs(ed.doc) == 0
    assert ed.get_text() == "a"


@pytest.mark.e2e
def test_picker_groups_and_inserts_at_cursor(scheduler):
    ed = Editor("<p>Voir </p>")
    ed.set_cursor(6)
    src = RecordingSource(CATALOG)
    picker = ContentRefPicker(ed, src, scheduler)
    picker.open()
    assert picker.empty_message == "Aucun contenu trouvé. Tapez pour rechercher."

    picker.set_query("a")
    scheduler.advance(0.3)
    assert src.calls == [("a", 10)]

    groups = picker.groups()
    assert [label for label, _ in groups] == [
        "Hébergement", "Activité", "Attraction", "Destination", "Restaurant", "Région",
    ]
    assert groups[0][1] == [RIAD, DAR]
    assert picker.grouped_items()[0][1][1].title == "Dar Atlas"

    assert picker.select(TREK) is True
    assert not picker.is_open
    assert picker.results == []
    assert list(iter_refs(ed.doc)) == [(6, ref_from_entity(TREK))]


def test_picker_reports_searching(scheduler):
    from conftest import GatedSource

    picker = ContentRefPicker(Editor(), GatedSource(), scheduler)
    picker.open()
    picker.set_query("riad")
    scheduler.advance(0.3)
    assert picker.empty_message == "Recherche en cours..."
    picker.close()
    assert not picker.is_searching
