# contentref/commands.py
from __future__ import annotations

import logging
from typing import Optional, Tuple, Union

from .config import TRIGGER
from .document import is_text_position, node_at, text_between
from .editor import Editor
from .models import ContentEntity, ContentRef

log = logging.getLogger(__name__)

Range = Tuple[int, int]


def ref_from_entity(entity: ContentEntity) -> ContentRef:
    """Project a search hit onto reference-node attributes."""
    return ContentRef(
        type=entity.entity_type,
        slug=entity.slug or "",
        title=entity.title or entity.entity_type,
        entity_id=str(entity.id),
    )


def _range_is_current(editor: Editor, replace: Range) -> bool:
    from_, to = replace
    if from_ + len(TRIGGER) > to:
        return False
    if not (is_text_position(editor.doc, from_) and is_text_position(editor.doc, to)):
        return False
    return text_between(editor.doc, from_, from_ + len(TRIGGER)) == TRIGGER


def insert_content_ref(
    editor: Editor,
    entity: Union[ContentEntity, ContentRef],
    replace: Optional[Range] = None,
) -> bool:
    """
    Insert one reference node as a single transaction (one undo step).

    replace=(from, to) deletes the trigger span plus the typed query first; the
    range must still start with the trigger text, otherwise nothing happens.
    replace=None inserts at the cursor.
    """
    if not editor.is_editable:
        return False
    ref = entity if isinstance(entity, ContentRef) else ref_from_entity(entity)
    tr = editor.transaction()
    try:
        if replace is not None:
            if not _range_is_current(editor, replace):
                log.debug("Stale reference range %s; insertion cancelled", replace)
                return False
            from_, to = replace
            tr.delete_range(from_, to).insert(from_, [ref]).set_cursor(from_ + ref.size)
        else:
            pos = tr.cursor
            tr.insert(pos, [ref]).set_cursor(pos + ref.size)
    except ValueError as exc:
        log.debug("Reference insertion rejected: %s", exc)
        return False
    editor.dispatch(tr)
    return True


def delete_content_ref(editor: Editor, pos: int) -> bool:
    """Remove the reference node that starts at pos."""
    if not editor.is_editable:
        return False
    try:
        node = node_at(editor.doc, pos)
    except ValueError:
        return False
    if not isinstance(node, ContentRef):
        return False
    editor.dispatch(editor.transaction().delete_range(pos, pos + node.size))
    return True
