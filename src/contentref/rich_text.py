# contentref/rich_text.py
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from . import config as CFG
from .autocomplete import ContentRefAutocomplete
from .document import count_refs, iter_refs
from .editor import Editor
from .models import Block
from .nodeview import ChipView, render_chip
from .picker import ContentRefPicker
from .scheduling import Scheduler
from .sources.api import ContentSource

log = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER = "Rédigez votre contenu..."


class RichTextEditor:
    """
    Editor wired the way the back-office pages use it:
      * HTML in, HTML out through on_change (debounced by ON_CHANGE_DEBOUNCE_SECONDS)
      * with enable_content_refs and an editable host: `{{` autocomplete + toolbar picker
    """

    def __init__(
        self,
        content: str,
        on_change: Callable[[str], None],
        scheduler: Scheduler,
        *,
        source: Optional[ContentSource] = None,
        enable_content_refs: bool = False,
        editable: bool = True,
        placeholder: str = DEFAULT_PLACEHOLDER,
    ) -> None:
        self.on_change = on_change
        self.placeholder = placeholder
        self._scheduler = scheduler
        self._timer: Any = None
        self.editor = Editor(content, editable=editable)
        self.autocomplete: Optional[ContentRefAutocomplete] = None
        self.picker: Optional[ContentRefPicker] = None

        if enable_content_refs and editable:
            if source is None:
                raise ValueError("enable_content_refs requires a content source")
            self.autocomplete = ContentRefAutocomplete(self.editor, source, scheduler)
            self.picker = ContentRefPicker(self.editor, source, scheduler)

        self._update_sub = self.editor.on("update", self._on_update)

    # ------------- change propagation -------------

    def _on_update(self, editor: Editor) -> None:
        if self._timer is not None:
            self._scheduler.cancel(self._timer)
        self._timer = self._scheduler.call_later(CFG.ON_CHANGE_DEBOUNCE_SECONDS, self._flush)

    def _flush(self) -> None:
        self._timer = None
        self.on_change(self.editor.get_html())

    # ------------- view helpers -------------

    @property
    def is_empty(self) -> bool:
        return self.editor.doc.blocks == (Block("paragraph"),)

    @property
    def placeholder_visible(self) -> bool:
        return self.is_empty

    def chips(self) -> List[ChipView]:
        return [render_chip(ref, self.editor.is_editable) for _, ref in iter_refs(self.editor.doc)]

    @property
    def ref_count(self) -> int:
        return count_refs(self.editor.doc)

    # ------------- teardown -------------

    def destroy(self) -> None:
        if self._timer is not None:
            self._scheduler.cancel(self._timer)
            self._timer = None
        if self.picker is not None:
            self.picker.close()
        self._update_sub.dispose()
        # autocomplete tears itself down on the editor's destroy event
        self.editor.destroy()
        log.debug("RichTextEditor destroyed")
