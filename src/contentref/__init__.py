"""Inline content references for the rich-text editor: `{{` autocomplete, reference nodes, HTML form."""
from .autocomplete import ContentRefAutocomplete
from .commands import delete_content_ref, insert_content_ref, ref_from_entity
from .editor import Editor, Transaction
from .models import (
    AutocompleteState,
    Block,
    Container,
    ContentEntity,
    ContentRef,
    Document,
    HardBreak,
    Text,
    Translation,
)
from .picker import ContentRefPicker
from .rich_text import RichTextEditor
from .scheduling import AsyncioScheduler, Scheduler
from .search import DebouncedSearch
from .serialize import from_html, to_html

__all__ = [
    "AsyncioScheduler",
    "AutocompleteState",
    "Block",
    "Container",
    "ContentEntity",
    "ContentRef",
    "ContentRefAutocomplete",
    "ContentRefPicker",
    "DebouncedSearch",
    "Document",
    "Editor",
    "HardBreak",
    "RichTextEditor",
    "Scheduler",
    "Text",
    "Transaction",
    "Translation",
    "delete_content_ref",
    "from_html",
    "insert_content_ref",
    "ref_from_entity",
    "to_html",
]
