# contentref/nodeview.py
# Read-only chip rendering of a ContentRef. Pure functions over the node.
from __future__ import annotations

from dataclasses import dataclass
from html import escape

from .models import ContentRef, Document
from .serialize import to_html


@dataclass(frozen=True)
class TypeConfig:
    icon: str
    label: str
    bg_color: str
    text_color: str
    border_color: str


FALLBACK_CONFIG = TypeConfig("map-pin", "Attraction", "bg-primary-50", "text-primary-700", "border-primary-200")

TYPE_CONFIG: dict[str, TypeConfig] = {
    "attraction": FALLBACK_CONFIG,
    "destination": TypeConfig("compass", "Destination", "bg-secondary-50", "text-secondary-700", "border-secondary-200"),
    "activity": TypeConfig("tent", "Activité", "bg-sage-50", "text-sage-700", "border-sage-200"),
    "accommodation": TypeConfig("bed", "Hébergement", "bg-amber-50", "text-amber-700", "border-amber-200"),
    "eating": TypeConfig("utensils-crossed", "Restaurant", "bg-rose-50", "text-rose-700", "border-rose-200"),
    "region": TypeConfig("map", "Région", "bg-indigo-50", "text-indigo-700", "border-indigo-200"),
}


@dataclass(frozen=True)
class ChipView:
    icon: str
    text: str
    tooltip: str
    css_class: str
    deletable: bool


def type_config(entity_type: str) -> TypeConfig:
    return TYPE_CONFIG.get(entity_type, FALLBACK_CONFIG)


def render_chip(ref: ContentRef, editable: bool) -> ChipView:
    """Chip for a reference node; the delete affordance exists only in editable hosts."""
    cfg = type_config(ref.type)
    return ChipView(
        icon=cfg.icon,
        text=ref.title or ref.slug,
        tooltip=f"{cfg.label}: {ref.slug}",
        css_class=f"content-ref-chip {cfg.bg_color} {cfg.text_color} {cfg.border_color}",
        deletable=editable,
    )


def chip_html(ref: ContentRef, editable: bool = False) -> str:
    chip = render_chip(ref, editable)
    delete = (
        '<button type="button" class="content-ref-delete" title="Supprimer la référence">×</button>'
        if chip.deletable else ""
    )
    return (
        f'<span class="{chip.css_class}" title="{escape(chip.tooltip)}" contenteditable="false" '
        f'data-icon="{chip.icon}">{escape(chip.text, quote=False)}{delete}</span>'
    )


def preview_html(doc: Document, editable: bool = False) -> str:
    """Document HTML with every reference rendered as its chip."""
    return to_html(doc, ref_renderer=lambda ref: chip_html(ref, editable))
