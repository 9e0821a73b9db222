# app.py
# CustomTkinter desktop editor hosting the {{ content-reference autocomplete.
# - The Editor model owns the text; the textbox only renders it (one tk index per doc unit).
# - Reference nodes are embedded chip widgets; the popup and the picker dialog follow the editor state.
# - Searches run on a background asyncio loop; results come back through after().

from __future__ import annotations
import argparse
import asyncio
import logging
import os
import threading
from typing import Any, Callable, Optional

import customtkinter as ctk

# Project imports (ensure PYTHONPATH=src)
from contentref import RichTextEditor
from contentref import config as CFG
from contentref.commands import delete_content_ref
from contentref.document import block_content_start, resolve
from contentref.models import ContentEntity, ContentRef, HardBreak, Text
from contentref.nodeview import render_chip
from contentref.sources import close_source, make_source

log = logging.getLogger(__name__)


CHIP_COLORS = {
    "attraction": "#1e3a5f",
    "destination": "#3b2f5c",
    "activity": "#2f4f3a",
    "accommodation": "#5c4a1e",
    "eating": "#5c1e2f",
    "region": "#2a2f66",
}

# Tk keysym -> editor key name
KEYS = {
    "BackSpace": "Backspace",
    "Delete": "Delete",
    "Return": "Enter",
    "KP_Enter": "Enter",
    "Escape": "Escape",
    "Up": "ArrowUp",
    "Down": "ArrowDown",
    "Left": "ArrowLeft",
    "Right": "ArrowRight",
    "Home": "Home",
    "End": "End",
}


class TkScheduler:
    """Scheduler on Tk's after() queue; coroutines run on a daemon asyncio loop."""

    def __init__(self, widget: ctk.CTk) -> None:
        self._widget = widget
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, daemon=True)
        self._thread.start()

    def call_later(self, delay: float, callback: Callable[[], None]) -> str:
        return self._widget.after(int(delay * 1000), callback)

    def cancel(self, handle: Any) -> None:
        if handle is None:
            return
        if isinstance(handle, str):
            self._widget.after_cancel(handle)
        else:
            handle.cancel()

    def call_soon(self, callback: Callable[[], None]) -> None:
        self._widget.after(0, callback)

    def run(self, coro):
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def shutdown(self) -> None:
        self._loop.call_soon_threadsafe(self._loop.stop)


class EditorApp(ctk.CTk):
    """Dark-themed editor window with inline `{{` references and a toolbar picker."""

    def __init__(self, source_dsn: str, content: str = "", editable: bool = True) -> None:
        super().__init__()

        ctk.set_appearance_mode("dark")
        ctk.set_default_color_theme("blue")

        self.title("Éditeur de contenu")
        self.geometry("900x650")
        self.minsize(820, 560)

        self.font_title = ctk.CTkFont(size=18, weight="bold")
        self.font_label = ctk.CTkFont(size=13)
        self.font_small = ctk.CTkFont(size=11)

        self.scheduler = TkScheduler(self)
        self.source = make_source(source_dsn, token=CFG.API_TOKEN)
        self.rte = RichTextEditor(
            content,
            on_change=self._on_html_changed,
            scheduler=self.scheduler,
            source=self.source,
            enable_content_refs=True,
            editable=editable,
        )
        self.editor = self.rte.editor
        self._popup: Optional[ctk.CTkFrame] = None
        self._chips: list[ctk.CTkLabel] = []
        self._dialog: Optional[ctk.CTkToplevel] = None

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)
        self.grid_rowconfigure(3, weight=0)

        self._build_header()
        self._build_toolbar()
        self._build_editor()
        self._build_html_pane()

        self.editor.on("update", lambda _e: self._render())
        self.editor.on("selectionUpdate", lambda _e: self._place_cursor())
        if self.rte.autocomplete is not None:
            self.rte.autocomplete.on_change = lambda _a: self._render_popup()

        self._render()
        self._on_html_changed(self.editor.get_html())
        self.protocol("WM_DELETE_WINDOW", self._on_close)

    # --------- UI sections ---------

    def _build_header(self) -> None:
        header = ctk.CTkFrame(self, corner_radius=10)
        header.grid(row=0, column=0, sticky="ew", padx=12, pady=(12, 6))
        ctk.CTkLabel(header, text="Éditeur de contenu", font=self.font_title).grid(
            row=0, column=0, sticky="w", padx=12, pady=10
        )

    def _build_toolbar(self) -> None:
        bar = ctk.CTkFrame(self, corner_radius=10)
        bar.grid(row=1, column=0, sticky="ew", padx=12, pady=6)
        state = "normal" if self.editor.is_editable else "disabled"
        ctk.CTkButton(bar, text="Insérer une référence", command=self._open_picker, state=state).grid(
            row=0, column=0, padx=(12, 6), pady=8
        )
        ctk.CTkButton(bar, text="Annuler", width=80, command=self.editor.undo, state=state).grid(
            row=0, column=1, padx=6, pady=8
        )
        ctk.CTkButton(bar, text="Rétablir", width=80, command=self.editor.redo, state=state).grid(
            row=0, column=2, padx=6, pady=8
        )
        self.lbl_status = ctk.CTkLabel(bar, text="", anchor="e", font=self.font_small)
        self.lbl_status.grid(row=0, column=3, sticky="e", padx=12)
        bar.grid_columnconfigure(3, weight=1)

    def _build_editor(self) -> None:
        frame = ctk.CTkFrame(self, corner_radius=10)
        frame.grid(row=2, column=0, sticky="nsew", padx=12, pady=6)
        frame.grid_columnconfigure(0, weight=1)
        frame.grid_rowconfigure(0, weight=1)

        self.txt = ctk.CTkTextbox(frame, wrap="word", font=self.font_label)
        self.txt.grid(row=0, column=0, sticky="nsew", padx=8, pady=8)
        for mark, opts in {"bold": {"foreground": "#ffffff"}, "italic": {"foreground": "#b8c4d6"},
                           "underline": {"underline": True}, "strike": {"overstrike": True},
                           "link": {"foreground": "#6fb3ff", "underline": True},
                           "highlight": {"background": "#4a4a1e"}}.items():
            self.txt.tag_config(mark, **opts)
        for depth in range(1, 7):
            self.txt.tag_config(f"depth{depth}", lmargin1=24 * depth, lmargin2=24 * depth)
        self.txt.tag_config("opaque", foreground="#7f8896")
        self.txt.bind("<Key>", self._on_key)
        self.txt.bind("<Button-1>", self._on_click)
        self.txt.focus_set()

    def _build_html_pane(self) -> None:
        frame = ctk.CTkFrame(self, corner_radius=10)
        frame.grid(row=3, column=0, sticky="ew", padx=12, pady=(6, 12))
        frame.grid_columnconfigure(0, weight=1)
        ctk.CTkLabel(frame, text="HTML", font=self.font_label).grid(row=0, column=0, sticky="w", padx=12, pady=(8, 2))
        self.txt_html = ctk.CTkTextbox(frame, height=110, wrap="word", font=self.font_small)
        self.txt_html.grid(row=1, column=0, sticky="ew", padx=12, pady=(0, 12))
        self.txt_html.configure(state="disabled")

    # --------- rendering ---------

    def _index(self, pos: int) -> str:
        block, offset = resolve(self.editor.doc, pos)
        return f"{block + 1}.{offset}"

    def _chip(self, pos: int, ref: ContentRef) -> ctk.CTkLabel:
        chip = render_chip(ref, self.editor.is_editable)
        label = ctk.CTkLabel(
            self.txt,
            text=f"{chip.text} ×" if chip.deletable else chip.text,
            font=self.font_small,
            corner_radius=6,
            fg_color=CHIP_COLORS.get(ref.type, CHIP_COLORS["attraction"]),
            height=20,
        )
        if chip.deletable:
            # deleting re-renders and destroys this label, so leave its callback first
            label.bind("<Button-1>", lambda _ev, p=pos: self.after(0, lambda: delete_content_ref(self.editor, p)))
        return label

    def _render(self) -> None:
        doc = self.editor.doc
        self.txt.configure(state="normal")
        self.txt.delete("1.0", "end")
        for chip in self._chips:
            chip.destroy()
        self._chips = []
        for i, block in enumerate(doc.blocks):
            if i:
                self.txt.insert("end", "\n")
            depth = (f"depth{min(len(block.path), 6)}",) if block.path else ()
            if not block.is_textblock:
                self.txt.insert("end", block.html.split(">", 1)[0] + ">", ("opaque",) + depth)
                continue
            pos = block_content_start(doc, i)
            for node in block.content:
                if isinstance(node, Text):
                    tags = node.marks + (("link",) if node.href else ()) + depth
                    self.txt.insert("end", node.text, tags)
                elif isinstance(node, HardBreak):
                    # one glyph per position keeps Tk columns aligned with offsets
                    self.txt.insert("end", "\u21b5", depth)
                elif isinstance(node, ContentRef):
                    chip = self._chip(pos, node)
                    self._chips.append(chip)
                    self.txt.window_create("end", window=chip)
                else:
                    self.txt.insert("end", "\u25a1", ("opaque",) + depth)
                pos += node.size
        self._place_cursor()
        self.lbl_status.configure(text=f"{self.rte.ref_count} référence(s)")

    def _place_cursor(self) -> None:
        self.txt.mark_set("insert", self._index(self.editor.cursor))
        self.txt.see("insert")

    def _render_popup(self) -> None:
        ac = self.rte.autocomplete
        if self._popup is not None:
            self._popup.destroy()
            self._popup = None
        if ac is None or not ac.is_open:
            return
        view = ac.view()
        popup = ctk.CTkFrame(self.txt, corner_radius=8, border_width=1)
        header = view.header + ("  …" if view.is_searching else "")
        ctk.CTkLabel(popup, text=header, font=self.font_small, anchor="w").pack(fill="x", padx=8, pady=(6, 2))
        if view.empty_message:
            ctk.CTkLabel(popup, text=view.empty_message, font=self.font_small).pack(padx=8, pady=8)
        for i, item in enumerate(view.items):
            ctk.CTkButton(
                popup,
                text=f"{item.title}   {item.slug}   {item.type_label.upper()}",
                anchor="w",
                fg_color="#1f6aa5" if item.selected else "transparent",
                command=lambda idx=i: ac.click(idx),
            ).pack(fill="x", padx=4, pady=1)
        ctk.CTkLabel(popup, text=view.footer, font=self.font_small).pack(fill="x", padx=8, pady=(2, 6))

        bbox = self.txt.bbox(self._index(view.anchor)) or (0, 0, 0, 16)
        x, y, _w, h = bbox
        popup.place(x=x, y=y + h + 4)
        self._popup = popup

    # --------- input ---------

    def _on_key(self, ev) -> str:
        if ev.state & 0x4 and ev.keysym.lower() in ("z", "y"):
            (self.editor.undo if ev.keysym.lower() == "z" else self.editor.redo)()
        elif ev.keysym == "Return" and ev.state & 0x1:
            self.editor.press_key("Shift+Enter")
        elif ev.keysym in KEYS:
            self.editor.press_key(KEYS[ev.keysym])
        elif ev.char and ev.char.isprintable():
            self.editor.type_text(ev.char)
        return "break"

    def _on_click(self, ev) -> str:
        line, col = (int(part) for part in self.txt.index(f"@{ev.x},{ev.y}").split("."))
        if not self.editor.doc.blocks[line - 1].is_textblock:
            return "break"
        self.editor.set_cursor(block_content_start(self.editor.doc, line - 1) + col)
        self.txt.focus_set()
        return "break"

    # --------- toolbar picker ---------

    def _open_picker(self) -> None:
        picker = self.rte.picker
        if picker is None or self._dialog is not None:
            return
        picker.open()
        dialog = ctk.CTkToplevel(self)
        dialog.title("Insérer une référence")
        dialog.geometry("480x420")
        entry = ctk.CTkEntry(dialog, placeholder_text="Rechercher un contenu (attraction, hôtel, activité...)")
        entry.pack(fill="x", padx=12, pady=12)
        entry.bind("<KeyRelease>", lambda _ev: picker.set_query(entry.get()))
        results = ctk.CTkScrollableFrame(dialog)
        results.pack(fill="both", expand=True, padx=12, pady=(0, 12))

        def render(_p=None) -> None:
            for child in results.winfo_children():
                child.destroy()
            if picker.empty_message:
                ctk.CTkLabel(results, text=picker.empty_message).pack(pady=12)
            for label, entities in picker.groups():
                ctk.CTkLabel(results, text=label.upper(), font=self.font_small, anchor="w").pack(fill="x", pady=(8, 2))
                for entity in entities:
                    ctk.CTkButton(
                        results, text=f"{entity.title or entity.entity_type}   {entity.slug}", anchor="w",
                        fg_color="transparent", command=lambda e=entity: choose(e),
                    ).pack(fill="x", pady=1)

        def choose(entity: ContentEntity) -> None:
            picker.select(entity)
            close()

        def close() -> None:
            picker.on_change = None
            picker.close()
            dialog.destroy()
            self._dialog = None
            self.txt.focus_set()

        picker.on_change = lambda _p: render()
        dialog.protocol("WM_DELETE_WINDOW", close)
        render()
        entry.focus_set()
        self._dialog = dialog

    # --------- misc ---------

    def _on_html_changed(self, html: str) -> None:
        self.txt_html.configure(state="normal")
        self.txt_html.delete("0.0", "end")
        self.txt_html.insert("end", html)
        self.txt_html.configure(state="disabled")

    def _on_close(self) -> None:
        self.rte.destroy()
        try:
            # the HTTP client lives on the background loop, close it there
            self.scheduler.run(close_source(self.source)).result(timeout=2)
        except Exception as exc:
            log.warning("Closing the content source failed: %s", exc)
        self.scheduler.shutdown()
        self.destroy()


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Desktop editor with inline content references")
    ap.add_argument("--source", default=os.environ.get("CONTENTREF_API_URL") or "memory://",
                    help="memory://, json:///path/catalog.json or the backend base URL")
    ap.add_argument("--content", default=None, help="HTML file to open")
    ap.add_argument("--readonly", action="store_true")
    args = ap.parse_args(argv)

    content = ""
    if args.content:
        with open(args.content, "r", encoding="utf-8") as f:
            content = f.read()

    app = EditorApp(args.source, content=content, editable=not args.readonly)
    app.mainloop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
