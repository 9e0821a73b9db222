# src/e2e/test_integration_memory_catalog.py

import asyncio
import json
from pathlib import Path

import pytest

from contentref.models import ContentEntity, Translation
from contentref.normalize import normalize
from contentref.sources import HttpContentSource, MemoryCatalog, close_source, make_source

from conftest import ATLAS, CATALOG, DAR, JEMAA, RIAD, TAGINE, TREK, entity

ATLAS_LODGE = entity(50, "accommodation", "Atlas Lodge", "atlas-lodge")


def _write_export(tmp: Path, wrap: bool = False) -> Path:
    rows = [e.to_dict() for e in CATALOG]
    path = tmp / "catalog.json"
    path.write_text(json.dumps({"items": rows} if wrap else rows), encoding="utf-8")
    return path


def test_normalize_folds_case_accents_and_punctuation():
    assert normalize("  Tagine-Café  ") == "tagine cafe"
    assert normalize("Trek dans l'Atlas") == "trek dans l atlas"


def test_title_prefix_beats_word_prefix():
    cat = MemoryCatalog(CATALOG + [ATLAS_LODGE])
    rows = cat.find("atlas")
    assert rows[0] == ATLAS_LODGE
    # same tier: alphabetical by title
    assert rows[1:] == [DAR, ATLAS, TREK]


def test_accent_insensitive_match():
    cat = MemoryCatalog(CATALOG)
    assert cat.find("cafe") == [TAGINE]
    assert cat.find("CAFÉ") == [TAGINE]


def test_slug_only_match():
    hidden = entity(60, "attraction", "Chez Ali", "chez-ali-fantasia")
    cat = MemoryCatalog([hidden])
    assert cat.find("fantasia") == [hidden]


@pytest.mark.e2e
def test_one_typo_still_finds_title():
    cat = MemoryCatalog(CATALOG)
    assert cat.find("ryad") == [RIAD]
    assert cat.find("jnan riad")[0] == RIAD


def test_short_tokens_are_not_typo_tolerant():
    cat = MemoryCatalog(CATALOG)
    assert cat.find("zz") == []


def test_types_and_limit():
    cat = MemoryCatalog(CATALOG)
    assert cat.find("atlas", types=["region"]) == [ATLAS]
    assert len(cat.find("a", limit=2)) == 2
    assert cat.find("", limit=5) == []
    assert cat.find("riad", limit=0) == []


def test_language_selects_translation():
    riad = ContentEntity(42, "accommodation", (
        Translation("Riad Jnane", "riad-jnane", "fr"),
        Translation("Jnane Garden House", "jnane-garden-house", "en"),
    ))
    cat = MemoryCatalog([riad])
    assert cat.find("garden") == []
    (hit,) = cat.find("garden", language="en")
    assert hit.title == "Jnane Garden House"
    assert hit.id == 42


def test_crud_and_counts():
    cat = MemoryCatalog()
    cat.create(RIAD)
    assert cat.bulk_create([TREK, JEMAA]) == 2
    assert cat.count() == 3
    assert cat.read("42") == RIAD
    cat.delete(42)
    with pytest.raises(KeyError):
        cat.read(42)
    cat.close()
    assert cat.count() == 0


@pytest.mark.parametrize("wrap", [False, True])
def test_json_export_loads(tmp_path: Path, wrap):
    cat = MemoryCatalog.from_json(str(_write_export(tmp_path, wrap)))
    assert cat.count() == len(CATALOG)
    assert cat.read(7) == TREK


def test_async_search_matches_find():
    cat = MemoryCatalog(CATALOG)
    rows = asyncio.run(cat.search("riad", limit=8))
    assert rows == cat.find("riad", limit=8)


def test_make_source_dsn_forms(tmp_path: Path):
    assert make_source("memory://").count() == 0
    loaded = make_source(f"json://{_write_export(tmp_path)}")
    assert isinstance(loaded, MemoryCatalog) and loaded.count() == len(CATALOG)
    remote = make_source("https://backoffice.example", token="tok")
    assert isinstance(remote, HttpContentSource)
    asyncio.run(remote.aclose())
    with pytest.raises(ValueError):
        make_source("ftp://nowhere")


def test_close_source_falls_back_to_sync_close():
    cat = MemoryCatalog(CATALOG)
    asyncio.run(close_source(cat))
    assert cat.count() == 0
