from __future__ import annotations
import argparse
from flask import Flask, request, jsonify, Response
import frontend as api
from contentref import config as CFG

app = Flask(__name__)

# ---------- API ----------
@app.get("/health")
def health():
    return jsonify({"ok": True})

@app.get("/api/content/search")
def api_content_search():
    q = request.args.get("q", "", type=str)
    limit = request.args.get("limit", CFG.PICKER_LIMIT, type=int)
    types = [t for t in request.args.get("types", "", type=str).split(",") if t]
    language = request.args.get("language") or None
    if not q:
        return jsonify([])
    try:
        rows = api.search(q, limit=limit, types=types or None, language=language)
    except RuntimeError as exc:
        return jsonify({"detail": str(exc)}), 503
    return jsonify([r.to_dict() for r in rows])

@app.post("/api/content-refs/normalize")
def api_normalize():
    data = request.get_json(silent=True) or {}
    html = data.get("html")
    if not isinstance(html, str):
        return jsonify({"detail": "Field 'html' (string) is required."}), 422
    return jsonify(api.normalize_html(html))

@app.post("/api/content-refs/preview")
def api_preview():
    data = request.get_json(silent=True) or {}
    html = data.get("html")
    if not isinstance(html, str):
        return jsonify({"detail": "Field 'html' (string) is required."}), 422
    return jsonify({"html": api.preview(html, editable=bool(data.get("editable", False)))})

# ---------- UI ----------
@app.get("/")
def home():
    # Catalog search page: CSS variables + minimal JS, no external deps.
    html = r"""
<!doctype html>
<html lang="fr">
<head>
<meta charset="utf-8" />
<meta name="viewport" content="width=device-width,initial-scale=1" />
<title>Références contenu</title>
<style>
:root{ --bg:#0b0f14; --panel:#0f141b; --ink:#cfd8e3; --muted:#8a94a6; --accent:#6ee7ff; --border:#1c2530; }
*{box-sizing:border-box}
body{ margin:0; background:var(--bg); color:var(--ink); font:16px/1.45 system-ui,-apple-system,Segoe UI,Roboto,Arial; }
.container{ max-width:820px; margin:24px auto; padding:0 16px; }
.card{ background:var(--panel); border:1px solid var(--border); border-radius:16px; padding:18px; }
h1{ font-size:20px; margin:0 0 8px 0; }
input{ width:100%; padding:12px 14px; border-radius:12px; border:1px solid var(--border); background:#0b1117; color:var(--ink); font-size:16px; outline:none; }
input:focus{ border-color:var(--accent) }
.group{ margin-top:14px; color:var(--muted); font-size:12px; text-transform:uppercase; letter-spacing:.05em; }
.row{ display:flex; justify-content:space-between; padding:8px 10px; border-top:1px solid var(--border); }
.slug{ color:var(--muted); font-size:13px; margin-left:8px; }
.empty{ padding:24px; text-align:center; color:var(--muted); }
</style>
</head>
<body>
  <div class="container">
    <div class="card">
      <h1>Références contenu</h1>
      <input id="q" type="text" placeholder="Rechercher un contenu (attraction, hôtel, activité...)" autocomplete="off" autofocus />
      <div id="out" class="empty">Aucun contenu trouvé. Tapez pour rechercher.</div>
    </div>
  </div>
<script>
const LABELS = {attraction:"Attraction", destination:"Destination", activity:"Activité",
                accommodation:"Hébergement", eating:"Restaurant", region:"Région"};
const q = document.querySelector("#q"), out = document.querySelector("#out");
const esc = (s) => String(s ?? "").replace(/[&<>"]/g, (c) => ({"&":"&amp;","<":"&lt;",">":"&gt;",'"':"&quot;"}[c]));
let t, generation = 0;

async function search(){
  const query = q.value;
  const mine = ++generation;
  if(!query){ out.className = "empty"; out.textContent = "Aucun contenu trouvé. Tapez pour rechercher."; return; }
  out.className = "empty"; out.textContent = "Recherche en cours...";
  let data = [];
  try{
    const resp = await fetch(`/api/content/search?q=${encodeURIComponent(query)}&limit=10`);
    if(resp.ok) data = await resp.json();
  }catch(e){ data = []; }
  if(mine !== generation) return;   // a newer search superseded this one
  if(!data.length){ out.className = "empty"; out.textContent = "Aucun contenu trouvé."; return; }
  const groups = {};
  for(const e of data){ (groups[e.entity_type] ||= []).push(e); }
  out.className = "";
  out.innerHTML = Object.entries(groups).map(([type, rows]) =>
    `<div class="group">${esc(LABELS[type] || type)}</div>` + rows.map((e) => {
      const tr = (e.translations || [])[0] || {};
      return `<div class="row"><span>${esc(tr.title || e.entity_type)}<span class="slug">${esc(tr.slug)}</span></span></div>`;
    }).join("")).join("");
}

q.addEventListener("input", () => { clearTimeout(t); t = setTimeout(search, 300); });
</script>
</body>
</html>
"""
    return Response(html, mimetype="text/html")

def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Run the content-reference web service")
    ap.add_argument("--catalog", default=None, help="JSON export of content entities")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8000)
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    api.initialize(catalog=args.catalog, verbose=args.verbose)
    app.run(host=args.host, port=args.port, debug=args.verbose)
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
