from __future__ import annotations
import argparse, json, sys
import frontend as api
from contentref import config as CFG

def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Content reference CLI (catalog search, HTML normalization)")
    p.add_argument("--catalog", default=None, help="JSON export of content entities")
    p.add_argument("-k", type=int, default=CFG.PICKER_LIMIT, help="Max results")
    p.add_argument("--types", default=None, help="Comma-separated entity types to keep")
    p.add_argument("--language", default=None, help="Preferred translation language")
    p.add_argument("--repl", action="store_true", help="Interactive loop after init")
    p.add_argument("--q", default=None, help="Single query to run once")
    p.add_argument("--normalize", default=None, metavar="FILE", help="Parse and re-serialize an HTML file ('-' for stdin)")
    p.add_argument("--json", action="store_true", help="Emit JSON rows")
    p.add_argument("--verbose", action="store_true")

    args = p.parse_args(argv)

    if args.normalize:
        if args.normalize == "-":
            html = sys.stdin.read()
        else:
            with open(args.normalize, "r", encoding="utf-8") as f:
                html = f.read()
        out = api.normalize_html(html)
        if args.json:
            print(json.dumps(out, ensure_ascii=False, indent=2))
        else:
            print(out["html"])
        return 0

    if not (args.q or args.repl):
        p.error("nothing to do: pass --q, --repl or --normalize")

    api.initialize(catalog=args.catalog, verbose=args.verbose)
    types = [t for t in (args.types or "").split(",") if t] or None

    def run_query(q: str):
        rows = api.search(q, limit=args.k, types=types, language=args.language)
        if args.json:
            print(json.dumps([r.to_dict() for r in rows], ensure_ascii=False, indent=2))
            return
        if not rows:
            print("Aucun contenu trouvé"); return
        print("#  Type           Slug                            Title")
        for i, r in enumerate(rows, 1):
            label = CFG.TYPE_LABELS.get(r.entity_type, r.entity_type)
            print(f"{i:<2} {label:<14} {r.slug:<31} {r.title}")

    if args.q:
        run_query(args.q)

    if args.repl:
        print("Type a query (empty line to exit).")
        while True:
            try:
                q = input("> ").strip()
            except (EOFError, KeyboardInterrupt):
                break
            if not q:
                break
            run_query(q)

    return 0

if __name__ == "__main__":
    raise SystemExit(main())
