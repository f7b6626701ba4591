"""Pop Maker - Entry Point.

Subcommands:
    serve                       run the web app
    render PAGE.json -o OUT.png rasterize one page descriptor
    export-pdf POPS.json -o OUT.pdf
    badges list | badges clear
    parse-url URL
"""

import argparse
import json
import logging
import sys

from export.page_rasterizer import DEFAULT_DISPLAY_SCALE, DEFAULT_DPI, render_page
from export.pdf_export import export_pages_pdf
from export.pop_card import make_pop_compositor
from models.badge_catalog import BadgeCatalogStore
from models.errors import PersistenceError
from models.page_layout import PageDescriptor, generate_a4_layout
from models.storage import JsonFileStorage
from utils.discogs_url import parse_discogs_url
from web.state import default_data_dir

logger = logging.getLogger("pop_maker")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render record-shop pops onto A4 sheets.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument("--data-dir", default=None,
                        help="Badge catalog directory (default: $POP_MAKER_DATA_DIR or a temp dir).")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the web app.")
    serve.add_argument("-p", "--port", type=int, default=None)

    render = sub.add_parser("render", help="Rasterize one page descriptor to PNG.")
    render.add_argument("page", help="Page descriptor JSON file.")
    render.add_argument("-o", "--output", required=True, help="Output PNG path.")
    render.add_argument("--dpi", type=int, default=DEFAULT_DPI)
    render.add_argument("--scale", type=float, default=DEFAULT_DISPLAY_SCALE,
                        help="Display scale used for --preview.")
    render.add_argument("--preview", action="store_true", help="Also write a display-scaled preview.")

    export = sub.add_parser("export-pdf", help="Lay pops out on A4 pages and write a PDF.")
    export.add_argument("pops", help="JSON file holding a list of pop descriptors.")
    export.add_argument("-o", "--output", required=True, help="Output PDF path.")
    export.add_argument("--dpi", type=int, default=DEFAULT_DPI)

    badges = sub.add_parser("badges", help="Inspect or reset the badge catalog.")
    badges.add_argument("action", choices=("list", "clear"))

    parse_url = sub.add_parser("parse-url", help="Classify a Discogs URL.")
    parse_url.add_argument("url")
    return parser


def _load_json(path: str):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _cmd_render(args, store: BadgeCatalogStore) -> int:
    page = PageDescriptor.from_dict(_load_json(args.page))
    rendered = render_page(page, make_pop_compositor(store.get_by_id), args.dpi, args.scale)
    if rendered is None:
        logger.error("Could not render page (dpi=%s)", args.dpi)
        return 1
    rendered.image.save(args.output, dpi=(args.dpi, args.dpi))
    print(f"{args.output}: {rendered.width}x{rendered.height} px at {args.dpi} dpi")
    if args.preview:
        preview_path = args.output.rsplit(".", 1)[0] + ".preview.png"
        rendered.display_image().save(preview_path)
        print(f"{preview_path}: {rendered.display_width}x{rendered.display_height} px")
    return 0


def _cmd_export(args, store: BadgeCatalogStore) -> int:
    data = _load_json(args.pops)
    pops = data.get("pops", []) if isinstance(data, dict) else data
    pages = generate_a4_layout(pops)

    def on_progress(n):
        print(f"  page {n}/{len(pages)}")

    written = export_pages_pdf(pages, make_pop_compositor(store.get_by_id), args.output,
                               args.dpi, on_progress=on_progress)
    print(f"{args.output}: {written} pages, {len(pops)} pops")
    return 0


def _cmd_badges(args, store: BadgeCatalogStore) -> int:
    if args.action == "clear":
        store.clear_all()
        print("Badge catalog cleared")
        return 0
    badges = store.get_all()
    if not badges:
        print("No custom badges")
    for badge in badges:
        print(f"{badge.id}  {badge.name:<20}  {badge.type:<5}  {badge.shape:<9}  "
              f"{badge.width:g}x{badge.height:g} mm")
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.command == "parse-url":
        print(json.dumps(parse_discogs_url(args.url).to_dict()))
        return 0

    if args.command == "serve":
        from web.app import run
        from web.state import state
        if args.data_dir:
            state.use_storage(JsonFileStorage(args.data_dir))
        run(port=args.port)
        return 0

    store = BadgeCatalogStore(JsonFileStorage(args.data_dir or default_data_dir()))
    try:
        if args.command == "render":
            return _cmd_render(args, store)
        if args.command == "export-pdf":
            return _cmd_export(args, store)
        return _cmd_badges(args, store)
    except PersistenceError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
