#!/usr/bin/env python3
"""Generate label PDFs from a saved layout and a batch of records."""

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from config import AppSettings
from domain_data import collect_records, collect_records_by_ids
from errors import LabelDesignerError
from label_generation import DocumentRenderer
from label_templates import get_template, list_templates
from layout_editor import default_layout
from layout_model import LayoutModel
from readiness import ReadinessCoordinator
from record_source import StaticRecordSource

DEFAULT_TEMPLATE = "pimaco-6080"
QR_WAIT_SECONDS = 60.0


def _split_ids(values: Sequence[str]) -> list[str]:
    ids: list[str] = []
    for value in values:
        ids.extend(part.strip() for part in value.split(",") if part.strip())
    return ids


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Records -> label PDF using a designed layout"
    )
    parser.add_argument("-o", "--output", help="Output PDF (default: labels_<date>.pdf)")
    parser.add_argument(
        "-t", "--template",
        help=f"Label stock id (default: the saved layout's stock or {DEFAULT_TEMPLATE}).",
    )
    parser.add_argument(
        "-l", "--layout",
        help="Name or id of a saved layout for the configured tenant.",
    )
    parser.add_argument(
        "--records",
        help="JSON file with records (overrides LABELS_RECORDS_FILE/LABELS_RECORDS_URL).",
    )
    parser.add_argument(
        "--ids",
        action="append",
        default=[],
        metavar="ID[,ID...]",
        help="Print only these record ids, in this order (repeatable).",
    )
    parser.add_argument("--search", help="Case-insensitive name/tag filter.")
    parser.add_argument(
        "-n", "--name-pattern",
        help="Case-insensitive regex filter applied to record names.",
    )
    parser.add_argument(
        "--tile-on-a4",
        action="store_true",
        help="Tile single-label stock onto A4 sheets.",
    )
    parser.add_argument(
        "-s", "--skip",
        type=int,
        default=0,
        help="Number of labels to skip at start of first sheet",
    )
    parser.add_argument(
        "-d", "--draw-outline",
        action="store_true",
        help="Draw outline around every label",
    )
    parser.add_argument("--logo", help="PNG/JPEG file used for logo elements.")
    parser.add_argument(
        "--list-templates",
        action="store_true",
        help="List the available label stocks and exit.",
    )
    parser.add_argument(
        "--web",
        action="store_true",
        help="Start the local web UI instead of generating a PDF.",
    )
    parser.add_argument("--web-host", default="127.0.0.1")
    parser.add_argument("--web-port", type=int, default=4000)
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point for generating a label PDF."""

    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.list_templates:
        for config in list_templates():
            print(f"{config.id}\t{config.name}")
        return 0

    settings = AppSettings.from_env()

    if args.web:
        from label_designer_web import run_web_app

        run_web_app(settings, host=args.web_host, port=args.web_port)
        return 0

    source = (
        StaticRecordSource.from_json_file(args.records)
        if args.records
        else settings.record_source()
    )

    coordinator = ReadinessCoordinator(base_ui=settings.public_base_url)
    try:
        template_id = args.template
        tile_on_a4 = args.tile_on_a4
        layout: LayoutModel | None = None
        if args.layout:
            saved = settings.template_store().get(settings.tenant_id, args.layout)
            layout = saved.elements
            template_id = template_id or saved.base_template_config_id
            tile_on_a4 = tile_on_a4 or saved.tile_on_a4
        config = get_template(template_id or DEFAULT_TEMPLATE)
        if layout is None:
            layout = default_layout(config)

        ids = _split_ids(args.ids)
        if ids:
            records = collect_records_by_ids(source, ids)
        else:
            try:
                records, _ = collect_records(
                    source,
                    search=args.search,
                    name_pattern=args.name_pattern,
                )
            except ValueError as exc:
                raise SystemExit(str(exc)) from exc

        logo = Path(args.logo).read_bytes() if args.logo else None

        coordinator.select(records)
        coordinator.wait(timeout=QR_WAIT_SECONDS)
        result = DocumentRenderer().generate(
            args.output,
            records,
            layout,
            config,
            coordinator,
            tile_on_a4=tile_on_a4,
            logo=logo,
            skip=args.skip,
            draw_outline=args.draw_outline,
        )
    except LabelDesignerError as exc:
        raise SystemExit(str(exc)) from exc
    finally:
        coordinator.shutdown()

    print(f"Wrote {result.output_path} ({result.label_count} labels, {result.page_count} pages)")
    return 0


if __name__ == "__main__":

    load_dotenv()

    main()
