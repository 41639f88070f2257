from __future__ import annotations

import argparse
import logging
import sys
import zipfile
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .codecs import ARCHIVE_DIALECTS, AUTO, CODECS, load_last_heard
from .exceptions import CodeplugError, NotFoundError
from .models.enums import EntityKind
from .orchestrator import CodeplugOrchestrator
from .progress import ImportProgress
from .repository import contact_list_ids, get_engine, session_scope
from .services import CodeplugService
from .settings import load_settings

logger = logging.getLogger("codeplugs")


def _log_progress(progress: ImportProgress) -> None:
    logger.info("[%s %d/%d] %s", progress.status.value, progress.processed, progress.total, progress.message)


def _show_filter_lists(service: CodeplugService, name: str) -> None:
    lists = service.list_contact_lists()
    if name == "all":
        print("Available filter lists:")
        for entry in lists:
            print(f" - {entry['name']}: {entry['count']} entries ({entry['description']})")
        return
    entry = next((e for e in lists if e["name"] == name), None)
    if entry is None:
        raise NotFoundError(f"contact list {name!r} not found")
    print(f"List: {entry['name']}\nDescription: {entry['description']}\nTotal entries: {entry['count']}")
    ids = sorted(service.contact_list_ids(name))[:10]
    if ids:
        print("First 10 IDs:")
        for dmr_id in ids:
            print(f" - {dmr_id}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="codeplugs", description="Manage radio codeplugs")
    parser.add_argument("--db", help="SQLite database path (default from settings)")
    parser.add_argument("--import", dest="import_file", help="CSV file or zip archive to import")
    parser.add_argument(
        "--format", default="generic", choices=sorted(CODECS) + [AUTO], help="Dialect of --import (auto: detect)"
    )
    parser.add_argument(
        "--kind",
        default=EntityKind.CHANNELS.value,
        choices=[k.value for k in EntityKind],
        help="Entity carried by a single-file --import",
    )
    parser.add_argument("--overwrite", action="store_true", help="Replace existing channels on import")
    parser.add_argument("--export", dest="export_file", help="Write the codeplug to this file")
    parser.add_argument("--radio", default="at890", choices=sorted(set(CODECS) - {"radioid"}), help="Export dialect")
    parser.add_argument(
        "--zone", action="append", default=[],
        help="Only export this zone (repeatable); with --import, add the new channels to the first one",
    )
    parser.add_argument("--use-list", help="Filter list limiting exported or imported directory IDs")
    parser.add_argument("--import-list", help="File of DMR IDs to store as a filter list")
    parser.add_argument("--list-name", help="Name for --import-list")
    parser.add_argument("--view-list", metavar="NAME", help="Show a filter list ('all' lists every one) and exit")
    parser.add_argument("--limit", type=int, help="Maximum directory contacts exported (default from settings)")
    parser.add_argument(
        "--import-radioid", nargs="?", const="", default=None, metavar="URL",
        help="Download and import the DMR-ID directory (default URL from settings)",
    )
    parser.add_argument("--last-heard", help="Brandmeister last-heard CSV; only these IDs are imported")
    parser.add_argument("--fix-bandwidth", action="store_true", help="Set 25 kHz analog / 12.5 kHz digital")
    parser.add_argument("--serve", action="store_true", help="Run the HTTP API with uvicorn")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    settings = load_settings()
    if args.db:
        settings = replace(settings, db_path=Path(args.db))

    if args.serve:
        import uvicorn

        from .api import create_app

        uvicorn.run(create_app(settings), host=args.host, port=args.port)
        return 0

    engine = get_engine(settings.db_path)
    service = CodeplugService(engine)
    orchestrator = CodeplugOrchestrator(engine, settings, reporter=_log_progress)
    try:
        if args.view_list:
            _show_filter_lists(service, args.view_list)
            return 0

        if args.import_list:
            if not args.list_name:
                logger.error("--import-list needs --list-name")
                return 2
            count = service.import_contact_list(args.list_name, Path(args.import_list).read_bytes())
            print(f"Filter list {args.list_name!r}: {count} IDs")

        allow_ids = None
        if args.last_heard:
            allow_ids = load_last_heard(Path(args.last_heard).read_bytes())
        elif args.use_list and (args.import_radioid is not None or args.kind == EntityKind.DIRECTORY.value):
            with session_scope(engine) as session:
                allow_ids = contact_list_ids(session, args.use_list)

        if args.import_radioid is not None:
            summary = orchestrator.import_directory_url(args.import_radioid or None, allow_ids=allow_ids)
            print(summary.describe())

        if args.import_file:
            path = Path(args.import_file)
            if (args.format in ARCHIVE_DIALECTS or args.format == AUTO) and zipfile.is_zipfile(path):
                summaries = orchestrator.import_archive(path, args.format, overwrite=args.overwrite, allow_ids=allow_ids)
            else:
                summaries = [
                    orchestrator.import_file(
                        path, args.format, EntityKind(args.kind), overwrite=args.overwrite,
                        allow_ids=allow_ids, name=path.name, zone=args.zone[0] if args.zone else None,
                    )
                ]
            for summary in summaries:
                print(summary.describe())
                for error in summary.errors:
                    logger.debug("%s: %s", summary.member, error)

        if args.fix_bandwidth:
            print(f"Fixed bandwidth on {service.fix_bandwidths()} channels")

        if args.export_file:
            out = orchestrator.export_to(
                args.export_file, args.radio, zones=args.zone or None, filter_list=args.use_list,
                limit=args.limit,
            )
            print(f"Exported {args.radio} codeplug to {out}")
    except CodeplugError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
