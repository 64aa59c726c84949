from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import load_config
from .db import ensure_schema, get_conn
from .logging import attach_file_logging, configure_logging
from .models import BulkResult, ContentType
from .service import TranslationService


def _ids(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def _langs(raw: str | None) -> list[str] | None:
    if not raw:
        return None
    return [part.strip() for part in raw.split(",") if part.strip()]


def _print_bulk(name: str, result: BulkResult) -> None:
    print(
        f"summary op={name} success={str(result.success).lower()} processed={result.processed} "
        f"failed={result.failed} deleted={result.deleted_count}"
    )
    for key, message in result.errors.items():
        print(f"error {key}: {message}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="content-i18n")
    parser.add_argument("--log-file", default=None)
    parser.add_argument("--log-level", default="INFO")
    sub = parser.add_subparsers(dest="command", required=True)
    types = [ct.value for ct in ContentType]

    sub.add_parser("init-db", help="create translation tables with their unique constraints")

    status = sub.add_parser("status", help="per-language status and completeness of one item")
    status.add_argument("--type", choices=types, required=True)
    status.add_argument("--id", required=True)
    status.add_argument("--langs", default=None, help="comma-separated; defaults to CONTENT_REQUIRED_LANGS")

    stats = sub.add_parser("stats", help="translation coverage of a content type")
    stats.add_argument("--type", choices=types, required=True)
    stats.add_argument("--langs", default=None)

    delete = sub.add_parser("bulk-delete", help="delete translations of many items")
    delete.add_argument("--type", choices=types, required=True)
    delete.add_argument("--ids", required=True, help="comma-separated content ids")
    delete.add_argument("--lang", default=None, help="only delete this language")

    copy = sub.add_parser("copy", help="copy one language's fields into another")
    copy.add_argument("--type", choices=types, required=True)
    copy.add_argument("--ids", required=True)
    copy.add_argument("--from", dest="source", required=True)
    copy.add_argument("--to", dest="target", required=True)
    copy.add_argument("--overwrite", action="store_true")

    validate = sub.add_parser("validate", help="check items are complete in every required language")
    validate.add_argument("--type", choices=types, required=True)
    validate.add_argument("--ids", required=True)
    validate.add_argument("--langs", default=None)

    export = sub.add_parser("export", help="write one item's translations as JSON")
    export.add_argument("--type", choices=types, required=True)
    export.add_argument("--id", required=True)
    export.add_argument("--title", default="")
    export.add_argument("--out", default=None)

    imp = sub.add_parser("import", help="create or update translations from an export file")
    imp.add_argument("path")
    imp.add_argument("--no-overwrite", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    configure_logging(args.log_level)
    if args.log_file:
        attach_file_logging(args.log_file)
    cfg = load_config()

    if args.command == "init-db":
        if not cfg.pg_dsn:
            raise SystemExit("DATABASE_URL is required for init-db")
        with get_conn(cfg.pg_dsn) as conn:
            tables = ensure_schema(conn)
        print(f"summary tables={','.join(tables)}")
        return 0

    service = TranslationService.from_config(cfg)

    if args.command == "status":
        required = _langs(args.langs)
        for st in service.status(args.type, args.id, required):
            updated = st.last_updated.isoformat() if st.last_updated else "-"
            print(
                f"{st.language_code} exists={str(st.has_translation).lower()} "
                f"complete={str(st.is_complete).lower()} updated={updated}"
            )
        c = service.completeness(args.type, args.id, required)
        print(
            f"summary total={c.total} completed={c.completed} "
            f"missing={','.join(c.missing) or '-'} percentage={c.percentage}"
        )
        return 0

    if args.command == "stats":
        s = service.statistics(args.type, _langs(args.langs))
        by_lang = " ".join(f"{lang}={count}" for lang, count in s.translations_by_language.items())
        print(
            f"summary total={s.total_content} with={s.with_translations} "
            f"without={s.without_translations} completeness={s.completeness} {by_lang}".rstrip()
        )
        rows = " ".join(f"{lang}={count}" for lang, count in service.language_counts(args.type).items())
        print(f"rows {rows or '-'}")
        return 0

    if args.command == "bulk-delete":
        result = service.bulk_delete(args.type, _ids(args.ids), args.lang)
        _print_bulk("bulk-delete", result)
        return 0 if result.success else 1

    if args.command == "copy":
        result = service.bulk_copy(args.type, _ids(args.ids), args.source, args.target, args.overwrite)
        _print_bulk("copy", result)
        return 0 if result.success else 1

    if args.command == "validate":
        result = service.bulk(args.type).bulk_validate(_ids(args.ids), _langs(args.langs))
        for op in result.results:
            print(op.message)
        _print_bulk("validate", result)
        return 0 if result.success else 1

    if args.command == "export":
        data = service.bulk(args.type).export_translations(args.id, args.title)
        text = json.dumps(data, ensure_ascii=False, indent=2)
        if args.out:
            Path(args.out).write_text(text + "\n", encoding="utf-8")
            print(f"summary exported={len(data['translations'])} path={args.out}")
        else:
            sys.stdout.write(text + "\n")
        return 0

    if args.command == "import":
        try:
            data = json.loads(Path(args.path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise SystemExit(f"cannot read {args.path}: {exc}") from exc
        result = service.bulk(data.get("contentType", "")).import_translations(
            data, overwrite=not args.no_overwrite
        )
        _print_bulk("import", result)
        return 0 if result.success else 1

    raise SystemExit(f"unknown command: {args.command}")


if __name__ == "__main__":
    sys.exit(main())
