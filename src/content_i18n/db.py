from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

import psycopg
from psycopg import sql

from .schema import REGISTRY, ContentSchema

log = logging.getLogger("content_i18n.db")


def connect(dsn: str) -> psycopg.Connection:
    return psycopg.connect(dsn)


@contextmanager
def get_conn(dsn: str) -> Iterator[psycopg.Connection]:
    conn = connect(dsn)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def translation_table_ddl(schema: ContentSchema) -> sql.Composed:
    columns = [
        sql.SQL("id UUID PRIMARY KEY DEFAULT gen_random_uuid()"),
        sql.SQL("{} TEXT NOT NULL").format(sql.Identifier(schema.content_id_field)),
        sql.SQL("language_code TEXT NOT NULL"),
    ]
    for name in schema.required_fields:
        columns.append(sql.SQL("{} TEXT NOT NULL").format(sql.Identifier(name)))
    for name in schema.optional_fields:
        columns.append(sql.SQL("{} TEXT").format(sql.Identifier(name)))
    columns.append(sql.SQL("created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()"))
    columns.append(sql.SQL("updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()"))
    # one translation per (content item, language)
    columns.append(
        sql.SQL("UNIQUE ({}, language_code)").format(sql.Identifier(schema.content_id_field))
    )
    return sql.SQL("CREATE TABLE IF NOT EXISTS {} ({})").format(
        sql.Identifier(schema.table), sql.SQL(", ").join(columns)
    )


def ensure_schema(conn: psycopg.Connection) -> list[str]:
    created: list[str] = []
    with conn.cursor() as cur:
        for schema in REGISTRY.values():
            cur.execute(translation_table_ddl(schema))
            created.append(schema.table)
    log.info("translation tables ready: %s", ", ".join(created))
    return created
