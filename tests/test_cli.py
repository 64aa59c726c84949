import json

import pytest

from content_i18n import cli
from content_i18n.models import ContentType
from content_i18n.service import TranslationService
from content_i18n.stores.memory import MemoryTranslationStore


@pytest.fixture
def service(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://test/cms")
    for name in ("CONTENT_LANGS", "CONTENT_DEFAULT_LANG", "CONTENT_REQUIRED_LANGS", "CONTENT_STORE"):
        monkeypatch.delenv(name, raising=False)
    svc = TranslationService(stores={ct: MemoryTranslationStore(ct) for ct in ContentType})
    monkeypatch.setattr(cli.TranslationService, "from_config", classmethod(lambda cls, cfg: svc))
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)
    return svc


def test_status_prints_summary(service, capsys):
    service.create_translation("posts", "a", "en", {"title": "Hello"})

    assert cli.main(["status", "--type", "posts", "--id", "a"]) == 0

    out = capsys.readouterr().out
    assert "en exists=true complete=true" in out
    assert "pt exists=false complete=false updated=-" in out
    assert "summary total=2 completed=1 missing=pt percentage=50" in out


def test_bulk_delete_exit_code(service, capsys):
    service.create_translation("posts", "a", "pt", {"title": "Olá"})

    assert cli.main(["bulk-delete", "--type", "posts", "--ids", "a,b", "--lang", "pt"]) == 0
    assert "summary op=bulk-delete success=true processed=2 failed=0 deleted=1" in capsys.readouterr().out

    assert cli.main(["bulk-delete", "--type", "posts", "--ids", "a", "--lang", "fr"]) == 1


def test_export_then_import(service, tmp_path, capsys):
    service.create_translation("products", "p1", "en", {"name": "Widget"})
    path = tmp_path / "p1.json"

    assert cli.main(["export", "--type", "products", "--id", "p1", "--out", str(path)]) == 0
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["translations"] == {"en": {"name": "Widget"}}

    data["translations"]["pt"] = {"name": "Aparelho"}
    path.write_text(json.dumps(data), encoding="utf-8")
    assert cli.main(["import", str(path)]) == 0
    assert service.translations("products", "p1")[1].name == "Aparelho"
    assert "summary op=import success=true processed=2" in capsys.readouterr().out


def test_import_missing_file(service, tmp_path):
    with pytest.raises(SystemExit):
        cli.main(["import", str(tmp_path / "nope.json")])


def test_stats_prints_coverage_and_row_counts(service, capsys):
    store = service.manager("brokers").store
    store.add_parent("b1")
    store.add_parent("b2")
    service.create_translation("brokers", "b1", "en", {"description": "Broker"})
    service.create_translation("brokers", "b1", "pt", {"description": "Corretora"})

    assert cli.main(["stats", "--type", "brokers"]) == 0

    out = capsys.readouterr().out
    assert "summary total=2 with=1 without=1 completeness=50 en=1 pt=1" in out
    assert "rows en=1 pt=1" in out
