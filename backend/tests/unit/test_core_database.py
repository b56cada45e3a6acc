from healthscan_catalog.core.config import Settings
from healthscan_catalog.core.database import SQLITE_BUSY_TIMEOUT_SECONDS, _sqlite_connect_args, build_engine


def test_sqlite_connect_args_allow_threads_and_wait_for_locks():
    assert _sqlite_connect_args("sqlite:///foo.db") == {
        "check_same_thread": False,
        "timeout": SQLITE_BUSY_TIMEOUT_SECONDS,
    }


def test_non_sqlite_connect_args_returns_empty_dict():
    assert _sqlite_connect_args("postgresql://example") == {}


def test_file_databases_use_wal(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'catalog.db'}")
    try:
        with engine.connect() as conn:
            assert conn.exec_driver_sql("PRAGMA journal_mode").scalar().lower() == "wal"
    finally:
        engine.dispose()


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("COMPLETENESS_THRESHOLD", "80")
    monkeypatch.setenv("ADMIN_DOMAINS", '["example.org"]')
    monkeypatch.setenv("ENRICHMENT_LLM_ENABLED", "true")
    settings = Settings()
    assert settings.completeness_threshold == 80
    assert settings.admin_domains == ["example.org"]
    assert settings.enrichment_llm_enabled is True
    assert settings.lock_ttl_seconds == 900
