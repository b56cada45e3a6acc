import json
import sys
from pathlib import Path

from healthscan_catalog.catalog.standardizer import utc_now_iso
from healthscan_catalog.core.database import init_db, session_scope
from healthscan_catalog.store.kv_store import SqlRecordStore, record_key


def import_records(category: str, json_path: Path) -> None:
    init_db()
    data = json.loads(json_path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        # accept {"records": [...]} as well as a bare list
        data = data.get("records", [])

    imported = skipped = 0
    now = utc_now_iso()
    with session_scope() as session:
        store = SqlRecordStore(session)
        for index, record in enumerate(data, start=1):
            if not isinstance(record, dict) or not record.get("id"):
                print(f"Skipped entry {index}: no id")
                skipped += 1
                continue
            record.setdefault("imported_at", now)
            record.setdefault("created_at", now)
            store.set(record_key(category, record["id"]), record)
            imported += 1
    print(f"Imported {imported} {category} records ({skipped} skipped).")


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("usage: import_records.py <category> <file.json>")
        sys.exit(1)
    import_records(sys.argv[1], Path(sys.argv[2]))
