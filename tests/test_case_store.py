import json
import logging

import pytest

from case_tree.case_store import STORAGE_KEY, CaseStore
from case_tree.records import CaseRecord
from case_tree.storage import JsonFileStore, MemoryStore


def _record(name="Jane Doe", **kw):
    return CaseRecord(fullName=name, **kw)


def test_round_trip_empty_list():
    kv = MemoryStore()
    CaseStore(kv).save()
    assert kv.get_item(STORAGE_KEY) == "[]"
    assert CaseStore(kv).load() == []


def test_round_trip_record_with_empty_optional_fields():
    kv = MemoryStore()
    store = CaseStore(kv)
    records = [
        _record(),
        _record("John Roe", dob="1985-03-04", custodyType="federal", facility="MDC Brooklyn",
                nextCourtDate="2026-01-15", currentStage="plea"),
    ]
    for r in records:
        store.upsert(r)
    assert CaseStore(kv).load() == records


def test_persisted_layout_uses_camel_case_keys():
    kv = MemoryStore()
    CaseStore(kv).upsert(_record(currentStage="trial"))
    data = json.loads(kv.get_item(STORAGE_KEY))
    assert data == [{
        "fullName": "Jane Doe",
        "dob": "",
        "custodyType": "county",
        "facility": "",
        "nextCourtDate": "",
        "currentStage": "trial",
    }]


def test_create_update_delete_sequence():
    store = CaseStore(MemoryStore())
    a, b = _record("A"), _record("B")
    assert store.upsert(a) == 0
    assert store.records == [a]
    assert store.upsert(b, 0) == 0
    assert store.records == [b]
    assert store.delete(0) is True
    assert store.records == []


def test_out_of_range_update_appends():
    store = CaseStore(MemoryStore())
    store.upsert(_record("A"))
    assert store.upsert(_record("B"), 7) == 1
    assert store.upsert(_record("C"), -3) == 2
    assert [r.full_name for r in store.records] == ["A", "B", "C"]


def test_delete_shifts_following_indices():
    store = CaseStore(MemoryStore())
    for name in ("A", "B", "C"):
        store.upsert(_record(name))
    store.delete(1)
    assert [r.full_name for r in store.records] == ["A", "C"]
    assert store.get(1).full_name == "C"


@pytest.mark.parametrize("index", [-1, 1, 99, None, "0"])
def test_delete_invalid_index_is_noop(index):
    kv = MemoryStore()
    store = CaseStore(kv)
    store.upsert(_record())
    before = kv.get_item(STORAGE_KEY)
    assert store.delete(index) is False
    assert len(store) == 1
    assert kv.get_item(STORAGE_KEY) == before


def test_missing_key_loads_empty():
    assert CaseStore(MemoryStore()).load() == []


@pytest.mark.parametrize("raw", ["{not json", '{"fullName": "x"}', "42", "null"])
def test_malformed_data_loads_empty_with_warning(raw, caplog):
    kv = MemoryStore({STORAGE_KEY: raw})
    with caplog.at_level(logging.WARNING):
        assert CaseStore(kv).load() == []
    assert any("starting empty" in rec.getMessage() for rec in caplog.records)


def test_invalid_entries_are_skipped(caplog):
    payload = [{"fullName": "Kept"}, {"fullName": "   "}, "junk", {"dob": "2000-01-01"}]
    kv = MemoryStore({STORAGE_KEY: json.dumps(payload)})
    with caplog.at_level(logging.WARNING):
        records = CaseStore(kv).load()
    assert [r.full_name for r in records] == ["Kept"]
    assert sum("Skipping stored case" in rec.getMessage() for rec in caplog.records) == 3


def test_record_requires_name():
    with pytest.raises(ValueError):
        CaseRecord(fullName="  ")
    with pytest.raises(ValueError):
        CaseRecord()


def test_record_defaults_to_root_stage():
    assert _record().current_stage == "arrested"


def test_json_file_store_round_trip(tmp_path):
    path = tmp_path / "nested" / "store.json"
    store = CaseStore(JsonFileStore(str(path)))
    store.upsert(_record("File Case", currentStage="probation"))
    reloaded = CaseStore(JsonFileStore(str(path))).load()
    assert [r.current_stage for r in reloaded] == ["probation"]
    assert list(path.parent.iterdir()) == [path]


def test_json_file_store_remove_item(tmp_path):
    kv = JsonFileStore(str(tmp_path / "store.json"))
    kv.set_item("a", "1")
    kv.set_item("b", "2")
    kv.remove_item("a")
    assert kv.get_item("a") is None
    assert kv.get_item("b") == "2"


def test_json_file_store_corrupt_file_reads_empty(tmp_path, caplog):
    path = tmp_path / "store.json"
    path.write_text("{{{", encoding="utf-8")
    kv = JsonFileStore(str(path))
    with caplog.at_level(logging.WARNING):
        assert kv.get_item(STORAGE_KEY) is None
    assert CaseStore(kv).load() == []
    assert caplog.records


def test_long_values_round_trip():
    kv = MemoryStore()
    record = _record(facility="F" * 500, currentStage="s" * 300, dob="unknown, born some time in the 1980s")
    CaseStore(kv).upsert(record)
    assert CaseStore(kv).load() == [record]


def test_null_optional_fields_load_as_empty():
    raw = json.dumps([
        {"fullName": "A", "dob": None, "facility": None, "nextCourtDate": None, "currentStage": "plea"},
        {"fullName": "B", "currentStage": None},
    ])
    records = CaseStore(MemoryStore({STORAGE_KEY: raw})).load()
    assert [r.full_name for r in records] == ["A", "B"]
    assert records[0].next_court_date == ""
    assert records[0].dob == "" and records[0].facility == ""
    assert records[0].current_stage == "plea"
    assert records[1].current_stage == "arrested"


def test_json_file_store_warns_on_non_string_values(tmp_path, caplog):
    path = tmp_path / "store.json"
    path.write_text(json.dumps({"kept": "1", "count": 3}), encoding="utf-8")
    kv = JsonFileStore(str(path))
    with caplog.at_level(logging.WARNING):
        assert kv.get_item("kept") == "1"
        assert kv.get_item("count") is None
    assert any("count" in rec.getMessage() for rec in caplog.records)
