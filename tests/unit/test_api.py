"""
API tests -- FastAPI endpoints via TestClient (no live server needed).
"""
import pytest
from fastapi.testclient import TestClient

from pivotdax.api.main import app
from pivotdax.pivot.segments import get_segment_store

client = TestClient(app)

_URL = "/api/pivotdata"


@pytest.fixture(autouse=True)
def _clean_segments():
    get_segment_store().clear()
    yield
    get_segment_store().clear()



def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"



def test_metadata():
    resp = client.get(f"{_URL}/metadata")
    assert resp.status_code == 200
    data = resp.json()
    assert "Date[Month]" in data["dimensions"]
    assert data["measures"] == ["Sales Amount", "Units Sold", "Profit"]



def test_data_basic():
    resp = client.post(f"{_URL}/data", json={
        "Rows": ["Date[Month]"], "Columns": [], "Measures": ["Sales Amount"], "Filters": [],
    })
    assert resp.status_code == 200
    data = resp.json()
    assert data["dax"] == "EVALUATE SUMMARIZECOLUMNS('Date[Month]', \"Sales Amount\", [Sales Amount])"
    assert len(data["data"]) == 3
    assert data["execution_error"] is None
    assert data["latency_ms"] >= 0


def test_data_with_filter():
    resp = client.post(f"{_URL}/data", json={
        "Rows": ["Region"],
        "Columns": ["Product[Category]"],
        "Measures": ["Units Sold"],
        "Filters": [{"Field": "Customer[Segment]", "Members": ["Enterprise", "SMB"]}],
    })
    assert resp.status_code == 200
    dax = resp.json()["dax"]
    assert dax.startswith("EVALUATE CALCULATETABLE(")
    assert "'Customer[Segment]' IN {'Enterprise', 'SMB'}" in dax


def test_data_snake_case_payload():
    resp = client.post(f"{_URL}/data", json={"rows": ["Region"], "measures": ["Profit"]})
    assert resp.status_code == 200
    assert resp.json()["dax"] == "EVALUATE SUMMARIZECOLUMNS('Region', \"Profit\", [Profit])"


def test_data_null_lists_accepted():
    resp = client.post(f"{_URL}/data", json={
        "Rows": None, "Columns": None, "Measures": ["Profit"], "Filters": None,
    })
    assert resp.status_code == 200
    assert resp.json()["dax"] == 'EVALUATE SUMMARIZECOLUMNS("Profit", [Profit])'


def test_data_execute_false_returns_no_rows():
    resp = client.post(f"{_URL}/data", json={"Rows": ["Region"], "execute": False})
    assert resp.status_code == 200
    assert resp.json()["data"] == []



def test_data_empty_slice_is_400():
    resp = client.post(f"{_URL}/data", json={"Rows": [], "Columns": [], "Measures": [], "Filters": []})
    assert resp.status_code == 400
    assert "row field or measure" in resp.json()["detail"]


def test_data_empty_body_is_400():
    resp = client.post(f"{_URL}/data", json={})
    assert resp.status_code == 400


def test_data_no_body_is_400():
    resp = client.post(f"{_URL}/data")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Slice is missing"


def test_data_null_body_is_400_and_audited():
    resp = client.post(f"{_URL}/data", content="null", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    latest = client.get(f"{_URL}/history", params={"limit": 1}).json()["history"][0]
    assert latest["compile_ok"] is False
    assert latest["error"] == "Slice is missing"
    assert latest["rows"] == []


def test_data_malformed_filter_is_400():
    resp = client.post(f"{_URL}/data", json={
        "Rows": ["Region"], "Filters": [{"Field": "", "Members": ["SMB"]}],
    })
    assert resp.status_code == 400
    assert "no field" in resp.json()["detail"]


def test_data_wrong_types_is_422():
    resp = client.post(f"{_URL}/data", json={"Rows": "Region"})
    assert resp.status_code == 422



def test_save_segment():
    resp = client.post(f"{_URL}/segment", json={"name": "West SMB", "dax": "EVALUATE X"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "Segment saved."
    listed = client.get(f"{_URL}/segments").json()
    assert [s["name"] for s in listed] == ["West SMB"]
    assert listed[0]["dax"] == "EVALUATE X"


def test_save_segment_pascal_case():
    resp = client.post(f"{_URL}/segment", json={"Name": "Seg", "Dax": "EVALUATE Y"})
    assert resp.status_code == 200


@pytest.mark.parametrize("payload", [
    {"name": "", "dax": "EVALUATE X"},
    {"name": "Seg", "dax": "   "},
    {},
])
def test_save_segment_blank_is_400(payload):
    resp = client.post(f"{_URL}/segment", json=payload)
    assert resp.status_code == 400
    assert client.get(f"{_URL}/segments").json() == []



def test_history_lists_recent_compiles():
    client.post(f"{_URL}/data", json={"Rows": ["History[Probe]"], "execute": False})
    resp = client.get(f"{_URL}/history", params={"limit": 5})
    assert resp.status_code == 200
    history = resp.json()["history"]
    assert 1 <= len(history) <= 5
    assert history[0]["rows"] == ["History[Probe]"]


def test_history_limit_validated():
    assert client.get(f"{_URL}/history", params={"limit": 0}).status_code == 422



def test_stateless_requests():
    r1 = client.post(f"{_URL}/data", json={"Rows": ["Region"], "execute": False})
    r2 = client.post(f"{_URL}/data", json={"Measures": ["Profit"], "execute": False})
    assert "'Region'" in r1.json()["dax"]
    assert "'Region'" not in r2.json()["dax"]
