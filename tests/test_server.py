import pytest

from shelters.core.config import Settings
from shelters.core.models import FetchResult, ShelterRecord
from shelters.core.service import ShelterService
from shelters.core.store import InMemoryShelterStore
from shelters.jobs import server


class StubIngestor:
    def __init__(self, result):
        self.result = result

    def fetch_all(self, cancel_event=None):
        return self.result


@pytest.fixture
def service(monkeypatch):
    store = InMemoryShelterStore()
    store.save_all(
        [
            ShelterRecord(name="서울역 광장", address="서울 중구", latitude=37.5547, longitude=126.9707, accommodation_capacity=300),
            ShelterRecord(name="시청 앞", address="서울 중구 세종대로", latitude=37.5663, longitude=126.9779),
            ShelterRecord(name="부산역", address="부산 동구", latitude=35.1151, longitude=129.0422),
        ]
    )
    svc = ShelterService(store, StubIngestor(FetchResult([], True)))
    monkeypatch.setattr(server, "_service", svc)
    monkeypatch.setattr(server, "get_settings", lambda: Settings())
    return svc


@pytest.fixture
def client(service):
    return server.app.test_client()


def test_health_endpoint(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok", "shelterCount": 3}


def test_nearest_shelters_with_form_params(client):
    response = client.post("/api/nearest-shelters", data={"latitude": "37.5665", "longitude": "126.9780", "limit": "2"})

    assert response.status_code == 200
    body = response.get_json()
    assert [s["shelterName"] for s in body] == ["시청 앞", "서울역 광장"]
    assert body[0]["distanceFromUser"] <= body[1]["distanceFromUser"]
    assert body[1]["accommodationCapacity"] == 300
    assert set(body[0]) >= {"id", "address", "latitude", "longitude", "managementAgency", "contactNumber"}


def test_nearest_shelters_defaults_limit_and_accepts_json(client):
    response = client.post("/api/nearest-shelters", json={"latitude": 37.5665, "longitude": 126.978})
    assert response.status_code == 200
    assert len(response.get_json()) == 2


@pytest.mark.parametrize(
    "payload",
    [
        {"longitude": "126.9"},
        {"latitude": "north", "longitude": "126.9"},
        {"latitude": "37.5", "longitude": "126.9", "limit": "ten"},
        {"latitude": "37.5", "longitude": "126.9", "limit": "0"},
        {"latitude": "nan", "longitude": "126.9"},
    ],
)
def test_nearest_shelters_validates_input(client, payload):
    response = client.post("/api/nearest-shelters", data=payload)
    assert response.status_code == 400
    assert "error" in response.get_json()


@pytest.mark.parametrize("body", [["latitude", "longitude"], "37.5", 42])
def test_nearest_shelters_rejects_non_object_json(client, body):
    response = client.post("/api/nearest-shelters", json=body)
    assert response.status_code == 400
    assert "error" in response.get_json()


def test_non_object_json_falls_back_to_query_params(client):
    response = client.post("/api/nearest-shelters?latitude=37.5665&longitude=126.978&limit=1", json=[1, 2])
    assert response.status_code == 200
    assert [s["shelterName"] for s in response.get_json()] == ["시청 앞"]


def test_shelters_in_radius(client):
    response = client.post("/api/shelters-in-radius", data={"latitude": "37.5665", "longitude": "126.9780", "radius": "2"})
    assert [s["shelterName"] for s in response.get_json()] == ["시청 앞", "서울역 광장"]

    response = client.post("/api/shelters-in-radius", data={"latitude": "37.5665", "longitude": "126.9780", "radius": "-1"})
    assert response.status_code == 400


def test_search_by_type(client):
    names = client.get("/api/search", query_string={"type": "name", "keyword": "역"}).get_json()
    addresses = client.get("/api/search", query_string={"type": "address", "keyword": "서울"}).get_json()
    unknown = client.get("/api/search", query_string={"type": "phone", "keyword": "02"})

    assert [s["shelterName"] for s in names] == ["서울역 광장", "부산역"]
    assert len(addresses) == 2
    assert unknown.status_code == 200
    assert unknown.get_json() == []


def test_shelter_detail_and_listing(client):
    assert client.get("/api/shelter/3").get_json()["shelterName"] == "부산역"
    assert client.get("/api/shelter/99").status_code == 404
    assert len(client.get("/api/shelters").get_json()) == 3


def test_initialize_reports_failure_as_text(client, service):
    response = client.post("/admin/initialize")

    assert response.status_code == 200
    assert response.mimetype == "text/html"
    assert "실패" in response.get_data(as_text=True)
    assert service.count() == 0


def test_initialize_reports_success(client, service):
    service.ingestor = StubIngestor(FetchResult([ShelterRecord(name="new", latitude=37.0, longitude=127.0)], True))

    response = client.post("/admin/initialize")

    assert "1건" in response.get_data(as_text=True)
    assert service.count() == 1
