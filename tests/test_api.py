from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from database import Database, get_database
from main import app


def test_shared_settings_scenario(client):
    res = client.post("/api/v1/shared", json={"title": "Acme"})
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["data"]["title"] == "Acme"

    res = client.get("/api/v1/shared")
    assert res.json()["data"]["title"] == "Acme"

    res = client.post("/api/v1/shared", json={"description": "We build things"})
    data = res.json()["data"]
    assert data["title"] == "Acme"
    assert data["description"] == "We build things"


def test_homepage_sliders_are_replaced(client):
    client.post("/api/v1/homepage", json={"sliders": [{"title": "S1"}]})
    client.post("/api/v1/homepage", json={"sliders": [{"title": "S2"}]})

    sliders = client.get("/api/v1/homepage").json()["data"]["sliders"]
    assert [s["title"] for s in sliders] == ["S2"]


def test_get_before_write_returns_empty_object(client):
    for path in ("/api/v1/shared", "/api/v1/homepage", "/api/v1/aboutus", "/api/v1/sitecontent"):
        assert client.get(path).json() == {"success": True, "data": {}}


def test_validation_error_envelope(client):
    res = client.post("/api/v1/aboutus", json={"team": {"members": [{"name": "x" * 500}]}})

    assert res.status_code == 422
    body = res.json()
    assert body["success"] is False
    assert body["error"] == "Validation failed"
    assert "team.members.0.name" in body["details"]


def test_homepage_reset(client):
    client.post("/api/v1/homepage", json={"about": {"title": "About"}})

    res = client.delete("/api/v1/homepage")
    assert res.json()["success"] is True
    assert client.get("/api/v1/homepage").json()["data"] == {}


def test_product_endpoints(client):
    res = client.post("/api/v1/products", json={"title": "Pump", "attributes": [{"key": "color", "value": "red"}]})
    assert res.status_code == 201
    pid = res.json()["data"]["id"]

    assert client.get(f"/api/v1/products/{pid}").json()["data"]["title"] == "Pump"

    res = client.put(f"/api/v1/products/{pid}", json={"title": "Pump XL"})
    assert res.json()["data"]["title"] == "Pump XL"
    assert res.json()["data"]["attributes"] == [{"key": "color", "value": "red"}]

    listed = client.get("/api/v1/products").json()["data"]
    assert [p["id"] for p in listed] == [pid]

    res = client.delete(f"/api/v1/products/{pid}")
    assert res.json() == {"success": True, "message": "Product deleted successfully"}

    res = client.get(f"/api/v1/products/{pid}")
    assert res.status_code == 404
    assert res.json() == {"success": False, "error": "Product not found"}


def test_product_requires_title(client):
    res = client.post("/api/v1/products", json={"title": ""})
    assert res.status_code == 422
    assert "title" in res.json()["details"]

    res = client.post("/api/v1/products", json={"description": "no title"})
    assert res.status_code == 422
    assert "title" in res.json()["details"]


def test_unknown_product_id_is_404(client):
    assert client.get(f"/api/v1/products/{ObjectId()}").status_code == 404
    assert client.put("/api/v1/products/not-an-id", json={"title": "x"}).status_code == 404
    assert client.delete(f"/api/v1/products/{ObjectId()}").status_code == 404


def test_public_home_page_is_cached_until_revalidated(client, db):
    client.post("/api/v1/shared", json={"title": "Acme"})
    assert client.get("/api/pages/home").json()["data"]["settings"]["title"] == "Acme"

    # a write that bypasses the services is not seen until a revalidation
    db.shared.update_one({}, {"$set": {"title": "Sneaky"}})
    assert client.get("/api/pages/home").json()["data"]["settings"]["title"] == "Acme"

    client.post("/api/v1/shared", json={"title": "Acme 2"})
    assert client.get("/api/pages/home").json()["data"]["settings"]["title"] == "Acme 2"


def test_public_product_pages_follow_mutations(client):
    pid = client.post("/api/v1/products", json={"title": "Pump"}).json()["data"]["id"]
    assert [p["title"] for p in client.get("/api/pages/products").json()["data"]] == ["Pump"]
    assert client.get(f"/api/pages/products/{pid}").json()["data"]["title"] == "Pump"

    client.put(f"/api/v1/products/{pid}", json={"title": "Pump XL"})
    assert client.get(f"/api/pages/products/{pid}").json()["data"]["title"] == "Pump XL"

    client.delete(f"/api/v1/products/{pid}")
    assert client.get("/api/pages/products").json()["data"] == []
    assert client.get(f"/api/pages/products/{pid}").status_code == 404


def test_product_page_id_case_shares_one_cache_entry(client):
    pid = client.post("/api/v1/products", json={"title": "Pump"}).json()["data"]["id"]
    assert client.get(f"/api/pages/products/{pid.upper()}").json()["data"]["title"] == "Pump"

    client.put(f"/api/v1/products/{pid}", json={"title": "Pump XL"})
    assert client.get(f"/api/pages/products/{pid.upper()}").json()["data"]["title"] == "Pump XL"

    client.delete(f"/api/v1/products/{pid.upper()}")
    assert client.get(f"/api/pages/products/{pid}").status_code == 404


def test_malformed_product_page_id_is_404(client):
    assert client.get("/api/pages/products/not-an-id").status_code == 404


def test_about_us_page(client):
    client.post("/api/v1/aboutus", json={"title": "Our story", "items": [{"title": "Mission", "hash": "mission"}]})

    data = client.get("/api/pages/about-us").json()["data"]
    assert data["aboutus"]["items"] == [{"title": "Mission", "hash": "mission"}]
    assert data["settings"] == {}


def test_site_content_get_data(client):
    assert client.get("/api/get-data").json() == {"success": True, "data": None}

    client.post("/api/v1/sitecontent", json={"content": {"hero": {"title": "Hi"}}})
    assert client.get("/api/get-data").json()["data"] == {"hero": {"title": "Hi"}}


def test_dashboard_summary(client):
    client.post("/api/v1/products", json={"title": "Pump"})
    client.post("/api/v1/aboutus", json={"title": "About"})

    data = client.get("/api/v1/dashboard").json()["data"]
    assert data["products"] == 1
    assert data["pages"]["aboutus"] is True
    assert data["pages"]["homepage"] is False


def test_store_unavailable_is_reported(client):
    def no_server(*args, **kwargs):
        raise ServerSelectionTimeoutError("no servers available")

    broken = Database("mongodb://nowhere:27017", "site_content_test", client_factory=no_server)
    app.dependency_overrides[get_database] = lambda: broken

    res = client.get("/api/v1/shared")
    assert res.status_code == 500
    assert res.json() == {"success": False, "error": "Failed to connect to the database"}

    res = client.post("/api/v1/products", json={"title": "Pump"})
    assert res.status_code == 500
    assert res.json()["success"] is False


def test_health_and_schema(client):
    client.post("/api/v1/shared", json={"title": "Acme"})

    health = client.get("/test").json()
    assert health["connection_status"] == "Connected"
    assert "shared_data" in health["collections"]

    schema = client.get("/schema").json()
    assert set(schema) == {"shared", "homepage", "aboutus", "sitecontent", "product"}
    assert "fileId" in str(schema["shared"])


def test_root(client):
    assert "running" in client.get("/").json()["message"]
