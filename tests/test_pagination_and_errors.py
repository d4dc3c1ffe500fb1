import pytest

from app import create_app
from herbtrace.errors import ValidationError
from herbtrace.services.common import page_window


def test_page_window_defaults_and_clamp():
    assert page_window(None, None, 50, 200) == (1, 50, 0)
    assert page_window(3, 10, 50, 200) == (3, 10, 20)
    assert page_window(1, 1000, 50, 200) == (1, 200, 0)


@pytest.mark.parametrize("page, page_size", [(0, 10), (-1, 10), (1, 0), (2, -1)])
def test_page_window_rejects_non_positive_values(page, page_size):
    with pytest.raises(ValidationError):
        page_window(page, page_size, 50, 200)


@pytest.mark.parametrize(
    "url",
    [
        "/labtests?page_size=-2",
        "/labtests?page=0",
        "/labtests?page_size=abc",
        "/batches/chain?page=3&page_size=-1",
        "/collections/chain?page_size=0",
        "/processing/chain?page=-1",
        "/labtests/chain?page_size=-5",
        "/collections?page_size=-1",
    ],
)
def test_listings_reject_bad_paging(client, url):
    res = client.get(url)
    assert res.status_code == 400
    assert res.get_json()["error"] == "VALIDATION_ERROR"


def test_lab_listing_paging(client, collection_body):
    batch_id = client.post("/collection", json=collection_body).get_json()["batch"]["id"]
    for moisture in (8, 9, 10):
        client.post("/labtest", json={"batch_id": batch_id, "moisture_pct": moisture, "pesticide_pass": True})

    page = client.get(f"/labtests?batch_id={batch_id}&page=2&page_size=2").get_json()
    assert page["page"] == 2
    assert page["page_size"] == 2
    assert page["total"] == 3
    assert len(page["items"]) == 1


def test_unexpected_errors_render_json(db):
    app = create_app({"TESTING": True}, db=db)

    def explode():
        raise RuntimeError("driver went sideways")

    app.add_url_rule("/explode", "explode", explode)
    res = app.test_client().get("/explode")

    assert res.status_code == 500
    assert res.get_json() == {"ok": False, "error": "SERVER_ERROR", "message": "internal server error"}


def test_http_errors_keep_their_status(client):
    res = client.delete("/healthz")
    assert res.status_code == 405
