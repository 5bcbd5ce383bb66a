"""
Tests for /api/v1/interactions and /api/v1/dashboard.
"""

from datetime import date, datetime, timedelta, timezone

BASE = "/api/v1/interactions"
CONTACTS = "/api/v1/contacts"


def _contact(client, headers, name: str = "Ada", **body) -> dict:
    response = client.post(CONTACTS, json={"name": name, **body}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def _log(client, headers, title: str = "Coffee", when: str = "2024-05-01", **body) -> dict:
    response = client.post(BASE, json={"title": title, "date": when, **body}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_requires_authentication(client) -> None:
    assert client.get(BASE).status_code == 401
    assert client.post(BASE, json={"title": "x", "date": "2024-05-01"}).status_code == 401


def test_log_interaction_for_contact(client, auth_headers) -> None:
    """Ada/Coffee: the contact shows one interaction, then none after deletion."""
    ada = _contact(client, auth_headers, "Ada")
    coffee = _log(client, auth_headers, "Coffee", contact_id=ada["id"], notes="<p>Talked about <b>engines</b></p>")

    assert coffee["contact_name"] == "Ada"
    assert coffee["contact_exists"] is True
    assert coffee["date"].startswith("2024-05-01T00:00:00")
    assert coffee["notes_preview"] == "Talked about engines"
    assert client.get(f"{CONTACTS}/{ada['id']}", headers=auth_headers).json()["interactions"] == 1

    response = client.delete(f"{BASE}/{coffee['id']}", params={"confirm": "true"}, headers=auth_headers)
    assert response.status_code == 200
    assert client.get(f"{CONTACTS}/{ada['id']}", headers=auth_headers).json()["interactions"] == 0


def test_log_interaction_by_contact_name_creates_contact(client, auth_headers) -> None:
    created = _log(client, auth_headers, contact_name="Grace Hopper")

    assert created["contact_id"]
    assert created["contact_exists"] is True
    contacts = client.get(CONTACTS, headers=auth_headers).json()["contacts"]
    assert [(c["name"], c["interactions"]) for c in contacts] == [("Grace Hopper", 1)]


def test_log_interaction_validation(client, auth_headers) -> None:
    assert client.post(BASE, json={"title": "Coffee"}, headers=auth_headers).status_code == 422
    response = client.post(BASE, json={"title": "  ", "date": "2024-05-01"}, headers=auth_headers)
    assert response.status_code == 422
    assert response.json()["detail"] == "title is required"


def test_get_interaction_after_contact_deleted(client, auth_headers) -> None:
    ada = _contact(client, auth_headers, "Ada")
    coffee = _log(client, auth_headers, contact_id=ada["id"])
    client.delete(f"{CONTACTS}/{ada['id']}", params={"confirm": "true"}, headers=auth_headers)

    response = client.get(f"{BASE}/{coffee['id']}", headers=auth_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["contact_id"] == ada["id"]
    assert body["contact_name"] == "Ada"
    assert body["contact_exists"] is False


def test_get_missing_interaction_is_404(client, auth_headers, other_headers) -> None:
    assert client.get(f"{BASE}/nope", headers=auth_headers).status_code == 404
    coffee = _log(client, auth_headers)
    assert client.get(f"{BASE}/{coffee['id']}", headers=other_headers).status_code == 404


def test_list_newest_first_with_contact_filter(client, auth_headers) -> None:
    ada = _contact(client, auth_headers, "Ada")
    _log(client, auth_headers, "Old", "2024-01-01", contact_id=ada["id"])
    _log(client, auth_headers, "New", "2024-06-01T15:00:00Z", contact_id=ada["id"])
    _log(client, auth_headers, "Other", "2024-03-01")

    titles = [i["title"] for i in client.get(BASE, headers=auth_headers).json()["interactions"]]
    assert titles == ["New", "Other", "Old"]

    filtered = client.get(BASE, params={"contact_id": ada["id"]}, headers=auth_headers).json()
    assert [i["title"] for i in filtered["interactions"]] == ["New", "Old"]


def test_update_interaction_relinks_contact(client, auth_headers) -> None:
    ada = _contact(client, auth_headers, "Ada")
    grace = _contact(client, auth_headers, "Grace")
    coffee = _log(client, auth_headers, contact_id=ada["id"])

    response = client.put(
        f"{BASE}/{coffee['id']}",
        json={"contact_id": grace["id"]},
        headers=auth_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["contact_name"] == "Grace"
    assert body["title"] == "Coffee"


def test_update_missing_interaction_is_404(client, auth_headers) -> None:
    assert client.put(f"{BASE}/nope", json={"title": "x"}, headers=auth_headers).status_code == 404


def test_delete_interaction_requires_confirmation(client, auth_headers) -> None:
    coffee = _log(client, auth_headers)
    url = f"{BASE}/{coffee['id']}"
    assert client.delete(url, headers=auth_headers).status_code == 400
    assert client.delete(url, params={"confirm": "true"}, headers=auth_headers).status_code == 200
    assert client.delete(url, params={"confirm": "true"}, headers=auth_headers).status_code == 404


def test_notes_preview_truncates_long_notes(client, auth_headers) -> None:
    notes = "<p>" + "x" * 150 + "</p>"
    coffee = _log(client, auth_headers, notes=notes)
    assert coffee["notes_preview"] == "x" * 100 + "..."
    assert coffee["notes"] == notes


# -----------------------------------------------------------------------------
# Dashboard
# -----------------------------------------------------------------------------


def test_dashboard_pages_recent_interactions(client, auth_headers) -> None:
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for i in range(12):
        _log(client, auth_headers, f"Call {i}", (start + timedelta(days=i)).isoformat())

    first = client.get("/api/v1/dashboard", headers=auth_headers).json()
    assert len(first["recent_interactions"]) == 10
    assert first["recent_interactions"][0]["title"] == "Call 11"
    assert first["total_interactions"] == 12
    assert first["has_more"] is True

    second = client.get("/api/v1/dashboard", params={"page": 2}, headers=auth_headers).json()
    assert len(second["recent_interactions"]) == 12
    assert second["has_more"] is False


def test_dashboard_counts_and_birthdays(client, auth_headers) -> None:
    today = datetime.now(timezone.utc).date()
    soon = today + timedelta(days=3)
    # Avoid Feb 29, which only recurs every four years
    if (soon.month, soon.day) == (2, 29):
        soon += timedelta(days=1)
    _contact(client, auth_headers, "Soon", birthday=date(1990, soon.month, soon.day).isoformat())
    _contact(client, auth_headers, "No birthday")

    body = client.get("/api/v1/dashboard", headers=auth_headers).json()
    assert body["contacts_count"] == 2
    assert [(b["name"], b["next_birthday"]) for b in body["upcoming_birthdays"]] == [
        ("Soon", soon.isoformat())
    ]
    assert body["upcoming_birthdays"][0]["days_until"] == (soon - today).days


def test_dashboard_reads_contacts_once(client, auth_headers, fake_db) -> None:
    _contact(client, auth_headers, "Ada", birthday="1815-12-10")
    _log(client, auth_headers)
    fake_db.calls.clear()

    assert client.get("/api/v1/dashboard", headers=auth_headers).status_code == 200
    assert fake_db.calls.count(("contacts", "select")) == 1
