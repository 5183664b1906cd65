from __future__ import annotations

from conftest import auth_header, make_admin, register


def _owner(client):
    data = register(client, "jane@example.com")
    return auth_header(data["token"])


def test_public_profile_hides_inactive_links(client):
    headers = _owner(client)
    update = client.put(
        "/api/profiles/me",
        json={
            "bio": "Designer",
            "links": [
                {"title": "Site", "url": "example.com", "isActive": True, "order": 1},
                {"title": "Old", "url": "https://old.example.com", "isActive": False, "order": 0},
            ],
            "socialLinks": [
                {"platform": "github", "url": "https://github.com/jane", "isActive": True},
                {"platform": "x", "url": "https://x.com/jane", "isActive": False},
            ],
            "theme": {"buttonColor": "#ff0000"},
        },
        headers=headers,
    )
    assert update.status_code == 200, update.text
    assert len(update.json()["data"]["links"]) == 2

    public = client.get("/api/profiles/public/JANE.DOE").json()["data"]
    assert [link["title"] for link in public["links"]] == ["Site"]
    assert public["links"][0]["url"] == "https://example.com"
    assert [s["platform"] for s in public["socialLinks"]] == ["github"]
    assert public["theme"]["buttonColor"] == "#ff0000"
    assert public["theme"]["backgroundColor"] == "#0a0a0a"
    assert public["isAdmin"] is False


def test_public_profile_unknown_and_private(client):
    assert client.get("/api/profiles/public/nobody.here").status_code == 404
    admin = make_admin(client)
    register(client, "jane@example.com")
    profiles = client.get("/api/admin/profiles", headers=auth_header(admin["token"])).json()["data"]
    jane = next(p for p in profiles if p["slug"] == "jane.doe")
    toggled = client.put(f"/api/admin/profiles/{jane['id']}/toggle-public", headers=auth_header(admin["token"]))
    assert toggled.json()["data"]["isPublic"] is False
    assert client.get("/api/profiles/public/jane.doe").status_code == 403


def test_links_add_update_delete(client):
    headers = _owner(client)
    first = client.post("/api/profiles/me/links", json={"title": "A", "url": "https://a.test"}, headers=headers)
    second = client.post("/api/profiles/me/links", json={"title": "B", "url": "https://b.test"}, headers=headers)
    assert first.status_code == second.status_code == 201
    a, b = first.json()["data"], second.json()["data"]
    assert a["id"] and b["id"] and a["id"] != b["id"]
    assert (a["order"], b["order"]) == (0, 1)

    patched = client.put(f"/api/profiles/me/links/{a['id']}", json={"title": "A2"}, headers=headers)
    assert patched.json()["data"] == {**a, "title": "A2"}
    assert client.put("/api/profiles/me/links/missing", json={"title": "x"}, headers=headers).status_code == 404

    assert client.delete(f"/api/profiles/me/links/{b['id']}", headers=headers).status_code == 200
    links = client.get("/api/profiles/me", headers=headers).json()["data"]["links"]
    assert [link["title"] for link in links] == ["A2"]


def test_reorder_drops_links_missing_from_the_list(client):
    headers = _owner(client)
    ids = [
        client.post("/api/profiles/me/links", json={"title": t, "url": f"https://{t}.test"}, headers=headers).json()[
            "data"
        ]["id"]
        for t in ("a", "b", "c")
    ]
    response = client.put(
        "/api/profiles/me/links/reorder",
        json={"linkIds": [ids[2], "unknown", ids[0]]},
        headers=headers,
    )
    assert response.status_code == 200
    links = response.json()["data"]
    assert [(link["id"], link["order"]) for link in links] == [(ids[2], 0), (ids[0], 2)]

    response = client.put(
        "/api/profiles/me/links/reorder",
        json={"linkIds": ["ghost", ids[0], ids[2]]},
        headers=headers,
    )
    links = response.json()["data"]
    assert [(link["id"], link["order"]) for link in links] == [(ids[0], 1), (ids[2], 2)]


def test_slug_update_and_availability(client):
    headers = _owner(client)
    register(client, "bob@example.com", first="Bob", last="Smith")

    taken = client.put("/api/profiles/me/slug", json={"slug": "bob.smith"}, headers=headers)
    assert taken.status_code == 400
    invalid = client.put("/api/profiles/me/slug", json={"slug": "no"}, headers=headers)
    assert invalid.status_code == 400

    assert client.get("/api/profiles/check-slug/bob.smith").json()["data"] == {"available": False, "slug": "bob.smith"}
    own = client.get("/api/profiles/check-slug/jane.doe", headers=headers).json()["data"]
    assert own["available"] is True

    ok = client.put("/api/profiles/me/slug", json={"slug": "Jane.Design"}, headers=headers)
    assert ok.json()["data"] == {"slug": "jane.design"}
    assert client.get("/api/profiles/public/jane.design").status_code == 200


def test_vcard_and_qr(client):
    headers = _owner(client)
    client.put("/api/profiles/me", json={"phone": "+33600000000", "email": "jane@work.test"}, headers=headers)

    vcard = client.get("/api/profiles/public/jane.doe/vcard.vcf")
    assert vcard.status_code == 200
    assert vcard.headers["content-type"].startswith("text/vcard")
    assert "FN:Jane Doe" in vcard.text
    assert "TEL;TYPE=CELL:+33600000000" in vcard.text
    assert "URL:http://localhost:3000/jane.doe" in vcard.text

    qr = client.get("/api/profiles/public/jane.doe/qr.png")
    assert qr.status_code == 200
    assert qr.headers["content-type"] == "image/png"
    assert qr.content.startswith(b"\x89PNG")


def test_templates_apply_theme(client):
    admin = make_admin(client)
    admin_headers = auth_header(admin["token"])
    created = client.post(
        "/api/templates",
        json={"name": "Ocean", "theme": {"backgroundColor": "#0d1b2a", "buttonStyle": "pill"}},
        headers=admin_headers,
    )
    assert created.status_code == 201, created.text
    template_id = created.json()["data"]["id"]

    headers = _owner(client)
    applied = client.post(f"/api/templates/{template_id}/apply", headers=headers)
    assert applied.status_code == 200
    profile = applied.json()["data"]
    assert profile["templateId"] == template_id
    assert profile["theme"]["backgroundColor"] == "#0d1b2a"
    assert profile["theme"]["buttonStyle"] == "pill"

    assert client.delete(f"/api/templates/{template_id}", headers=admin_headers).status_code == 200
    assert client.get("/api/templates").json()["data"] == []
    assert client.post(f"/api/templates/{template_id}/apply", headers=headers).status_code == 404
    assert len(client.get("/api/templates/admin/all", headers=admin_headers).json()["data"]) == 1
