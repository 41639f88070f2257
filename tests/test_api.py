import io
import zipfile

from codeplugs.progress import ImportStatus


def _channel(name, rx, **extra):
    payload = {"name": name, "rx_frequency": rx, "tx_frequency": rx}
    payload.update(extra)
    return payload


def test_channel_crud(client):
    res = client.post("/api/channels", json=_channel("Simplex", 146.52))
    assert res.status_code == 200
    channel = res.json()
    assert channel["sort_order"] == 1

    res = client.put(f"/api/channels/{channel['id']}", json=_channel("Calling", 146.52, power="Low"))
    assert res.json()["name"] == "Calling"
    assert res.json()["power"] == "Low"

    assert [c["name"] for c in client.get("/api/channels").json()] == ["Calling"]
    assert client.delete(f"/api/channels/{channel['id']}").status_code == 200
    assert client.get("/api/channels").json() == []
    assert client.delete(f"/api/channels/{channel['id']}").status_code == 404


def test_invalid_dmr_channel_rejected(client):
    res = client.post(
        "/api/channels",
        json=_channel("DMR", 442.0, mode="DMR", channel_type="Digital (DMR)", protocol="DMR", color_code=0),
    )
    assert res.status_code == 400
    assert "color code" in res.json()["detail"]


def test_channel_talkgroup_links_contact(client):
    client.post("/api/contacts", json={"name": "Worldwide", "dmr_id": 91})
    res = client.post(
        "/api/channels",
        json=_channel("TG91", 442.0, mode="DMR", channel_type="Digital (DMR)", protocol="DMR",
                      color_code=1, tx_contact="worldwide"),
    )
    contacts = client.get("/api/contacts").json()
    assert res.json()["contact_id"] == contacts[0]["id"]


def test_zone_membership_and_reorder(client):
    ids = [client.post("/api/channels", json=_channel(n, 146.0 + i)).json()["id"] for i, n in enumerate("ABC")]

    zone = client.post("/api/zones", json={"name": "Home", "member_ids": [ids[2], ids[0]]}).json()
    assert zone["members"] == ["C", "A"]

    res = client.put(f"/api/zones/{zone['id']}/channels", json={"member_ids": [ids[1]], "append": True})
    assert res.json()["member_ids"] == [ids[2], ids[0], ids[1]]

    assert client.post("/api/channels/reorder", json={"ids": ids[:2]}).status_code == 400

    res = client.post("/api/channels/reorder", json={"ids": [ids[2], ids[1], ids[0]]})
    assert res.status_code == 200
    assert [c["name"] for c in client.get("/api/channels").json()] == ["C", "B", "A"]
    assert client.get(f"/api/zones/{zone['id']}/channels").json()["member_ids"] == [1, 3, 2]
    assert client.get("/api/zones/999/channels").status_code == 404


def test_roaming_routes(client):
    rc = client.post(
        "/api/roaming/channels", json={"name": "R1", "rx_frequency": 439.5, "tx_frequency": 430.5}
    ).json()
    zone = client.post("/api/roaming/zones", json={"name": "Roam", "member_ids": [rc["id"]]}).json()
    assert zone["members"] == ["R1"]
    assert [z["name"] for z in client.get("/api/roaming/zones").json()] == ["Roam"]


def test_import_runs_on_worker_and_exports(client):
    csv_text = "Name,Frequency\nSimplex,146.52\nCalling,446.0\n"
    res = client.post(
        "/api/import",
        files={"file": ("channels.csv", csv_text, "text/csv")},
        data={"format": "generic"},
    )
    job_id = res.json()["job_id"]
    summary = client.app.state.worker.result(job_id, timeout=10)
    assert summary.imported == 2

    progress = client.get("/api/progress", params={"job_id": job_id}).json()
    assert progress["status"] == ImportStatus.COMPLETED.value

    res = client.get("/api/export", params={"format": "dm32uv"})
    assert res.headers["content-type"] == "application/zip"
    with zipfile.ZipFile(io.BytesIO(res.content)) as archive:
        assert "channels.csv" in archive.namelist()

    res = client.get("/api/export", params={"format": "chirp"})
    assert res.text.startswith("Location,Name,Frequency")
    assert client.get("/api/export", params={"format": "ft991"}).status_code == 400


def test_contact_list_upload(client):
    res = client.post(
        "/api/contact-lists",
        files={"file": ("ids.txt", "3100001\n3100002\n", "text/plain")},
        data={"name": "local"},
    )
    assert res.json() == {"name": "local", "count": 2}
    assert [(c["name"], c["count"]) for c in client.get("/api/contact-lists").json()] == [("local", 2)]


def test_progress_websocket_sends_current_state(client):
    with client.websocket_connect("/api/ws") as ws:
        assert ws.receive_json()["status"] == ImportStatus.IDLE.value
