"""Tests for the editor and isolated card pages."""


def test_index_shows_tabs_and_form(client):
    client.post("/api/cards", json={"symbol": "ETHUSDT"})
    response = client.get("/")
    assert response.status_code == 200
    assert "ETHUSDT" in response.text
    assert 'name="entryPrice"' in response.text
    assert "DRAFT MODE" in response.text


def test_index_selected_card(client):
    card_id = client.post("/api/cards", json={"symbol": "SOLUSDT"}).json()["id"]
    response = client.get(f"/?card_id={card_id}")
    assert response.status_code == 200
    assert f'hx-post="/cards/{card_id}/form"' in response.text


def test_index_unknown_card(client):
    assert client.get("/?card_id=999").status_code == 404


def test_index_htmx_partial(client):
    response = client.get("/", headers={"HX-Request": "true"})
    assert response.status_code == 200
    assert "<html" not in response.text
    assert 'id="editor"' in response.text


def test_isolated_card_current(client):
    client.post(
        "/api/pnl",
        json={"entryPrice": 100, "markPrice": 110, "size": 2, "leverage": 10},
    )
    response = client.get("/isolated-card")
    assert response.status_code == 200
    assert 'id="pnl-card-container"' in response.text
    assert "Cross 10X" in response.text


def test_isolated_card_inline_params(client):
    response = client.get(
        "/isolated-card?entryPrice=100&markPrice=110&size=2&leverage=10&walletBalance=1000"
    )
    assert response.status_code == 200
    # PNL +20,00 and ROI +100,00% with the comma styled separately
    assert '<span>+20</span><span class="comma">,</span><span>00</span>' in response.text
    assert '<span>+100</span><span class="comma">,</span><span>00%</span>' in response.text


def test_isolated_card_invalid_inline_params(client):
    response = client.get("/isolated-card?marginMode=Hedge")
    assert response.status_code == 400
    assert "pnl-card-container" not in response.text


def test_isolated_card_unknown_card(client):
    assert client.get("/isolated-card?card_id=999").status_code == 404


def test_submit_form_updates_preview(client):
    card_id = client.get("/api/pnl").json()["id"]
    response = client.post(
        f"/cards/{card_id}/form",
        data={"symbol": "ETHUSDT", "entryPrice": "2000", "size": "1", "slPrice": ""},
    )
    assert response.status_code == 200
    assert "ETHUSDT" in response.text
    assert 'id="card-preview"' in response.text
    assert client.get("/api/pnl").json()["entryPrice"] == 2000


def test_submit_form_shows_validation_error(client):
    card_id = client.get("/api/pnl").json()["id"]
    response = client.post(f"/cards/{card_id}/form", data={"leverage": "300"})
    assert response.status_code == 200
    assert 'data-testid="form-error"' in response.text
    assert client.get("/api/pnl").json()["leverage"] == 20


def test_submit_form_rejected_values_not_shown(client):
    card_id = client.get("/api/pnl").json()["id"]
    response = client.post(
        f"/cards/{card_id}/form", data={"entryPrice": "1e308", "size": "10"}
    )
    assert response.status_code == 200
    assert "unrealizedPnl" in response.text
    assert client.get("/api/pnl").json()["entryPrice"] == 89493.2


def test_new_and_delete_card_redirect(client):
    response = client.post("/cards/new", follow_redirects=False)
    assert response.status_code == 303
    card_id = int(response.headers["location"].split("=")[-1])

    response = client.post(f"/cards/{card_id}/delete", follow_redirects=False)
    assert response.status_code == 303
    assert client.get(f"/api/cards/{card_id}").status_code == 404


def test_reset_card_redirect(client, price_feeds):
    card_id = client.post("/api/cards", json={"symbol": "XRPUSDT"}).json()["id"]
    response = client.post(f"/cards/{card_id}/reset", follow_redirects=False)
    assert response.status_code == 303
    assert client.get(f"/api/cards/{card_id}").json()["symbol"] == "BTCUSDT"
    assert price_feeds.stopped == [card_id]


def test_preview_polls_while_live(client):
    card_id = client.post("/api/cards").json()["id"]
    client.post(f"/api/cards/{card_id}/live", json={"enabled": True})
    response = client.get(f"/cards/{card_id}/preview")
    assert response.status_code == 200
    assert 'hx-trigger="every 2s"' in response.text
