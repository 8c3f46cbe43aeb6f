import pytest
from fastapi.testclient import TestClient

from backend.main import app


@pytest.fixture()
def client():
    return TestClient(app)


@pytest.fixture()
def session_id(client):
    sid = client.post("/sessions").json()["session_id"]
    for x, t in [(20.0, 1.0), (0.0, 0.0), (10.0, 0.5)]:
        r = client.post(f"/sessions/{sid}/tracks/Object A/points", json={"x": x, "y": 0.0, "time": t})
        assert r.status_code == 200
    return sid


def test_scale_then_analysis(client, session_id):
    r = client.post(f"/sessions/{session_id}/scale", json={"p1": [0, 0], "p2": [10, 0], "distance_m": "1"})
    assert r.status_code == 200
    assert r.json()["pixels_per_meter"] == pytest.approx(10.0)

    body = client.get(f"/sessions/{session_id}/tracks/Object A/analysis", params={"fit_model": "linear"}).json()
    assert [p["x"] for p in body["positions"]] == [0.0, 1.0, 2.0]
    assert [v["vx"] for v in body["velocities"]] == [2.0, 2.0, 2.0]
    assert body["fit"]["coefficients"]["m"] == pytest.approx(2.0)
    assert body["x_scale"]["min"] == 0.0


def test_invalid_scale_keeps_previous(client, session_id):
    client.post(f"/sessions/{session_id}/scale", json={"p1": [0, 0], "p2": [10, 0], "distance_m": 2})
    r = client.post(f"/sessions/{session_id}/scale", json={"p1": [0, 0], "p2": [10, 0], "distance_m": "abc"})
    assert r.status_code == 400
    cal = client.get(f"/sessions/{session_id}").json()["calibration"]
    assert cal["pixels_per_meter"] == pytest.approx(5.0)

    r = client.delete(f"/sessions/{session_id}/scale")
    assert r.json()["pixels_per_meter"] is None


def test_origin_and_axis(client, session_id):
    r = client.put(f"/sessions/{session_id}/origin", json={"x": 0.0, "y": 0.0})
    assert r.json()["origin"] == [0.0, 0.0]
    r = client.put(f"/sessions/{session_id}/axis", json={"handle_x": 0.0, "handle_y": 10.0})
    assert r.json()["rotation_rad"] == pytest.approx(1.5707963, abs=1e-6)
    assert client.put(f"/sessions/{session_id}/axis", json={}).status_code == 400


def test_point_editing(client, session_id):
    point = client.post(f"/sessions/{session_id}/tracks/Object B/points", json={"x": 1, "y": 2, "time": 0.1}).json()
    moved = client.put(f"/sessions/{session_id}/tracks/Object B/points/{point['id']}", json={"x": 5, "y": 6})
    assert moved.json() == {"id": point["id"], "x": 5.0, "y": 6.0, "time": 0.1}
    assert client.delete(f"/sessions/{session_id}/tracks/Object B/points/{point['id']}").status_code == 200
    assert client.delete(f"/sessions/{session_id}/tracks/Object B/points/{point['id']}").status_code == 404
    tracks = client.get(f"/sessions/{session_id}").json()["tracks"]
    assert tracks == {"Object A": 3, "Object B": 0}


def test_exports(client, session_id):
    r = client.get(f"/sessions/{session_id}/tracks/Object A/export.csv")
    assert r.status_code == 200
    assert r.text.startswith("Time (s),X (px),Y (px),Uncertainty (px)")

    r = client.get(f"/sessions/{session_id}/tracks/Object A/graph.png", params={"fit_model": "linear"})
    assert r.status_code == 200
    assert r.headers["content-type"] == "image/png"
    assert r.content[:8] == b"\x89PNG\r\n\x1a\n"

    r = client.get(f"/sessions/{session_id}/tracks/Object A/graph.png", params={"legend": "middle"})
    assert r.status_code == 400


def test_unknown_resources(client, session_id):
    assert client.get("/sessions/missing").status_code == 404
    assert client.get(f"/sessions/{session_id}/tracks/Nope/analysis").status_code == 404
    r = client.get(f"/sessions/{session_id}/tracks/Object A/analysis", params={"plot_x": "speed"})
    assert r.status_code == 400


def test_stateless_analyze(client):
    body = {
        "points": [{"x": 0, "y": 0, "time": 0}, {"x": 10, "y": 0, "time": 0.5}, {"x": 20, "y": 0, "time": 1.0}],
        "calibration": {"pixels_per_meter": 10.0},
        "settings": {"fit_model": "quadratic"},
    }
    result = client.post("/analyze", json=body).json()
    assert [p["x"] for p in result["positions"]] == [0.0, 1.0, 2.0]
    assert result["fit"]["coefficients"]["A"] == pytest.approx(0.0, abs=1e-9)
    assert result["fit"]["coefficients"]["B"] == pytest.approx(2.0)
    assert result["title"] == "Quadratic Fit of X Position vs Time"


def test_clear_origin(client, session_id):
    client.put(f"/sessions/{session_id}/origin", json={"x": 5.0, "y": 5.0})
    client.put(f"/sessions/{session_id}/axis", json={"rotation_rad": 0.5})
    r = client.delete(f"/sessions/{session_id}/origin")
    assert r.status_code == 200
    assert r.json()["origin"] is None
    assert r.json()["rotation_rad"] == 0.0
    assert client.delete("/sessions/missing/origin").status_code == 404


def test_analyze_rejects_non_positive_scale(client):
    body = {
        "points": [{"x": 0, "y": 0, "time": 0}, {"x": 10, "y": 0, "time": 0.5}],
        "calibration": {"pixels_per_meter": -10.0},
    }
    assert client.post("/analyze", json=body).status_code == 422
    body["calibration"]["pixels_per_meter"] = 0
    assert client.post("/analyze", json=body).status_code == 422


@pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
def test_non_finite_numbers_are_rejected(client, session_id, literal):
    headers = {"content-type": "application/json"}
    r = client.post("/analyze", content=f'{{"points": [{{"x": {literal}, "y": 0, "time": 0}}]}}', headers=headers)
    assert r.status_code == 422
    assert r.json()["detail"]

    r = client.post(f"/sessions/{session_id}/tracks/Object A/points",
                    content=f'{{"x": 1, "y": 2, "time": {literal}}}', headers=headers)
    assert r.status_code == 422
    assert client.get(f"/sessions/{session_id}").json()["tracks"]["Object A"] == 3

    r = client.post("/analyze", content=f'{{"points": [], "calibration": {{"origin": [0, {literal}]}}}}',
                    headers=headers)
    assert r.status_code == 422


def test_uncertainty_out_of_range(client, session_id):
    r = client.get(f"/sessions/{session_id}/tracks/Object A/analysis", params={"uncertainty_px": "nan"})
    assert r.status_code == 400
    assert client.put(f"/sessions/{session_id}/uncertainty", params={"uncertainty_px": 60}).status_code == 400
