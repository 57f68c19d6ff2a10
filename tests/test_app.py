import base64
import io
import json
import shutil

import pytest
from PIL import Image

import app as app_module
import orchestrator
import progress


def _png_bytes(width=320, height=200):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), (0, 90, 200)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def client(tmp_path):
    original = orchestrator.DATA_DIR
    orchestrator.configure(tmp_path / "data")
    app_module.sync_config()
    app_module.app.config["TESTING"] = True
    with app_module.app.test_client() as test_client:
        yield test_client
    orchestrator.configure(original)
    app_module.sync_config()


@pytest.fixture
def uploaded_chart(client):
    response = client.post(
        "/api/presentation/upload-image",
        data={"file": (io.BytesIO(_png_bytes()), "chart.png")},
        content_type="multipart/form-data",
    )
    assert response.status_code == 200
    return response.get_json()


@pytest.fixture
def installed_template(client, template_path):
    shutil.copy(template_path, orchestrator.TEMPLATES_FOLDER / orchestrator.DEFAULT_TEMPLATE_NAME)
    return orchestrator.DEFAULT_TEMPLATE_NAME


DOCUMENT = {"slides": [
    {"title": "Q4 Results", "description": "Revenue grew.", "suggested_image": 'Use Image 1: "chart.png"'},
    {"title": "Next Steps", "description": "Hire. Ship. Repeat.", "layout": "ProductShowcase"},
]}


# ========== Generation routes ==========

class TestCreateFromJson:
    def test_creates_and_downloads(self, client, uploaded_chart):
        response = client.post("/api/presentation/create-from-json", json={
            "json_content": json.dumps(DOCUMENT),
            "presentation_name": "Quarterly",
            "request_id": "req-json",
        })
        assert response.status_code == 200
        body = response.get_json()
        assert body["success"] is True
        assert body["slide_count"] == 2
        assert body["request_id"] == "req-json"
        assert body["file_name"].startswith("Quarterly_")
        assert "warnings" not in body

        download = client.get(body["download_url"])
        assert download.status_code == 200
        assert download.data[:2] == b"PK"

    def test_accepts_an_already_decoded_document(self, client):
        response = client.post("/api/presentation/create-from-json", json={"json_content": DOCUMENT})
        assert response.status_code == 200

    def test_missing_content(self, client):
        response = client.post("/api/presentation/create-from-json", json={})
        assert response.status_code == 400
        assert "json_content" in response.get_json()["error"]

    def test_no_slides(self, client):
        response = client.post("/api/presentation/create-from-json", json={"json_content": '{"slides": []}'})
        assert response.status_code == 400
        assert response.get_json()["stage"] == "content"

    def test_invalid_json(self, client):
        response = client.post("/api/presentation/create-from-json", json={"json_content": "{not json"})
        assert response.status_code == 400


class TestCreateFromText:
    def test_outline(self, client):
        text = "### Slide 1: Intro\n**Title:** Hello\n**Description:** World.\n"
        response = client.post("/api/presentation/create-from-text", json={"text_content": text})
        assert response.status_code == 200
        assert response.get_json()["slide_count"] == 1

    def test_missing_text(self, client):
        response = client.post("/api/presentation/create-from-text", json={"text_content": ""})
        assert response.status_code == 400


class TestCreateFromTemplate:
    def test_default_template(self, client, installed_template, uploaded_chart):
        response = client.post("/api/presentation/create-from-template", json={"json_content": json.dumps(DOCUMENT)})
        assert response.status_code == 200
        assert response.get_json()["slide_count"] == 2

    def test_missing_template_is_a_bad_request(self, client):
        response = client.post("/api/presentation/create-from-template", json={
            "json_content": json.dumps(DOCUMENT), "template_name": "absent"})
        assert response.status_code == 400
        body = response.get_json()
        assert body["available_templates"] == []
        assert "absent.pptx" in body["error"]

    def test_embedded_images(self, client, installed_template):
        document = {
            "slides": [{"title": "Embedded", "suggested_image": "hero"}],
            "images": [{"id": "hero", "data": "data:image/png;base64," + base64.b64encode(_png_bytes()).decode()}],
        }
        response = client.post("/api/presentation/create-from-template-with-embedded-images",
                               json={"json_content": json.dumps(document), "template_name": installed_template})
        assert response.status_code == 200
        assert response.get_json()["slide_count"] == 1
        assert list(orchestrator.EMBEDDED_IMAGES_FOLDER.iterdir()) == []

    def test_embedded_images_missing_template_is_not_found(self, client):
        response = client.post("/api/presentation/create-from-template-with-embedded-images",
                               json={"json_content": json.dumps(DOCUMENT)})
        assert response.status_code == 404
        assert list(orchestrator.EMBEDDED_IMAGES_FOLDER.iterdir()) == []

    def test_embedded_images_scratch_dir_removed_after_failure(self, client, installed_template):
        response = client.post("/api/presentation/create-from-template-with-embedded-images",
                               json={"json_content": '{"slides": []}', "template_name": installed_template})
        assert response.status_code == 400
        assert list(orchestrator.EMBEDDED_IMAGES_FOLDER.iterdir()) == []


# ========== Files, images and progress ==========

class TestPresentationFiles:
    def test_list_and_delete(self, client):
        created = client.post("/api/presentation/create-from-json", json={"json_content": DOCUMENT}).get_json()

        listing = client.get("/api/presentation/list").get_json()
        assert [item["file_name"] for item in listing] == [created["file_name"]]

        assert client.delete(f"/api/presentation/delete/{created['file_name']}").status_code == 200
        assert client.get("/api/presentation/list").get_json() == []
        assert client.delete(f"/api/presentation/delete/{created['file_name']}").status_code == 404

    def test_templates_listing(self, client, installed_template):
        assert client.get("/api/presentation/templates").get_json() == [installed_template]


class TestImages:
    def test_upload_then_list(self, client, uploaded_chart):
        assert uploaded_chart["file_name"] == "chart.png"
        images = client.get("/api/presentation/images").get_json()
        assert [(i["file_name"], i["dimensions"]) for i in images] == [("chart.png", "320x200")]
        assert client.get("/api/presentation/image/chart.png").status_code == 200

    def test_delete_image(self, client, uploaded_chart):
        response = client.delete("/api/presentation/image/chart.png")
        assert response.status_code == 200
        assert response.get_json() == {"success": True, "file_name": "chart.png"}
        assert client.get("/api/presentation/images").get_json() == []
        assert client.delete("/api/presentation/image/chart.png").status_code == 404

    def test_second_upload_is_skipped(self, client, uploaded_chart):
        response = client.post(
            "/api/presentation/upload-image",
            data={"file": (io.BytesIO(_png_bytes(10, 10)), "chart.png")},
            content_type="multipart/form-data",
        )
        assert "already exists" in response.get_json()["message"]

    def test_rejects_other_file_types(self, client):
        response = client.post(
            "/api/presentation/upload-image",
            data={"file": (io.BytesIO(b"hello"), "notes.txt")},
            content_type="multipart/form-data",
        )
        assert response.status_code == 400

    def test_missing_file_part(self, client):
        response = client.post("/api/presentation/upload-image", data={}, content_type="multipart/form-data")
        assert response.status_code == 400

    def test_batch_upload_reports_each_file(self, client):
        response = client.post(
            "/api/presentation/upload-images",
            data={"files": [(io.BytesIO(_png_bytes()), "a.png"), (io.BytesIO(b"x"), "b.txt")]},
            content_type="multipart/form-data",
        )
        results = response.get_json()
        assert [r["success"] for r in results] == [True, False]


class TestProgress:
    def test_messages_for_a_request(self, client):
        client.post("/api/presentation/create-from-json",
                    json={"json_content": DOCUMENT, "request_id": "req-progress"})
        body = client.get("/progress?request_id=req-progress").get_json()
        assert body["messages"][0] == "Started generating presentation"
        assert body["messages"][-1] == "Finished generating presentation"
        assert body["next_index"] == len(body["messages"])

        later = client.get(f"/progress?request_id=req-progress&since={body['next_index'] - 1}").get_json()
        assert later["messages"] == ["Finished generating presentation"]
        progress.clear("req-progress")

    def test_unknown_request(self, client):
        assert client.get("/progress?request_id=nobody").get_json()["messages"] == []

    def test_entries_carry_stage_and_time(self, client):
        client.post("/api/presentation/create-from-json",
                    json={"json_content": DOCUMENT, "request_id": "req-entries"})
        body = client.get("/progress?request_id=req-entries").get_json()
        entries = body["entries"]
        assert [e["message"] for e in entries] == body["messages"]
        assert entries[0]["message"] == "Started generating presentation"
        assert all(set(e) == {"time", "stage", "message"} for e in entries)
        assert any(e["stage"] == "save" for e in entries)

        later = client.get("/progress?request_id=req-entries&since=1").get_json()
        assert [e["message"] for e in later["entries"]] == later["messages"] == body["messages"][1:]
        progress.clear("req-entries")

    def test_non_numeric_since_reads_from_the_start(self, client):
        progress.append("req-since", "first")
        response = client.get("/progress?request_id=req-since&since=abc")
        assert response.status_code == 200
        body = response.get_json()
        assert body["since"] == 0
        assert body["messages"] == ["first"]
        progress.clear("req-since")

    def test_negative_since_is_clamped(self, client):
        progress.append("req-negative", "first")
        body = client.get("/progress?request_id=req-negative&since=-5").get_json()
        assert body["since"] == 0
        assert body["next_index"] == 1
        progress.clear("req-negative")
