import io

from conftest import FakeResumeAI, make_pdf
from main import app
from redline.services.ai_service import AIServiceError, get_resume_ai

ANNOTATED = "Jane Doe\nExperience\nI [worked as a software engineer]{Served as a Software Engineer} at Acme.\nEducation\nBS"


def _analyze_text(client, text=ANNOTATED):
    response = client.post("/api/analyze-text", json={"text": text})
    assert response.status_code == 200
    return response.json()


def test_analyze_text_returns_segments(client):
    data = _analyze_text(client, "A [x]{y} B")
    assert [s["text"] for s in data["segments"]] == ["A ", "x", " B"]
    assert data["segments"][1]["kind"] == "highlight"
    assert data["suggestions"]["0"]["accepted"] is None
    assert data["summary"] == {"total": 1, "undecided": 1, "accepted": 0, "rejected": 0}


def test_decision_and_resolved_text(client):
    _analyze_text(client)
    response = client.post("/api/suggestions/0/decision", json={"accepted": True})
    assert response.status_code == 200
    assert response.json()["suggestions"]["0"]["decision"] == "accepted"

    resolved = client.get("/api/resolved-text").json()
    assert "I Served as a Software Engineer at Acme." in resolved["text"]
    assert resolved["pending"] == 0


def test_decision_unknown_suggestion(client):
    _analyze_text(client)
    response = client.post("/api/suggestions/42/decision", json={"accepted": True})
    assert response.status_code == 404


def test_accept_all_and_reject_all(client):
    _analyze_text(client, "[a]{b} [c]{d}")
    assert client.post("/api/suggestions/accept-all").json()["summary"]["accepted"] == 2
    assert client.post("/api/suggestions/reject-all").json()["summary"]["rejected"] == 2


def test_analyze_pdf_upload(client, fake_ai):
    pdf = make_pdf("Jane Doe", "I worked as a software engineer at Acme.")
    response = client.post("/api/analyze", files={"resume_file": ("resume.pdf", io.BytesIO(pdf), "application/pdf")})
    assert response.status_code == 200
    data = response.json()
    assert data["suggestions"]["0"]["suggestion"] == "Served as a Software Engineer"
    assert fake_ai.calls[0][0] == "critique"
    assert "Jane Doe" in fake_ai.calls[0][1]


def test_analyze_rejects_non_pdf(client):
    response = client.post("/api/analyze", files={"resume_file": ("resume.docx", io.BytesIO(b"data"), "application/octet-stream")})
    assert response.status_code == 400
    assert response.json()["detail"] == "Please upload a PDF file"


def test_analyze_pdf_without_text(client):
    response = client.post("/api/analyze", files={"resume_file": ("blank.pdf", io.BytesIO(make_pdf()), "application/pdf")})
    assert response.status_code == 400


def test_analyze_ai_failure(client, fake_ai):
    fake_ai.critique = AIServiceError("model unavailable")
    pdf = make_pdf("Jane Doe")
    response = client.post("/api/analyze", files={"resume_file": ("resume.pdf", io.BytesIO(pdf), "application/pdf")})
    assert response.status_code == 502
    assert "model unavailable" in response.json()["detail"]


def test_analyze_stale_response_discarded(client, session):
    class OvertakenAI(FakeResumeAI):
        async def critique_resume(self, resume_text):
            # a newer analysis starts while this one is in flight
            session.begin_request("analysis")
            return "[stale]{response}"

    app.dependency_overrides[get_resume_ai] = lambda: OvertakenAI()
    _analyze_text(client, "[fresh]{state}")
    pdf = make_pdf("Jane Doe")
    response = client.post("/api/analyze", files={"resume_file": ("resume.pdf", io.BytesIO(pdf), "application/pdf")})
    assert response.status_code == 409
    assert session.suggestions["0"].original == "fresh"


def test_reset(client, session):
    _analyze_text(client)
    assert client.post("/api/reset").json() == {"status": "ok"}
    assert session.segments == []
    assert client.get("/api/suggestions").json()["segments"] == []


# ---- builder ----

def test_transfer_structures_resolved_text(client, fake_ai):
    _analyze_text(client)
    client.post("/api/suggestions/0/decision", json={"accepted": True})
    response = client.post("/api/transfer")
    assert response.status_code == 200
    draft = response.json()
    assert draft["contact"]["name"] == "Jane Doe"
    assert [s["type"] for s in draft["sections"]] == ["experience", "education"]
    assert all(s["id"].startswith("section-") for s in draft["sections"])
    assert "Served as a Software Engineer" in fake_ai.calls[-1][1]


def test_transfer_extracted_text(client, fake_ai):
    _analyze_text(client)
    client.post("/api/suggestions/0/decision", json={"accepted": True})
    client.post("/api/transfer", json={"source": "extracted"})
    assert "I worked as a software engineer at Acme." in fake_ai.calls[-1][1]


def test_transfer_malformed_response_falls_back(client, fake_ai):
    fake_ai.structure = "Sorry, I cannot do that."
    _analyze_text(client)
    draft = client.post("/api/transfer").json()
    assert [s["title"] for s in draft["sections"]] == ["Experience", "Education"]


def test_transfer_without_analysis(client):
    assert client.post("/api/transfer").status_code == 400


def test_transfer_discarded_when_new_analysis_loaded(client, session):
    class ReplacedAI(FakeResumeAI):
        async def structure_resume(self, text):
            # another resume is analyzed while structuring is in flight
            session.load_analysis("Education\nNew resume")
            return await super().structure_resume(text)

    app.dependency_overrides[get_resume_ai] = lambda: ReplacedAI()
    _analyze_text(client, "Experience\nOld [a]{b}")
    response = client.post("/api/transfer")
    assert response.status_code == 409
    assert session.draft.sections == []
    assert session.resolved_text() == "Education\nNew resume"


def test_score_discarded_when_new_analysis_loaded(client, session):
    class ReplacedAI(FakeResumeAI):
        async def score_resume(self, text):
            session.load_analysis("Education\nNew resume")
            return await super().score_resume(text)

    app.dependency_overrides[get_resume_ai] = lambda: ReplacedAI()
    _analyze_text(client)
    assert client.post("/api/score").status_code == 409


def test_score(client, fake_ai):
    _analyze_text(client)
    score = client.post("/api/score").json()
    assert score["overall"] == 72
    fake_ai.score = "{broken"
    score = client.post("/api/score").json()
    assert score["overall"] == 0
    assert score["criteria"]["content"]["feedback"]


def test_score_service_failure(client, fake_ai):
    fake_ai.score = AIServiceError("timeout")
    _analyze_text(client)
    assert client.post("/api/score").status_code == 502


def test_draft_editing(client):
    client.post("/api/draft/new")
    draft = client.post("/api/draft/sections", json={"type": "experience"}).json()
    section_id = draft["sections"][0]["id"]
    assert draft["sections"][0]["title"] == "Experience"

    draft = client.patch(f"/api/draft/sections/{section_id}", json={"title": "Engineer", "subtitle": "Acme"}).json()
    assert draft["sections"][0]["title"] == "Engineer"

    draft = client.post("/api/draft/sections", json={"type": "skills", "title": "Tools"}).json()
    draft = client.post(f"/api/draft/sections/{section_id}/move", json={"index": 1}).json()
    assert [s["title"] for s in draft["sections"]] == ["Tools", "Engineer"]

    draft = client.patch("/api/draft/contact", json={"name": "Jane"}).json()
    assert draft["contact"]["name"] == "Jane"

    draft = client.delete(f"/api/draft/sections/{section_id}").json()
    assert [s["title"] for s in draft["sections"]] == ["Tools"]
    assert client.delete(f"/api/draft/sections/{section_id}").status_code == 404


def test_draft_rejects_unknown_section_type(client):
    assert client.post("/api/draft/sections", json={"type": "hobbies"}).status_code == 422


def test_put_draft_reassigns_ids(client):
    payload = {"contact": {"name": "Jane"}, "sections": [
        {"id": "x", "type": "skills", "title": "Skills"},
        {"id": "x", "type": "projects", "title": "Projects"},
    ]}
    draft = client.put("/api/draft", json=payload).json()
    ids = [s["id"] for s in draft["sections"]]
    assert "x" not in ids and len(set(ids)) == 2


def test_export_pdf_and_docx(client):
    client.patch("/api/draft/contact", json={"name": "Jane Doe"})
    client.post("/api/draft/sections", json={"type": "skills"})

    response = client.post("/api/export/pdf?filename=jane")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert "jane.pdf" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")

    response = client.post("/api/export/docx")
    assert response.status_code == 200
    assert "resume.docx" in response.headers["content-disposition"]


def test_export_non_latin_filename(client):
    response = client.post("/api/export/pdf", params={"filename": "résumé «final»"})
    assert response.status_code == 200
    disposition = response.headers["content-disposition"]
    assert "filename*=UTF-8''r%C3%A9sum%C3%A9%20%C2%ABfinal%C2%BB.pdf" in disposition
    assert 'filename="r_sum_ _final_.pdf"' in disposition


# ---- grid ----

def test_grid_gesture(client):
    panels = client.get("/api/grid").json()
    assert [p["id"] for p in panels] == ["analytics", "tasks", "calendar", "notes"]

    events = [
        {"type": "down", "x": 300, "y": 300, "on_handle": True},
        {"type": "move", "x": 350, "y": 320},
        {"type": "up"},
    ]
    item = client.post("/api/grid/analytics/gestures", json={"events": events}).json()
    assert item["size"] == {"width": 350, "height": 260}
    assert client.get("/api/grid").json()[0]["size"] == {"width": 350, "height": 260}


def test_grid_unknown_panel(client):
    assert client.post("/api/grid/nope/gestures", json={"events": []}).status_code == 404
