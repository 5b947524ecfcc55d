import io
import json
import sys
import os

import pytest
from fastapi.testclient import TestClient
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from main import app
from redline.services.ai_service import get_resume_ai
from redline.services.editor_session import EditorSession, get_editor_session
from redline.routers.grid_router import get_grid_board
from redline.widgets.grid import GridBoard


STRUCTURED_RESUME = {
    "contact": {"name": "Jane Doe", "email": "jane@example.com", "phone": "555-111-2222", "location": "Austin, TX"},
    "sections": [
        {"id": "model-1", "type": "experience", "title": "Software Engineer", "subtitle": "Acme",
         "content": "- Served as a Software Engineer", "start_date": "2020", "end_date": "Present"},
        {"id": "model-2", "type": "education", "title": "BS Computer Science", "subtitle": "State University"},
    ],
}

SCORE = {
    "overall": 72,
    "criteria": {
        "content": {"score": 80, "feedback": "Solid achievements."},
        "formatting": {"score": 70, "feedback": "Consistent dates."},
        "keywords": {"score": 60, "feedback": "Add more role keywords."},
        "impact": {"score": 75, "feedback": "Quantify more results."},
    },
}


class FakeResumeAI:
    """Canned model responses; set an attribute to an Exception to make that call fail."""

    def __init__(self, critique="", structure=None, score=None):
        self.critique = critique
        self.structure = json.dumps(STRUCTURED_RESUME) if structure is None else structure
        self.score = json.dumps(SCORE) if score is None else score
        self.calls = []

    async def _respond(self, name, value, text):
        self.calls.append((name, text))
        if isinstance(value, Exception):
            raise value
        return value

    async def critique_resume(self, resume_text):
        return await self._respond("critique", self.critique, resume_text)

    async def structure_resume(self, resume_text):
        return await self._respond("structure", self.structure, resume_text)

    async def score_resume(self, resume_text):
        return await self._respond("score", self.score, resume_text)


def make_pdf(*lines):
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    y = 800
    for line in lines:
        c.drawString(72, y, line)
        y -= 16
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture
def session():
    return EditorSession()


@pytest.fixture
def fake_ai():
    return FakeResumeAI(critique="I [worked as a software engineer]{Served as a Software Engineer} at Acme.")


@pytest.fixture
def board():
    return GridBoard()


@pytest.fixture
def client(session, fake_ai, board):
    app.dependency_overrides[get_editor_session] = lambda: session
    app.dependency_overrides[get_resume_ai] = lambda: fake_ai
    app.dependency_overrides[get_grid_board] = lambda: board
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

