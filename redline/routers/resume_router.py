import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import StreamingResponse

from redline.config.settings import get_settings
from redline.models.resume import (
    ContactUpdate,
    ResumeDraft,
    ResumeScore,
    SectionCreate,
    SectionMove,
    SectionUpdate,
    TransferRequest,
)
from redline.models.suggestions import AnalyzeTextRequest, DecisionRequest, SuggestionStateResponse
from redline.services import draft_service
from redline.services.ai_service import AIServiceError, ResumeAI, get_resume_ai
from redline.services.editor_session import (
    EditorSession,
    UnknownSectionError,
    UnknownSuggestionError,
    get_editor_session,
)
from redline.utils import generators, parsers

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["resume"]
)


def _ensure_current(session: EditorSession, kind: str, token: int) -> None:
    if not session.is_current(kind, token):
        logger.info("Discarding stale %s response (token %d)", kind, token)
        raise HTTPException(status_code=409, detail="A newer request superseded this one.")


@router.post("/analyze", response_model=SuggestionStateResponse)
async def analyze_resume(
    resume_file: UploadFile = File(...),
    session: EditorSession = Depends(get_editor_session),
    ai: ResumeAI = Depends(get_resume_ai),
):
    filename = resume_file.filename or ""
    if not (filename.lower().endswith(".pdf") or resume_file.content_type == "application/pdf"):
        raise HTTPException(status_code=400, detail="Please upload a PDF file")

    content = await resume_file.read()
    if len(content) > get_settings().max_upload_bytes:
        raise HTTPException(status_code=400, detail="File is too large.")
    try:
        resume_text = parsers.extract_pdf_text(content)
    except parsers.PdfExtractionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    token = session.begin_request("analysis")
    try:
        critique = await ai.critique_resume(resume_text)
    except AIServiceError as e:
        raise HTTPException(status_code=502, detail=f"Error analyzing PDF. {e}")
    _ensure_current(session, "analysis", token)

    session.load_analysis(critique, extracted_text=resume_text)
    return session.state()


@router.post("/analyze-text", response_model=SuggestionStateResponse)
async def analyze_text(request: AnalyzeTextRequest, session: EditorSession = Depends(get_editor_session)):
    """Load already-annotated text, e.g. a saved critique."""
    session.begin_request("analysis")
    session.load_analysis(request.text, extracted_text=parsers.strip_suggestion_markers(request.text))
    return session.state()


@router.get("/suggestions", response_model=SuggestionStateResponse)
async def get_suggestions(session: EditorSession = Depends(get_editor_session)):
    return session.state()


@router.post("/suggestions/accept-all", response_model=SuggestionStateResponse)
async def accept_all(session: EditorSession = Depends(get_editor_session)):
    session.accept_all()
    return session.state()


@router.post("/suggestions/reject-all", response_model=SuggestionStateResponse)
async def reject_all(session: EditorSession = Depends(get_editor_session)):
    session.reject_all()
    return session.state()


@router.post("/suggestions/{suggestion_id}/decision", response_model=SuggestionStateResponse)
async def decide_suggestion(
    suggestion_id: str,
    request: DecisionRequest,
    session: EditorSession = Depends(get_editor_session),
):
    try:
        session.set_decision(suggestion_id, request.accepted)
    except UnknownSuggestionError:
        raise HTTPException(status_code=404, detail=f"Unknown suggestion: {suggestion_id}")
    return session.state()


@router.get("/resolved-text")
async def get_resolved_text(session: EditorSession = Depends(get_editor_session)):
    return {"text": session.resolved_text(), "pending": session.pending_count}


@router.post("/reset")
async def reset_session(session: EditorSession = Depends(get_editor_session)):
    session.reset()
    return {"status": "ok"}


# ---- builder ----

@router.post("/transfer", response_model=ResumeDraft)
async def transfer_to_builder(
    request: Optional[TransferRequest] = None,
    session: EditorSession = Depends(get_editor_session),
    ai: ResumeAI = Depends(get_resume_ai),
):
    source = request.source if request else "resolved"
    text = session.extracted_text if source == "extracted" else session.resolved_text()
    if not text.strip():
        raise HTTPException(status_code=400, detail="Nothing to transfer. Analyze a resume first.")

    token = session.begin_request("structure")
    draft = await draft_service.structure_draft(ai, text, session.new_section_id)
    _ensure_current(session, "structure", token)
    return session.replace_draft(draft)


@router.post("/score", response_model=ResumeScore)
async def score_resume(
    session: EditorSession = Depends(get_editor_session),
    ai: ResumeAI = Depends(get_resume_ai),
):
    text = session.resolved_text() or session.extracted_text
    if not text.strip():
        raise HTTPException(status_code=400, detail="Nothing to score. Analyze a resume first.")

    token = session.begin_request("score")
    try:
        score = await draft_service.score_draft_text(ai, text)
    except AIServiceError as e:
        raise HTTPException(status_code=502, detail=f"Error scoring resume. {e}")
    _ensure_current(session, "score", token)
    return score


@router.get("/draft", response_model=ResumeDraft)
async def get_draft(session: EditorSession = Depends(get_editor_session)):
    return session.draft


@router.put("/draft", response_model=ResumeDraft)
async def put_draft(draft: ResumeDraft, session: EditorSession = Depends(get_editor_session)):
    return session.replace_draft(draft)


@router.post("/draft/new", response_model=ResumeDraft)
async def new_draft(session: EditorSession = Depends(get_editor_session)):
    return session.new_draft()


@router.patch("/draft/contact", response_model=ResumeDraft)
async def update_contact(update: ContactUpdate, session: EditorSession = Depends(get_editor_session)):
    session.update_contact(**update.model_dump(exclude_unset=True))
    return session.draft


@router.post("/draft/sections", response_model=ResumeDraft)
async def add_section(request: SectionCreate, session: EditorSession = Depends(get_editor_session)):
    session.add_section(request.type, request.title)
    return session.draft


@router.patch("/draft/sections/{section_id}", response_model=ResumeDraft)
async def update_section(
    section_id: str,
    update: SectionUpdate,
    session: EditorSession = Depends(get_editor_session),
):
    try:
        session.update_section(section_id, **update.model_dump(exclude_unset=True))
    except UnknownSectionError:
        raise HTTPException(status_code=404, detail=f"Unknown section: {section_id}")
    return session.draft


@router.delete("/draft/sections/{section_id}", response_model=ResumeDraft)
async def delete_section(section_id: str, session: EditorSession = Depends(get_editor_session)):
    try:
        session.remove_section(section_id)
    except UnknownSectionError:
        raise HTTPException(status_code=404, detail=f"Unknown section: {section_id}")
    return session.draft


@router.post("/draft/sections/{section_id}/move", response_model=ResumeDraft)
async def move_section(
    section_id: str,
    request: SectionMove,
    session: EditorSession = Depends(get_editor_session),
):
    try:
        session.move_section(section_id, request.index)
    except UnknownSectionError:
        raise HTTPException(status_code=404, detail=f"Unknown section: {section_id}")
    return session.draft


# ---- export ----

def _content_disposition(filename: str) -> str:
    fallback = "".join(ch if ch.isascii() and ch.isprintable() and ch not in "\"\\" else "_" for ch in filename)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


@router.post("/export/pdf")
async def export_pdf(filename: str = "resume", session: EditorSession = Depends(get_editor_session)):
    file_stream = generators.create_pdf(session.draft)
    return StreamingResponse(
        file_stream,
        media_type="application/pdf",
        headers={"Content-Disposition": _content_disposition(f"{filename}.pdf")}
    )


@router.post("/export/docx")
async def export_docx(filename: str = "resume", session: EditorSession = Depends(get_editor_session)):
    file_stream = generators.create_docx(session.draft)
    return StreamingResponse(
        file_stream,
        media_type="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        headers={"Content-Disposition": _content_disposition(f"{filename}.docx")}
    )
