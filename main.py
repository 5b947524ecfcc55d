import logging
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from redline.config.settings import get_settings
from redline.services.editor_session import EditorSession, get_editor_session

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Redline Resume Editor")

# Get base directory for absolute paths
BASE_DIR = Path(__file__).resolve().parent

# Mount static files
app.mount("/static", StaticFiles(directory=str(BASE_DIR / "redline/static")), name="static")

# Templates
templates = Jinja2Templates(directory=str(BASE_DIR / "redline/templates"))

@app.get("/health")
async def health_check():
    return {"status": "ok"}

@app.get("/", response_class=HTMLResponse)
async def read_root(request: Request, session: EditorSession = Depends(get_editor_session)):
    return templates.TemplateResponse(request, "index.html", {
        "segments": session.segments,
        "suggestions": session.suggestions,
        "summary": session.summary(),
        "draft": session.draft,
    })

# Import and include routers
from redline.routers import auth_router, grid_router, resume_router
app.include_router(resume_router.router)
app.include_router(grid_router.router)
app.include_router(auth_router.router)
