"""
Upload page: pick an image, tune the three budgets, view the result.
"""

from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router = APIRouter()

_INDEX_HTML = Path(__file__).parents[1] / "static" / "index.html"


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def index():
    return HTMLResponse(_INDEX_HTML.read_text(encoding="utf-8"))
