from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from typing import Dict, List, Optional

from linkick.core.errors import ChannelNotFound, ResolutionBlocked
from linkick.core.logger import Logger
from linkick.core.timezone import display_strftime
from linkick.services.batch_open import BatchOpener
from linkick.services.categorizer import default_categorizer, display_label
from linkick.services.link_store import LinkRecord, SessionView
from linkick.services.session import SessionController, SessionState

router = APIRouter(prefix="/api", tags=["API"])
logger = Logger("API")

VIEWS = ("all", "active", "archived")


# Request/Response Models
class ConnectRequest(BaseModel):
    slug: str


class VisitRequest(BaseModel):
    url: str


class VisitBatchRequest(BaseModel):
    urls: List[str]


class OpenBatchRequest(BaseModel):
    urls: Optional[List[str]] = None
    category: Optional[str] = None
    confirmed: bool = False


class LinkOut(BaseModel):
    url: str
    title: str
    category: str
    category_label: str
    sender: str
    description: str
    visited: bool


class StatsOut(BaseModel):
    total_links: int
    top_category: str


class SessionOut(BaseModel):
    summary: str
    state: str
    slug: Optional[str] = None
    room_id: Optional[str] = None
    error: Optional[str] = None
    clock: str
    links: List[LinkOut]
    active_count: int
    archived_count: int
    categories: Dict[str, int]
    stats: StatsOut


class OpenBatchOut(BaseModel):
    opened: List[str]
    session: SessionOut


def get_controller(request: Request) -> SessionController:
    return request.app.state.session_controller


def get_batch_opener(request: Request) -> BatchOpener:
    return request.app.state.batch_opener


def _link_out(link: LinkRecord) -> LinkOut:
    return LinkOut(category_label=display_label(link.category), **link.to_dict())


def _session_out(
    controller: SessionController,
    view: Optional[SessionView] = None,
    tab: str = "all",
    category: Optional[str] = None,
) -> SessionOut:
    view = view or controller.snapshot()
    session = controller.current
    return SessionOut(
        summary=view.summary,
        state=controller.state.value,
        slug=session.slug if session else None,
        room_id=session.room_id if session else None,
        error=session.error if session else None,
        clock=display_strftime("%H:%M"),
        links=[_link_out(link) for link in view.filter(tab, category)],
        active_count=len(view.active_links),
        archived_count=len(view.archived_links),
        categories=view.category_counts(),
        stats=StatsOut(**view.stats.to_dict()),
    )


# Health
@router.get("/health")
async def api_health(controller: SessionController = Depends(get_controller)):
    return {
        "status": "ok",
        "session_state": controller.state.value,
        "live": controller.state == SessionState.LIVE,
    }


# Session Endpoints
@router.get("/session", response_model=SessionOut)
async def session_view(
    view: str = "all",
    category: Optional[str] = None,
    controller: SessionController = Depends(get_controller),
):
    if view not in VIEWS:
        raise HTTPException(status_code=400, detail=f"view must be one of {', '.join(VIEWS)}")
    return _session_out(controller, tab=view, category=category)


@router.post("/session/connect", response_model=SessionOut)
async def session_connect(req: ConnectRequest, controller: SessionController = Depends(get_controller)):
    if not req.slug.strip():
        raise HTTPException(status_code=400, detail="Channel name required")
    try:
        await controller.connect(req.slug)
    except ResolutionBlocked as e:
        logger.warn(f"Connect blocked: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    except ChannelNotFound as e:
        logger.warn(f"Connect failed: {e}")
        raise HTTPException(status_code=404, detail=str(e))
    return _session_out(controller)


@router.post("/session/stop", response_model=SessionOut)
async def session_stop(controller: SessionController = Depends(get_controller)):
    await controller.stop()
    return _session_out(controller)


# Link Endpoints
@router.post("/links/visit", response_model=SessionOut)
async def visit_link(req: VisitRequest, controller: SessionController = Depends(get_controller)):
    return _session_out(controller, controller.mark_visited(req.url))


@router.post("/links/visit-batch", response_model=SessionOut)
async def visit_links(req: VisitBatchRequest, controller: SessionController = Depends(get_controller)):
    return _session_out(controller, controller.mark_visited_batch(req.urls))


@router.post("/links/open-batch", response_model=OpenBatchOut)
async def open_links(
    req: OpenBatchRequest,
    controller: SessionController = Depends(get_controller),
    opener: BatchOpener = Depends(get_batch_opener),
):
    active = controller.snapshot().filter("active", req.category)
    if req.urls is not None:
        wanted = set(req.urls)
        active = [link for link in active if link.url in wanted]

    if opener.requires_confirmation(len(active)) and not req.confirmed:
        raise HTTPException(
            status_code=409,
            detail=f"Opening {len(active)} links requires confirmation",
        )

    opened = await opener.open(active, controller.mark_visited_batch, confirm=lambda n: req.confirmed)
    return OpenBatchOut(opened=opened, session=_session_out(controller))


@router.get("/categories")
async def categories():
    rules = default_categorizer.list_rules()
    for rule in rules:
        rule["labels"] = [display_label(c) for c in rule["categories"]]
    return {"rules": rules, "default": "OTHER"}
