import logging

from fastapi import APIRouter, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from clearpage.models.request import GroupRequest, SnapshotRequest
from clearpage.models.response import GroupResponse, SnapshotResponse
from clearpage.services.grouper import collapse_threshold, group_and_score
from clearpage.services.snapshot import build_snapshot

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()


@router.post("/snapshot", response_model=SnapshotResponse, summary="Snapshot a rendered page")
@limiter.limit("30/minute")
async def snapshot(request: Request, body: SnapshotRequest) -> SnapshotResponse:
    """Turn rendered page markup into an accessible page snapshot.

    Nothing is fetched: the caller supplies the document markup, its address
    and, optionally, the markup of same-origin frames keyed by frame URL.
    """
    url = str(body.url)
    logger.info("Snapshot request received", extra={"url": url, "size": len(body.html)})

    page = build_snapshot(body.html, url, frames=body.frames)
    return SnapshotResponse(**page.model_dump())


@router.post("/snapshot/groups", response_model=GroupResponse, summary="Group and score content blocks")
@limiter.limit("30/minute")
async def group(request: Request, body: GroupRequest) -> GroupResponse:
    """Partition caller-supplied blocks into scored, collapsible sections."""
    groups = group_and_score(body.blocks)
    return GroupResponse(groups=groups, threshold=collapse_threshold(groups))
