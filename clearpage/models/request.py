from typing import Dict, List

from pydantic import BaseModel, Field, HttpUrl

from clearpage.models.snapshot import ContentBlock

MAX_HTML_SIZE = 10 * 1024 * 1024  # 10 MB


class SnapshotRequest(BaseModel):
    url: HttpUrl
    """Address the markup was rendered from; base for every resolved link."""

    html: str = Field(
        min_length=1,
        max_length=MAX_HTML_SIZE,
        description="Rendered page markup (the document snapshot).",
    )
    frames: Dict[str, str] = Field(
        default_factory=dict,
        description=(
            "Markup of embedded frames keyed by absolute frame URL. Only frames "
            "sharing the document's origin are traversed."
        ),
    )


class GroupRequest(BaseModel):
    blocks: List[ContentBlock] = Field(
        default_factory=list,
        description="Ordered content blocks to group into scored sections.",
    )
