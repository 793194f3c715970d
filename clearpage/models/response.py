from typing import List

from pydantic import BaseModel

from clearpage.models.snapshot import ContentGroup, PageSnapshot


class SnapshotResponse(PageSnapshot):
    """Serialised page snapshot.

    Identical to :class:`PageSnapshot`; kept as a separate response model so
    the public schema can grow transport metadata without touching the core.
    """


class GroupResponse(BaseModel):
    groups: List[ContentGroup]
    threshold: float
    """Adaptive collapse threshold the groups were compared against."""
