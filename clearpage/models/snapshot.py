from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

SourceContext = Literal["main", "article", "body"]


class _Block(BaseModel):
    text: str
    source_context: SourceContext = "body"


class HeadingBlock(_Block):
    type: Literal["heading"] = "heading"
    level: int = Field(default=2, ge=1, le=6)


class ParagraphBlock(_Block):
    type: Literal["paragraph"] = "paragraph"


class ListBlock(_Block):
    type: Literal["list"] = "list"
    items: List[str]


class ImageBlock(_Block):
    type: Literal["image"] = "image"
    alt: str
    src: Optional[str] = None  # None for role="img" widgets


class BlockquoteBlock(_Block):
    type: Literal["blockquote"] = "blockquote"


class PreformattedBlock(_Block):
    type: Literal["preformatted"] = "preformatted"


class TableBlock(_Block):
    type: Literal["table"] = "table"
    headers: Optional[List[str]] = None
    rows: List[List[str]]


class Definition(BaseModel):
    term: str
    description: str


class DefinitionListBlock(_Block):
    type: Literal["definition-list"] = "definition-list"
    definitions: List[Definition]


ContentBlock = Annotated[
    Union[
        HeadingBlock,
        ParagraphBlock,
        ListBlock,
        ImageBlock,
        BlockquoteBlock,
        PreformattedBlock,
        TableBlock,
        DefinitionListBlock,
    ],
    Field(discriminator="type"),
]


class GroupHeading(BaseModel):
    text: str
    level: int


class ContentGroup(BaseModel):
    """A section of consecutive blocks anchored by an optional heading."""

    heading: Optional[GroupHeading] = None
    blocks: List[ContentBlock] = []
    score: float = 0.0
    collapsed: bool = False


class Landmark(BaseModel):
    role: str
    label: Optional[str] = None


class Heading(BaseModel):
    level: int
    text: str
    id: Optional[str] = None


class NavLink(BaseModel):
    text: str
    href: str
    is_current: bool = False


class SelectOption(BaseModel):
    value: str
    label: str


class FormField(BaseModel):
    type: str
    name: str
    label: str
    required: bool = False
    value: Optional[str] = None
    options: Optional[List[SelectOption]] = None


class FormSnapshot(BaseModel):
    action: str
    method: str
    label: Optional[str] = None
    fields: List[FormField]


class ButtonSnapshot(BaseModel):
    text: str
    type: Literal["submit", "button", "reset"] = "button"


class LinkSnapshot(BaseModel):
    text: str
    href: str
    is_footer: bool = False


class SearchDescriptor(BaseModel):
    action: str
    param_name: str


class PageSnapshot(BaseModel):
    """Aggregate root handed to the serializer / transport layer."""

    model_config = {"frozen": True}

    url: str
    title: str = "Untitled"
    lang: str = "en"
    landmarks: List[Landmark] = []
    headings: List[Heading] = []
    nav_links: List[NavLink] = []
    content_groups: List[ContentGroup] = []
    forms: List[FormSnapshot] = []
    buttons: List[ButtonSnapshot] = []
    links: List[LinkSnapshot] = []
    search: Optional[SearchDescriptor] = None
