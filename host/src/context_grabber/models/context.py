"""Models for captured page/application context."""

from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.text_utils import normalize_text


class Heading(BaseModel):
    """A document heading captured from the page."""

    model_config = ConfigDict(frozen=True)

    level: int = Field(..., description="Heading level (1-6)")
    text: str = Field(..., description="Heading text")


class Link(BaseModel):
    """A hyperlink captured from the page."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Link text")
    href: str = Field(..., description="Link target")


class ContextPayload(BaseModel):
    """
    Content captured from a browser tab or desktop application.

    Serialized with ``by_alias=True`` this is the ``capture`` object of the
    native messaging protocol, where the origin identifier travels as ``browser``.
    """

    # Accept both 'originId' and the wire name 'browser'
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source: Literal["browser", "desktop"] = Field(..., description="Capture source")
    originId: str = Field(
        ...,
        alias="browser",
        description="Browser name, or app bundle identifier for desktop captures",
    )
    url: str = Field(..., description="Page URL or synthetic app:// origin")
    title: str = Field(..., description="Page or window title")
    fullText: str = Field("", description="Normalized extracted text")
    headings: List[Heading] = Field(default_factory=list, description="Document headings")
    links: List[Link] = Field(default_factory=list, description="Document links")
    metaDescription: Optional[str] = Field(None, description="<meta name=description>")
    siteName: Optional[str] = Field(None, description="Site or application name")
    language: Optional[str] = Field(None, description="Document language")
    author: Optional[str] = Field(None, description="Document author")
    publishedTime: Optional[str] = Field(None, description="Publication timestamp")
    selectionText: Optional[str] = Field(None, description="Selected text, if requested")
    extractionWarnings: List[str] = Field(
        default_factory=list, description="Warnings raised while extracting"
    )

    @field_validator("fullText", mode="before")
    @classmethod
    def _normalize_full_text(cls, value: Optional[str]) -> str:
        return normalize_text(value)

    @field_validator("headings", "links", "extractionWarnings", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        # Extensions send null for absent lists
        return [] if value is None else value


class FrontmostAppInfo(BaseModel):
    """Identity of the application a capture targets."""

    model_config = ConfigDict(frozen=True)

    bundleIdentifier: Optional[str] = Field(None, description="e.g. com.apple.Safari")
    appName: Optional[str] = Field(None, description="Localized application name")
    processIdentifier: Optional[int] = Field(None, description="Process ID")
