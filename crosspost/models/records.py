from __future__ import annotations

from enum import Enum
from typing import Optional, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ObjectKind(str, Enum):
    POST = "post"
    PRODUCT = "product"
    TERM = "term"


class Destination(BaseModel):
    """
    A WordPress site we cross-post to.  ``password`` is an application
    password used for HTTP basic authentication against the REST API.
    """

    model_config = ConfigDict(frozen=True, extra="allow", str_strip_whitespace=True)

    url: str = Field(..., min_length=1)
    login: str = ""
    password: str = ""

    @field_validator("url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def blog_id(self) -> str:
        """Site identifier used to key mapping tables: the URL without scheme."""
        parsed = urlparse(self.url)
        if not parsed.netloc:
            return self.url
        return f"{parsed.netloc}{parsed.path}".rstrip("/")

    @property
    def rest_base(self) -> str:
        return f"{self.url}/wp-json"


class ResolutionContext(BaseModel):
    """Per-run bundle threaded through every recursive transform call."""

    model_config = ConfigDict(frozen=True)

    destination: Destination
    source_object_id: int
    object_kind: ObjectKind = ObjectKind.POST

    @property
    def acf_object_id(self) -> Union[int, str]:
        """The id ACF uses for this object's meta (terms are ``term_<id>``)."""
        if self.object_kind == ObjectKind.TERM:
            return f"term_{self.source_object_id}"
        return self.source_object_id


class EntityReference(BaseModel):
    """
    A relationship target.  ``subtype`` is the source post type when it has a
    dedicated resolver (catalog items resolve through the product table).
    """

    model_config = ConfigDict(frozen=True)

    id: int
    subtype: Optional[str] = None
