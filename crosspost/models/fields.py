from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class FieldKind(str, Enum):
    SCALAR = "scalar"
    LINK = "link"
    MEDIA = "media"
    ENTITY = "entity"
    TAXONOMY = "taxonomy"
    USER = "user"
    REPEATER = "repeater"
    FLEXIBLE = "flexible"
    GROUP = "group"
    # Anything ACF knows about that we do not translate (true_false, select...)
    PASSTHROUGH = "passthrough"

    @classmethod
    def from_acf_type(cls, acf_type: Optional[str]) -> "FieldKind":
        return _ACF_TYPE_TO_KIND.get((acf_type or "").strip().lower(), cls.PASSTHROUGH)


_ACF_TYPE_TO_KIND: Dict[str, FieldKind] = {
    "text": FieldKind.SCALAR,
    "textarea": FieldKind.SCALAR,
    "number": FieldKind.SCALAR,
    "range": FieldKind.SCALAR,
    "email": FieldKind.SCALAR,
    "url": FieldKind.SCALAR,
    "password": FieldKind.SCALAR,
    "wysiwyg": FieldKind.SCALAR,
    "oembed": FieldKind.SCALAR,
    "date_picker": FieldKind.SCALAR,
    "date_time_picker": FieldKind.SCALAR,
    "time_picker": FieldKind.SCALAR,
    "color_picker": FieldKind.SCALAR,
    "link": FieldKind.LINK,
    "image": FieldKind.MEDIA,
    "file": FieldKind.MEDIA,
    "gallery": FieldKind.MEDIA,
    "relationship": FieldKind.ENTITY,
    "post_object": FieldKind.ENTITY,
    "taxonomy": FieldKind.TAXONOMY,
    "user": FieldKind.USER,
    "repeater": FieldKind.REPEATER,
    "flexible_content": FieldKind.FLEXIBLE,
    "group": FieldKind.GROUP,
}


class FieldDeclaration(BaseModel):
    """
    Immutable description of one ACF field as exported by the source site.

    Accepts the ACF JSON export shape directly (``key``, ``name``, ``type``,
    ``sub_fields``, ``layouts``, ``taxonomy``).  ``nesting_path`` lists the
    names of the enclosing composite fields and is filled in for sub fields
    while the parent is validated, so top-level declarations have an empty
    path.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    key: str
    name: str
    kind: FieldKind = Field(FieldKind.PASSTHROUGH, alias="type")
    nesting_path: List[str] = Field(default_factory=list)
    sub_fields: List["FieldDeclaration"] = Field(default_factory=list)
    layouts: Dict[str, List["FieldDeclaration"]] = Field(default_factory=dict)
    taxonomy: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _propagate_nesting(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        child_path = list(data.get("nesting_path") or []) + [str(data.get("name") or "")]

        def _with_path(raw_fields: Any) -> List[Any]:
            children = []
            for raw in raw_fields or []:
                if isinstance(raw, dict):
                    raw = {**raw, "nesting_path": child_path}
                children.append(raw)
            return children

        data["sub_fields"] = _with_path(data.get("sub_fields"))

        # ACF exports layouts keyed by layout key ("layout_5f...") with the
        # human name inside; we index them by name.
        raw_layouts = data.get("layouts") or {}
        if isinstance(raw_layouts, dict) and raw_layouts:
            first = next(iter(raw_layouts.values()))
            if isinstance(first, dict):
                raw_layouts = list(raw_layouts.values())
        if isinstance(raw_layouts, list):
            data["layouts"] = {
                str(layout.get("name")): _with_path(layout.get("sub_fields"))
                for layout in raw_layouts
                if isinstance(layout, dict) and layout.get("name")
            }
        elif isinstance(raw_layouts, dict):
            data["layouts"] = {name: _with_path(fields) for name, fields in raw_layouts.items()}
        return data

    @field_validator("kind", mode="before")
    @classmethod
    def _kind_from_acf_type(cls, v: Any) -> FieldKind:
        if isinstance(v, FieldKind):
            return v
        try:
            return FieldKind(v)
        except ValueError:
            return FieldKind.from_acf_type(v)

    @property
    def is_top_level(self) -> bool:
        return not self.nesting_path


class FieldPointer(BaseModel):
    """A flat-map value paired with the opaque key of its declaration."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    meta_key: str
    value: Any = None
    declaration_ref: Optional[str] = None

    @classmethod
    def from_flat_map(cls, flat_map: Dict[str, Any], meta_key: str) -> "FieldPointer":
        ref = flat_map.get(f"_{meta_key}")
        return cls(
            meta_key=meta_key,
            value=flat_map.get(meta_key),
            declaration_ref=ref if isinstance(ref, str) and ref else None,
        )


FieldDeclaration.model_rebuild()
