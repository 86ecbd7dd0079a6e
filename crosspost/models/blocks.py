from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BlockNode(BaseModel):
    """
    One parsed block.

    ``inner_content`` holds the raw HTML fragments in document order with a
    ``None`` placeholder wherever the next entry of ``inner_blocks`` sits.
    ``attrs_source`` keeps the attribute JSON exactly as it appeared in the
    document so that untouched blocks serialize byte for byte; it is dropped
    whenever ``attrs`` are rewritten.  A node without ``block_name`` is
    freeform HTML.
    """

    model_config = ConfigDict(validate_assignment=False)

    block_name: Optional[str] = None
    attrs: Dict[str, Any] = Field(default_factory=dict)
    attrs_source: Optional[str] = None
    inner_html: str = ""
    inner_content: List[Optional[str]] = Field(default_factory=list)
    inner_blocks: List["BlockNode"] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_placeholders(self) -> "BlockNode":
        placeholders = sum(1 for piece in self.inner_content if piece is None)
        if placeholders != len(self.inner_blocks):
            raise ValueError(
                f"inner_content has {placeholders} placeholders for {len(self.inner_blocks)} inner blocks"
            )
        return self

    @property
    def is_freeform(self) -> bool:
        return not self.block_name

    def with_attrs(self, attrs: Dict[str, Any]) -> "BlockNode":
        return self.model_copy(update={"attrs": attrs, "attrs_source": None})

    def with_inner_blocks(self, inner_blocks: List["BlockNode"]) -> "BlockNode":
        return self.model_copy(update={"inner_blocks": inner_blocks})


BlockNode.model_rebuild()
