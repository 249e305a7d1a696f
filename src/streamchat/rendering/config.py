"""Immutable rendering configuration.

One instance is built per process and handed explicitly to the
pipeline; nothing in the rendering package keeps module-level
mutable renderer state.
"""

from pydantic import BaseModel, ConfigDict, Field


class RenderConfig(BaseModel):
    """Settings shared by the sanitizer, math renderer and Markdown pipeline."""

    model_config = ConfigDict(frozen=True)

    base_origin: str = Field(
        default="http://localhost",
        description="Origin relative URLs are resolved against before scheme checks",
    )
    blocked_schemes: frozenset[str] = Field(
        default=frozenset({"javascript", "data", "vbscript"}),
        description="Lowercased URL schemes replaced by '#'",
    )
    link_target: str = Field(default="_blank", description="target attribute for rendered links")
    link_rel: str = Field(default="noopener noreferrer", description="rel attribute for rendered links")
    code_block_class: str = Field(default="code-block")
    copy_button_label: str = Field(default="Copy")
    enable_tables: bool = Field(default=True)
    enable_strikethrough: bool = Field(default=True)
