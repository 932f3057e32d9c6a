"""
Document Models
===============
Pydantic models describing a parsed markdown document and the validator's
report.

Fields:
    ParsedDocument.frontmatter  : metadata mapping from the leading YAML block
    ParsedDocument.content      : body text after the closing delimiter
    ContentMetrics              : counts and flags reported alongside the preview
    ValidationIssue             : one schema violation, ready for field-level UI
"""
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class ParsedDocument(BaseModel):
    frontmatter: Dict[str, Any] = Field(default_factory=dict)
    content: str = ""


class ContentMetrics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    word_count: int = Field(alias="wordCount")
    reading_time: int = Field(alias="readingTime")
    content_length: int = Field(alias="contentLength")
    has_images: bool = Field(alias="hasImages")
    has_code: bool = Field(alias="hasCode")


class ValidationIssue(BaseModel):
    path: str
    message: str
    keyword: str
    params: Dict[str, Any] = Field(default_factory=dict)
