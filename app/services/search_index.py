"""
Search Index Generator
======================
Builds a client-side full-text search index from the content tree, to be
written next to the generated site.

Each content/**/*.md file becomes one document:
    id       : path relative to the working tree (content/a/b.md)
    url      : /a/b/   (index.md maps to its directory)
    content  : markdown stripped to plain text, first 1000 chars
    title, category, tags, audience, dateAdded: from frontmatter

The index is built with lunr (lunr.js-compatible serialization) over
title (boost 10), content (5), tags (8) and category (3).
"""
import json
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from lunr import lunr

from app.parser.frontmatter import FrontmatterSyntaxError, parse_frontmatter

logger = logging.getLogger(__name__)

INDEX_VERSION = "1.0.0"
INDEX_FILENAME = "search-index.json"
CONTENT_LIMIT = 1000
PREVIEW_LIMIT = 200

SEARCH_FIELDS = [
    {"field_name": "title", "boost": 10},
    {"field_name": "content", "boost": 5},
    {"field_name": "tags", "boost": 8},
    {"field_name": "category", "boost": 3},
]

_STRIP_RULES = [
    (re.compile(r"```[\s\S]*?```"), ""),           # fenced code
    (re.compile(r"`[^`]+`"), ""),                  # inline code
    (re.compile(r"!\[.*?\]\(.*?\)"), ""),          # images
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),  # links keep their text
    (re.compile(r"#+ "), ""),                      # heading markers
    (re.compile(r"[*_~]"), ""),                    # emphasis markers
]


class SearchIndexError(RuntimeError):
    pass


@dataclass
class SearchDocument:
    id: str
    title: str
    url: str
    content: str
    category: str
    tags: List[str]
    audience: List[str]
    date_added: str

    def to_entry(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "category": self.category,
            "tags": self.tags,
            "audience": self.audience,
            "dateAdded": self.date_added,
            "preview": self.content[:PREVIEW_LIMIT],
        }


def plain_text(markdown: str) -> str:
    text = markdown
    for pattern, replacement in _STRIP_RULES:
        text = pattern.sub(replacement, text)
    return text


def url_for(relative: str) -> str:
    """content-relative path → site URL (a/b.md → /a/b/, a/index.md → /a/)."""
    url = "/" + relative.replace("\\", "/")
    url = re.sub(r"\.md$", "/", url)
    return re.sub(r"/index/$", "/", url)


def _string_list(value: Any) -> List[str]:
    return [str(v) for v in value] if isinstance(value, list) else []


def load_document(path: Path, content_dir: Path) -> SearchDocument:
    parsed = parse_frontmatter(path.read_text(encoding="utf-8"))
    meta = parsed.frontmatter
    relative = path.relative_to(content_dir).as_posix()

    return SearchDocument(
        id=f"{content_dir.name}/{relative}",
        title=str(meta.get("title") or "Untitled"),
        url=url_for(relative),
        content=plain_text(parsed.content)[:CONTENT_LIMIT],
        category=str(meta.get("category") or "uncategorized"),
        tags=_string_list(meta.get("tags")),
        audience=_string_list(meta.get("audience")),
        date_added=str(meta.get("dateAdded") or date.today().isoformat()),
    )


def collect_documents(content_dir: Path) -> List[SearchDocument]:
    files = sorted(
        p for p in content_dir.rglob("*.md")
        if "node_modules" not in p.parts and "_site" not in p.parts
    )
    logger.info("Found %d content files under %s", len(files), content_dir)
    if not files:
        logger.warning("No content files found. Search index will be empty.")

    documents = []
    for path in files:
        try:
            documents.append(load_document(path, content_dir))
        except (OSError, UnicodeDecodeError, FrontmatterSyntaxError) as exc:
            logger.error("Error processing %s: %s", path, exc)
    return documents


def build_index(documents: List[SearchDocument]) -> Dict[str, Any]:
    if not documents:
        # lunr needs at least one document to compute field lengths
        return {
            "version": "2.3.9",
            "fields": [f["field_name"] for f in SEARCH_FIELDS],
            "fieldVectors": [],
            "invertedIndex": [],
            "pipeline": ["stemmer"],
        }
    idx = lunr(
        ref="id",
        fields=SEARCH_FIELDS,
        documents=[
            {
                "id": doc.id,
                "title": doc.title,
                "content": doc.content,
                "tags": " ".join(doc.tags),
                "category": doc.category,
            }
            for doc in documents
        ],
    )
    return idx.serialize()


def generate_search_index(
    content_dir: str = "content",
    output_dir: str = "_site",
    now: Optional[datetime] = None,
) -> Path:
    """
    Write <output_dir>/search-index.json for every markdown file under content_dir.

    Raises
    ------
    SearchIndexError
        If output_dir does not exist (the site has not been built yet).
    """
    output = Path(output_dir)
    if not output.is_dir():
        raise SearchIndexError(
            f"Output directory '{output_dir}' does not exist. Build the site first."
        )

    content = Path(content_dir)
    documents = collect_documents(content) if content.is_dir() else []
    generated_at = (now or datetime.now(timezone.utc)).isoformat()

    data = {
        "version": INDEX_VERSION,
        "generatedAt": generated_at,
        "documentCount": len(documents),
        "documents": [doc.to_entry() for doc in documents],
        "index": build_index(documents),
    }

    target = output / INDEX_FILENAME
    target.write_text(json.dumps(data, indent=2), encoding="utf-8")
    logger.info(
        "Search index written to %s (%d documents, %.2f KB)",
        target, len(documents), target.stat().st_size / 1024,
    )
    return target
