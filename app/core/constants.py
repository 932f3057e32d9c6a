"""
Constants
Centralised storage for build statuses, naming conventions and content rules.
"""
BUILD_STATUSES = ["queued", "building", "completed", "failed"]
DEFAULT_BUILD_STATUS = "queued"

# Join key between the record store and the CI provider
BRANCH_PREFIX = "build/"

CONTENT_ROOT = "content"
DEFAULT_SLUG = "index"
DEFAULT_TITLE = "Untitled"
UNKNOWN_AUTHOR = "unknown"

WORDS_PER_MINUTE = 200

# 7 years, enforced by the store's TTL attribute
RECORD_TTL_SECONDS = 7 * 365 * 24 * 60 * 60

WORKFLOW_STATUS_UNKNOWN = "unknown"


def branch_name_for(build_id: str) -> str:
    return f"{BRANCH_PREFIX}{build_id}"


def content_path_for(project_id: str, slug: str) -> str:
    return f"{CONTENT_ROOT}/{project_id}/{slug}.md"
