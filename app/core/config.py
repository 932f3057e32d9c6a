"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    GITHUB_TOKEN             : Token used for branch/commit/workflow calls
    GITHUB_ORG / GITHUB_OWNER: Owner of the content repository
    GITHUB_REPO              : Content repository name
    GITHUB_API_URL           : REST API root (default: https://api.github.com)
    GITHUB_BASE_BRANCH       : Branch new build branches are cut from (default: main)
    BUILD_WORKFLOW_ID        : Workflow file dispatched per build (default: build.yml)
    WORKFLOW_RUNS_PAGE_SIZE  : Runs fetched when reconciling status (default: 50)
    AWS_DYNAMODB_TABLE       : Build record table; unset disables persistence
    AWS_REGION               : Region of the record table (default: us-east-1)
    AWS_BUCKET_NAME          : Archive bucket; unset leaves urls.archive null
    SERVICE_URL              : Public base URL of this API
    SITE_URL                 : Public base URL of the generated site
    ENVIRONMENT              : "development" exposes stack traces on 500s

Settings are read once per process. Handlers receive the frozen Settings
object through FastAPI dependencies and never touch os.environ themselves.
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _optional(name: str, *fallbacks: str) -> Optional[str]:
    for key in (name, *fallbacks):
        value = os.getenv(key, "").strip()
        if value:
            return value
    return None


def _base_url(name: str) -> Optional[str]:
    value = _optional(name)
    return value.rstrip("/") if value else None


@dataclass(frozen=True)
class Settings:
    # GitHub
    github_token: str = ""
    github_owner: Optional[str] = None
    github_repo: Optional[str] = None
    github_api_url: str = "https://api.github.com"
    github_base_branch: str = "main"
    build_workflow_id: str = "build.yml"
    workflow_runs_page_size: int = 50

    # Record store / archive
    dynamodb_table: Optional[str] = None
    aws_region: str = "us-east-1"
    archive_bucket: Optional[str] = None

    # Public URLs
    service_url: Optional[str] = None
    site_url: Optional[str] = None

    # Commit identity when the caller supplies none
    service_author_name: str = "Content Build Service"
    service_author_email: str = "builds@content-service.local"

    # Runtime
    environment: str = "production"
    estimated_build_minutes: int = 5
    http_timeout_seconds: float = 20.0
    log_level: str = "INFO"
    log_dir: str = "logs"

    # Local content tooling
    content_dir: str = "content"
    site_output_dir: str = "_site"
    site_data_path: str = "src/_data/site.json"

    @property
    def github_configured(self) -> bool:
        return bool(self.github_owner and self.github_repo)

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            github_token=os.getenv("GITHUB_TOKEN", ""),
            github_owner=_optional("GITHUB_ORG", "GITHUB_OWNER"),
            github_repo=_optional("GITHUB_REPO"),
            github_api_url=os.getenv("GITHUB_API_URL", "https://api.github.com").rstrip("/"),
            github_base_branch=os.getenv("GITHUB_BASE_BRANCH", "main"),
            build_workflow_id=os.getenv("BUILD_WORKFLOW_ID", "build.yml"),
            workflow_runs_page_size=int(os.getenv("WORKFLOW_RUNS_PAGE_SIZE", 50)),
            dynamodb_table=_optional("AWS_DYNAMODB_TABLE"),
            aws_region=os.getenv("AWS_REGION", "us-east-1"),
            archive_bucket=_optional("AWS_BUCKET_NAME"),
            service_url=_base_url("SERVICE_URL"),
            site_url=_base_url("SITE_URL"),
            service_author_name=os.getenv("SERVICE_AUTHOR_NAME", "Content Build Service"),
            service_author_email=os.getenv("SERVICE_AUTHOR_EMAIL", "builds@content-service.local"),
            environment=os.getenv("ENVIRONMENT", "production"),
            estimated_build_minutes=int(os.getenv("ESTIMATED_BUILD_MINUTES", 5)),
            http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", 20.0)),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_dir=os.getenv("LOG_DIR", "logs"),
            content_dir=os.getenv("CONTENT_DIR", "content"),
            site_output_dir=os.getenv("SITE_OUTPUT_DIR", "_site"),
            site_data_path=os.getenv("SITE_DATA_PATH", "src/_data/site.json"),
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
