"""
API Dependencies
================
Builds the services each request handler needs from the frozen Settings.
Tests swap these out through app.dependency_overrides.
"""
from functools import lru_cache

from fastapi import Depends

from app.core.config import Settings, get_settings
from app.services.build_dispatcher import BuildDispatcher
from app.services.build_store import BuildStore, make_build_store
from app.services.status_reconciler import StatusReconciler
from app.services.validator import MarkdownValidator


@lru_cache
def _cached_store(settings: Settings) -> BuildStore:
    # One boto3 resource per configuration, not per request
    return make_build_store(settings)


def get_build_store(settings: Settings = Depends(get_settings)) -> BuildStore:
    return _cached_store(settings)


def get_validator(settings: Settings = Depends(get_settings)) -> MarkdownValidator:
    return MarkdownValidator(timeout=settings.http_timeout_seconds)


def get_dispatcher(
    settings: Settings = Depends(get_settings),
    store: BuildStore = Depends(get_build_store),
) -> BuildDispatcher:
    return BuildDispatcher(settings=settings, store=store)


def get_reconciler(
    settings: Settings = Depends(get_settings),
    store: BuildStore = Depends(get_build_store),
) -> StatusReconciler:
    return StatusReconciler(settings=settings, store=store)
