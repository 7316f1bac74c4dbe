from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from carbonsnapshot.emissions import FootprintResult
from carbonsnapshot.errors import ProcessingBusyError

logger = logging.getLogger(__name__)


class Page(str, Enum):
    HOME = "home"
    UPLOAD = "upload"
    DASHBOARD = "dashboard"


@dataclass(frozen=True)
class AppState:
    page: Page = Page.HOME
    result: Optional[FootprintResult] = None
    company_name: str = ""
    error: Optional[str] = None
    busy: bool = False

    @property
    def has_result(self) -> bool:
        return self.result is not None


def can_enter(state: AppState, page: Page) -> bool:
    return page is not Page.DASHBOARD or state.has_result


def navigate(state: AppState, page: Page) -> AppState:
    """Move to ``page``; the dashboard stays locked until a result exists."""
    if not can_enter(state, page):
        logger.debug("Refusing navigation to %s without a computed result", page.value)
        return state
    return replace(state, page=page)


def begin_processing(state: AppState) -> AppState:
    if state.busy:
        raise ProcessingBusyError("An upload is already being processed.")
    return replace(state, busy=True, error=None)


def complete_processing(state: AppState, result: FootprintResult) -> AppState:
    return replace(state, result=result, busy=False, error=None, page=Page.DASHBOARD)


def fail_processing(state: AppState, message: str) -> AppState:
    # Prior result and page stay as they were.
    return replace(state, busy=False, error=message)


def dismiss_error(state: AppState) -> AppState:
    return replace(state, error=None)


def set_company_name(state: AppState, company_name: str) -> AppState:
    return replace(state, company_name=company_name.strip())
