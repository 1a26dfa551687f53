from __future__ import annotations

import hmac
import logging
from enum import Enum

from hotspot_pages.domain.entities.page import PageEntity
from hotspot_pages.domain.errors import Forbidden, Unauthorized

logger = logging.getLogger(__name__)


class AuthorizationResult(str, Enum):
    AUTHORIZED = "authorized"
    DENIED = "denied"


def authorize(page: PageEntity | None, presented_token: str | None) -> AuthorizationResult:
    """Check a presented edit token against the page's stored token.

    Exact byte equality only. A missing page and a wrong token give the same
    answer so callers cannot tell them apart.
    """
    if page is None or not presented_token or not page.edit_token:
        return AuthorizationResult.DENIED
    if hmac.compare_digest(page.edit_token.encode("utf-8"), presented_token.encode("utf-8")):
        return AuthorizationResult.AUTHORIZED
    return AuthorizationResult.DENIED


def ensure_authorized(page: PageEntity | None, presented_token: str | None) -> PageEntity:
    """Raise unless ``presented_token`` grants edit rights on ``page``.

    Raises:
        Unauthorized: No token was presented.
        Forbidden: Wrong token, or the page does not exist.
    """
    if not presented_token:
        raise Unauthorized()
    if authorize(page, presented_token) is not AuthorizationResult.AUTHORIZED:
        logger.warning("Edit token rejected for page %s", page.id if page else "<missing>")
        raise Forbidden()
    return page
