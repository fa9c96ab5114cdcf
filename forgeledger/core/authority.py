"""Ownership check for build mutation.

Stateless: the presented identity is compared against the authority
recorded on the build.  No session or ambient trust.
"""

from __future__ import annotations

import logging

from forgeledger.core.errors import UnauthorizedError
from forgeledger.models.builds import Build

logger = logging.getLogger(__name__)


def is_authorized(presented_identity: str | None, build: Build) -> bool:
    """Return True if *presented_identity* owns *build*."""
    return presented_identity is not None and presented_identity == build.authority


def require_authority(presented_identity: str | None, build: Build) -> None:
    """Raise ``UnauthorizedError`` unless *presented_identity* owns *build*."""
    if not is_authorized(presented_identity, build):
        logger.warning(
            "Rejected caller %r for build %s", presented_identity, build.build_id
        )
        raise UnauthorizedError(build.build_id, presented_identity)
