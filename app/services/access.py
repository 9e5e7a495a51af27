"""
app/services/access.py
Capability checks run before any operation touches state.

Identity is taken as already authenticated by the host (signature checks
happen upstream). This module only answers "may this identity do that?".
"""

import logging
from enum import Enum

from core.config import get_settings
from core.errors import Unauthorized
from database.models import PlatformConfig

logger = logging.getLogger(__name__)


class Capability(str, Enum):
    ADMIN = "admin"
    ORACLE = "oracle"
    RECORD_OWNER = "record_owner"


class AccessPolicy:
    """Resolves the capabilities an identity holds against the platform."""

    def __init__(self, platform: PlatformConfig, oracle_authorities: set[str] | None = None) -> None:
        self._platform = platform
        if oracle_authorities is None:
            oracle_authorities = get_settings().oracle_authorities
        self._oracles = set(oracle_authorities)

    def holds(self, caller: str, capability: Capability, owner: str | None = None) -> bool:
        if capability == Capability.ADMIN:
            return caller == self._platform.admin
        if capability == Capability.ORACLE:
            return caller == self._platform.admin or caller in self._oracles
        if capability == Capability.RECORD_OWNER:
            # The admin may read any record.
            return owner is not None and caller in (owner, self._platform.admin)
        return False

    def require(self, caller: str, capability: Capability, owner: str | None = None) -> None:
        """
        Raise Unauthorized unless `caller` holds `capability`.

        `owner` is the identity that owns the record, for RECORD_OWNER checks.
        """
        if not self.holds(caller, capability, owner):
            logger.warning("Denied %s capability to %s", capability.value, caller)
            raise Unauthorized(f"{capability.value} capability required")
