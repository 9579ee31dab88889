"""
Single-owner authorization for admin operations.

Mutating operations take the caller identity as their first argument and check
it against the owner the component was built with.
"""

import logging
from typing import Optional

from .errors import Unauthorized

logger = logging.getLogger(__name__)


class Authority:
    """Owner identity check for admin calls"""

    def __init__(self, owner: str):
        if not owner:
            raise ValueError("owner identity is required")
        self.owner = owner

    def is_authorized(self, caller: Optional[str]) -> bool:
        return caller == self.owner

    def require(self, caller: Optional[str], action: str = ""):
        """Raise Unauthorized unless caller is the owner"""
        if not self.is_authorized(caller):
            logger.warning(f"Rejected {action or 'admin call'} from {caller!r}")
            raise Unauthorized(caller)

    def transfer(self, caller: Optional[str], new_owner: str):
        """Hand ownership to a new identity"""
        self.require(caller, "ownership transfer")
        if not new_owner:
            raise ValueError("new owner identity is required")
        logger.info(f"Ownership transferred from {self.owner} to {new_owner}")
        self.owner = new_owner
