"""Reference generation for transactions, ledger entries and settlement batches."""

import logging
import secrets
from datetime import datetime
from typing import Callable, Optional

from walletledger.domain.errors import ConflictError
from walletledger.utils.date_parser import utcnow

logger = logging.getLogger(__name__)

BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

TRANSACTION_PREFIX = "TXN"
TRANSFER_PREFIX = "TRF"
REVENUE_PREFIX = "REV"
LEDGER_PREFIX = "LEDGER"
SETTLEMENT_PREFIX = "SETTLE"


def _random_base36(length: int) -> str:
    return "".join(secrets.choice(BASE36) for _ in range(length))


class ReferenceGenerator:
    """Generates human-readable unique references.

    References are ``PREFIX-yyyyMMddHHmmss-HEX8``. An optional ``exists``
    callable is consulted for each candidate; a taken candidate is replaced,
    up to ``max_attempts`` times. Unique indexes in the database remain the
    final guard.
    """

    def __init__(
        self,
        exists: Optional[Callable[[str], bool]] = None,
        clock: Callable[[], datetime] = utcnow,
        max_attempts: int = 5,
    ):
        """Initialize reference generator.

        Args:
            exists: Returns True when a candidate reference is already taken
            clock: Source of the current (naive UTC) time
            max_attempts: Candidates tried before giving up
        """
        self.exists = exists
        self.clock = clock
        self.max_attempts = max_attempts

    def _unique(self, make: Callable[[], str]) -> str:
        for _ in range(self.max_attempts):
            candidate = make()
            if self.exists is None or not self.exists(candidate):
                return candidate
            logger.warning("Reference collision on %s, retrying", candidate)
        raise ConflictError(f"Could not generate a unique reference after {self.max_attempts} attempts")

    def generate(self, prefix: str = TRANSACTION_PREFIX) -> str:
        """Generate a ``PREFIX-yyyyMMddHHmmss-HEX8`` reference.

        Raises:
            ConflictError: If every candidate was already taken
        """

        def make() -> str:
            stamp = self.clock().strftime("%Y%m%d%H%M%S")
            return f"{prefix}-{stamp}-{secrets.token_hex(4).upper()}"

        return self._unique(make)

    def generate_batch_ref(self) -> str:
        """Generate a ``SETTLE-<epochMillis>-<base36x5>`` batch reference."""

        def make() -> str:
            moment = self.clock()
            epoch = datetime(1970, 1, 1)
            millis = int((moment - epoch).total_seconds() * 1000)
            return f"{SETTLEMENT_PREFIX}-{millis}-{_random_base36(5)}"

        return self._unique(make)
