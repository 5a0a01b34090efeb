"""
Deployer resolution.

Determines the effective deployer of a factory token. Sources in priority order:
1. Verified override table keyed by transaction hash
2. The _deployer argument of the factory deployToken call
3. The legacy deployer field of the event (historically tx.from)
4. The transaction sender, accepted even if excluded

Sources 2 and 3 never yield an excluded address.
"""

from collections.abc import Iterable, Mapping

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from loguru import logger

from collector.config.chain_constants import (
    DEPLOY_TOKEN_ARG_TYPES,
    DEPLOY_TOKEN_DEPLOYER_INDEX,
    DEPLOY_TOKEN_SELECTOR,
    EXCLUDED_DEPLOYERS,
    KNOWN_DEPLOYERS,
    UNKNOWN_DEPLOYER,
)
from collector.services.chain.client import ChainClient, TransactionInfo
from collector.utils.exceptions import ProviderError, ResolutionDegradation
from collector.utils.security import mask_address, mask_tx_hash
from collector.utils.validation import is_valid_address

_SELECTOR_BYTES = bytes.fromhex(DEPLOY_TOKEN_SELECTOR[2:])


class DeployerCache:
    """
    Memo of resolved deployers by transaction hash.

    Lives as long as its resolver; nothing is persisted.
    """

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    def get(self, tx_hash: str) -> str | None:
        return self._entries.get(tx_hash.lower())

    def set(self, tx_hash: str, deployer: str) -> None:
        self._entries[tx_hash.lower()] = deployer

    def __contains__(self, tx_hash: object) -> bool:
        return isinstance(tx_hash, str) and tx_hash.lower() in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def decode_deployer_argument(calldata: bytes) -> str:
    """
    Extract the _deployer argument from deployToken calldata.

    Raises:
        ResolutionDegradation: If calldata is not a decodable deployToken call
    """
    if calldata[:4] != _SELECTOR_BYTES:
        raise ResolutionDegradation(
            f"Method {('0x' + calldata[:4].hex()) if calldata else 'empty'} "
            f"is not deployToken"
        )

    try:
        args = abi_decode(DEPLOY_TOKEN_ARG_TYPES, calldata[4:])
    except (DecodingError, ValueError, TypeError, OverflowError) as e:
        raise ResolutionDegradation(f"Cannot decode deployToken input: {e}") from e

    return args[DEPLOY_TOKEN_DEPLOYER_INDEX]


class DeployerResolver:
    """
    Resolves and memoizes token deployers.

    Never raises on RPC failures: a missing transaction only removes
    sources 2 and 4 from the chain, and "unknown" is a valid result.
    """

    def __init__(
        self,
        chain: ChainClient,
        known_deployers: Mapping[str, str] | None = None,
        excluded: Iterable[str] | None = None,
        cache: DeployerCache | None = None,
    ) -> None:
        """
        Initialize resolver.

        Args:
            chain: Chain client for transaction lookups
            known_deployers: Override table (tx hash -> deployer)
            excluded: Addresses never accepted from sources 2 and 3
            cache: Deployer cache (a fresh one by default)
        """
        self.chain = chain
        source = KNOWN_DEPLOYERS if known_deployers is None else known_deployers
        self.known_deployers = {
            tx.lower(): deployer.lower() for tx, deployer in source.items()
        }
        self.excluded = frozenset(
            a.lower() for a in (EXCLUDED_DEPLOYERS if excluded is None else excluded)
        )
        self.cache = cache if cache is not None else DeployerCache()

    def is_excluded(self, address: str | None) -> bool:
        """Check if address must not be used as deployer."""
        if not address:
            return True
        return address.lower() in self.excluded

    async def _fetch_transaction(
        self, tx_hash: str
    ) -> tuple[TransactionInfo | None, bool]:
        """
        Fetch transaction, degrading on RPC failure.

        Returns:
            (transaction or None, whether the lookup itself failed)
        """
        try:
            return await self.chain.get_transaction(tx_hash), False
        except ProviderError as e:
            logger.warning(
                f"[Resolver] Transaction {mask_tx_hash(tx_hash)} unavailable: {e}"
            )
            return None, True

    def _deployer_from_input(self, tx: TransactionInfo) -> str | None:
        try:
            candidate = decode_deployer_argument(tx.calldata)
        except ResolutionDegradation as e:
            logger.debug(f"[Resolver] {mask_tx_hash(tx.hash)}: {e}")
            return None

        if not is_valid_address(candidate) or self.is_excluded(candidate):
            logger.info(
                f"[Resolver] _deployer {candidate} in {mask_tx_hash(tx.hash)} "
                f"is excluded or invalid"
            )
            return None

        return candidate.lower()

    async def resolve(self, tx_hash: str, legacy_deployer: str | None = None) -> str:
        """
        Resolve the deployer for a factory transaction.

        Args:
            tx_hash: Transaction hash of the TokenCreated event
            legacy_deployer: Deployer field from the event payload

        Returns:
            Lowercase deployer address or "unknown"
        """
        tx_hash = tx_hash.lower()

        cached = self.cache.get(tx_hash)
        if cached is not None:
            return cached

        known = self.known_deployers.get(tx_hash)
        if known:
            logger.info(
                f"[Resolver] Using known deployer {mask_address(known)} "
                f"for {mask_tx_hash(tx_hash)}"
            )
            self.cache.set(tx_hash, known)
            return known

        tx, lookup_failed = await self._fetch_transaction(tx_hash)

        deployer = self._deployer_from_input(tx) if tx else None
        if deployer:
            source = "_deployer argument"
        elif legacy_deployer and not self.is_excluded(legacy_deployer):
            deployer = legacy_deployer.lower()
            source = "legacy event deployer"
        elif tx and tx.sender:
            deployer = tx.sender.lower()
            source = "transaction sender"
        else:
            deployer = UNKNOWN_DEPLOYER
            source = "none"

        logger.debug(
            f"[Resolver] {mask_tx_hash(tx_hash)}: deployer "
            f"{deployer} from {source}"
        )

        # Degraded results are not memoized
        if not lookup_failed:
            self.cache.set(tx_hash, deployer)

        return deployer
