"""Minimal in-memory versions of the protocols the bundled adapters target.

They model only what the actions observe: share accounting, deposit and
withdraw entrypoints, and how yield shows up in balances. Entry points are
async like contract calls; ``caller`` plays the role of ``msg.sender``.
Yield/interest helpers (``accrue_*``) are synchronous test and script hooks.
"""

from __future__ import annotations

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import to_checksum_address

from brava_actions.core.constants.base import FEE_BASIS_POINTS, MAX_UINT256
from brava_actions.core.errors import ExternalCallError
from brava_actions.core.simulation.chain import ERC20Token, RebasingToken


def _ceil_div(a: int, b: int) -> int:
    return -(-a // b)


def accrue_interest(token: RebasingToken, reserve: ERC20Token, bps: int) -> int:
    """Grow ``token``'s index by ``bps`` and back the growth with ``reserve``.

    The backing is minted to ``token.address``, which is where both aTokens
    and Comet keep the underlying they owe. Returns the interest created.
    """
    supply_before = token.total_supply()
    token.set_index(token.index * (FEE_BASIS_POINTS + bps) // FEE_BASIS_POINTS)
    interest = token.total_supply() - supply_before
    if interest > 0:
        reserve.mint(token.address, interest)
    return interest


class SimulatedErc4626Vault(ERC20Token):
    """ERC4626 vault whose share token is the vault itself.

    Uses the virtual share/asset offset from the OpenZeppelin implementation,
    so conversions round in the vault's favor.
    """

    def __init__(
        self,
        address: str,
        asset: ERC20Token,
        symbol: str,
        *,
        decimals_offset: int = 0,
    ):
        super().__init__(address, symbol, asset.decimals + decimals_offset)
        self.underlying = asset
        self.decimals_offset = decimals_offset

    def total_assets(self) -> int:
        return self.underlying.balance_of(self.address)

    def _to_shares(self, assets: int, *, round_up: bool = False) -> int:
        num = assets * (self.total_supply() + 10**self.decimals_offset)
        den = self.total_assets() + 1
        return _ceil_div(num, den) if round_up else num // den

    def _to_assets(self, shares: int, *, round_up: bool = False) -> int:
        num = shares * (self.total_assets() + 1)
        den = self.total_supply() + 10**self.decimals_offset
        return _ceil_div(num, den) if round_up else num // den

    def accrue_yield(self, amount: int) -> None:
        self.underlying.mint(self.address, amount)

    async def asset(self) -> str:
        return self.underlying.address

    async def convert_to_assets(self, shares: int) -> int:
        return self._to_assets(shares)

    async def preview_redeem(self, shares: int) -> int:
        return self._to_assets(shares)

    async def max_withdraw(self, owner: str) -> int:
        return self._to_assets(self.balance_of(owner))

    async def deposit(self, assets: int, receiver: str, *, caller: str) -> int:
        shares = self._to_shares(assets)
        if shares == 0:
            raise ExternalCallError(f"{self.symbol}: deposit yields zero shares")
        self.underlying.transfer_from(self.address, caller, self.address, assets)
        self.mint(receiver, shares)
        return shares

    async def withdraw(
        self, assets: int, receiver: str, owner: str, *, caller: str
    ) -> int:
        if assets > await self.max_withdraw(owner):
            raise ExternalCallError(f"{self.symbol}: withdraw more than max")
        shares = self._to_shares(assets, round_up=True)
        self._spend_shares(caller, owner, shares)
        self.underlying.transfer(self.address, receiver, assets)
        return shares

    async def redeem(
        self, shares: int, receiver: str, owner: str, *, caller: str
    ) -> int:
        if shares > self.balance_of(owner):
            raise ExternalCallError(f"{self.symbol}: redeem more than max")
        assets = self._to_assets(shares)
        self._spend_shares(caller, owner, shares)
        self.underlying.transfer(self.address, receiver, assets)
        return assets

    def _spend_shares(self, caller: str, owner: str, shares: int) -> None:
        if to_checksum_address(caller) != to_checksum_address(owner):
            allowed = self.allowance(owner, caller)
            if allowed < shares:
                raise ExternalCallError(f"{self.symbol}: insufficient allowance")
            self.approve(owner, caller, allowed - shares)
        self.burn(owner, shares)


class SimulatedMaplePool(SimulatedErc4626Vault):
    """ERC4626 pool whose exits go through a redemption queue.

    ``request_redeem`` escrows the shares in the pool and returns a request
    id; the shares are only redeemed when ``process_redemptions`` runs. An
    owner can have a single pending request at a time.
    """

    _state_fields = ERC20Token._state_fields + (
        "requests",
        "pending",
        "next_request_id",
    )

    def __init__(self, address: str, asset: ERC20Token, symbol: str, **kwargs):
        super().__init__(address, asset, symbol, **kwargs)
        self.requests: dict[int, tuple[str, int]] = {}
        self.pending: dict[str, int] = {}
        self.next_request_id = 1

    async def max_withdraw(self, owner: str) -> int:
        return 0

    async def withdraw(self, *args, **kwargs) -> int:
        raise ExternalCallError("PM:W:NOT_ENABLED")

    async def request_redeem(self, shares: int, owner: str, *, caller: str) -> int:
        owner = to_checksum_address(owner)
        if owner in self.pending:
            raise ExternalCallError("WM:AS:WITHDRAWAL_PENDING")
        if shares == 0 or shares > self.balance_of(owner):
            raise ExternalCallError("WM:AS:INVALID_SHARES")
        if to_checksum_address(caller) != owner:
            raise ExternalCallError("PM:RR:NOT_OWNER")
        request_id = self.next_request_id
        self.next_request_id += 1
        self.transfer(owner, self.address, shares)
        self.requests[request_id] = (owner, shares)
        self.pending[owner] = request_id
        return request_id

    def pending_request(self, owner: str) -> int | None:
        return self.pending.get(to_checksum_address(owner))

    def process_redemptions(self) -> list[int]:
        processed = []
        for request_id, (owner, shares) in sorted(self.requests.items()):
            assets = self._to_assets(shares)
            self.burn(self.address, shares)
            self.underlying.transfer(self.address, owner, assets)
            del self.pending[owner]
            processed.append(request_id)
        self.requests = {}
        return processed


class SimulatedAToken(RebasingToken):
    def __init__(
        self,
        address: str,
        symbol: str,
        underlying: ERC20Token,
        pool_address: str,
    ):
        super().__init__(address, symbol, underlying.decimals)
        self.underlying = underlying
        self.pool_address = to_checksum_address(pool_address)

    async def underlying_asset_address(self) -> str:
        return self.underlying.address

    async def pool(self) -> str:
        return self.pool_address

    def accrue_interest(self, bps: int) -> int:
        return accrue_interest(self, self.underlying, bps)


class SimulatedAavePool:
    """Aave V3 ``Pool``: one reserve per underlying, each with its aToken."""

    def __init__(self, address: str):
        self.address = to_checksum_address(address)
        self.reserves: dict[str, SimulatedAToken] = {}

    def __repr__(self) -> str:
        return f"SimulatedAavePool({self.address})"

    def list_reserve(self, a_token: SimulatedAToken) -> None:
        self.reserves[a_token.underlying.address] = a_token

    def _reserve(self, asset: str) -> SimulatedAToken:
        a_token = self.reserves.get(to_checksum_address(asset))
        if a_token is None:
            raise ExternalCallError(f"reserve not listed: {asset}")
        return a_token

    async def supply(
        self, asset: str, amount: int, on_behalf_of: str, *, caller: str
    ) -> None:
        if amount == 0:
            raise ExternalCallError("26")  # INVALID_AMOUNT
        a_token = self._reserve(asset)
        a_token.underlying.transfer_from(self.address, caller, a_token.address, amount)
        a_token.mint(on_behalf_of, amount)

    async def withdraw(self, asset: str, amount: int, to: str, *, caller: str) -> int:
        a_token = self._reserve(asset)
        balance = a_token.balance_of(caller)
        if amount == MAX_UINT256:
            amount = balance
        if amount == 0 or amount > balance:
            raise ExternalCallError("32")  # NOT_ENOUGH_AVAILABLE_USER_BALANCE
        a_token.burn(caller, amount)
        a_token.underlying.transfer(a_token.address, to, amount)
        return amount


class SimulatedComet(RebasingToken):
    """Compound V3 market: the Comet contract is also the balance token."""

    def __init__(self, address: str, symbol: str, base: ERC20Token):
        super().__init__(address, symbol, base.decimals)
        self.base = base

    async def base_token(self) -> str:
        return self.base.address

    async def supply(self, asset: str, amount: int, *, caller: str) -> None:
        if to_checksum_address(asset) != self.base.address:
            raise ExternalCallError("Comet: only the base asset can be supplied")
        self.base.transfer_from(self.address, caller, self.address, amount)
        self.mint(caller, amount)

    async def withdraw(self, asset: str, amount: int, *, caller: str) -> None:
        if to_checksum_address(asset) != self.base.address:
            raise ExternalCallError("Comet: only the base asset can be withdrawn")
        if amount == MAX_UINT256:
            amount = self.balance_of(caller)
        self.burn(caller, amount)
        self.base.transfer(self.address, caller, amount)

    def accrue_interest(self, bps: int) -> int:
        return accrue_interest(self, self.base, bps)


class SimulatedYearnV2Vault(ERC20Token):
    """Yearn V2 vault: shares priced by ``price_per_share``, redeemed by count."""

    def __init__(self, address: str, want: ERC20Token, symbol: str):
        super().__init__(address, symbol, want.decimals)
        self.want = want

    def total_assets(self) -> int:
        return self.want.balance_of(self.address)

    def accrue_yield(self, amount: int) -> None:
        self.want.mint(self.address, amount)

    async def token(self) -> str:
        return self.want.address

    async def price_per_share(self) -> int:
        if self.total_supply() == 0:
            return 10**self.decimals
        return self.total_assets() * 10**self.decimals // self.total_supply()

    async def deposit(self, amount: int, recipient: str, *, caller: str) -> int:
        supply = self.total_supply()
        shares = amount * supply // self.total_assets() if supply else amount
        if shares == 0:
            raise ExternalCallError(f"{self.symbol}: deposit yields zero shares")
        self.want.transfer_from(self.address, caller, self.address, amount)
        self.mint(recipient, shares)
        return shares

    async def withdraw(self, max_shares: int, recipient: str, *, caller: str) -> int:
        shares = min(max_shares, self.balance_of(caller))
        if shares == 0:
            raise ExternalCallError(f"{self.symbol}: nothing to withdraw")
        value = shares * self.total_assets() // self.total_supply()
        self.burn(caller, shares)
        self.want.transfer(self.address, recipient, value)
        return value


class SimulatedSwapRouter:
    """Aggregator router with fixed pair rates.

    ``call`` behaves like a low-level call: it returns ``False`` instead of
    raising when the swap cannot be executed. Call data is the
    ``encode_swap`` payload; the router pays out of its own inventory.
    """

    SWAP_ABI = ["address", "address", "uint256"]

    def __init__(self, address: str):
        self.address = to_checksum_address(address)
        self.rates: dict[tuple[str, str], tuple[int, int]] = {}
        self.tokens: dict[str, ERC20Token] = {}

    def __repr__(self) -> str:
        return f"SimulatedSwapRouter({self.address})"

    def set_rate(
        self,
        token_in: ERC20Token,
        token_out: ERC20Token,
        numerator: int,
        denominator: int = 1,
    ) -> None:
        self.tokens[token_in.address] = token_in
        self.tokens[token_out.address] = token_out
        self.rates[(token_in.address, token_out.address)] = (numerator, denominator)

    def quote(self, token_in: str, token_out: str, amount: int) -> int:
        numerator, denominator = self.rates[
            (to_checksum_address(token_in), to_checksum_address(token_out))
        ]
        return amount * numerator // denominator

    @classmethod
    def encode_swap(cls, token_in: str, token_out: str, amount: int) -> bytes:
        return encode(
            cls.SWAP_ABI,
            [to_checksum_address(token_in), to_checksum_address(token_out), amount],
        )

    async def call(self, data: bytes, *, caller: str) -> bool:
        try:
            token_in, token_out, amount = decode(self.SWAP_ABI, data)
        except DecodingError:
            return False
        token_in = to_checksum_address(token_in)
        token_out = to_checksum_address(token_out)
        if (token_in, token_out) not in self.rates:
            return False

        src, dst = self.tokens[token_in], self.tokens[token_out]
        amount_out = self.quote(token_in, token_out, amount)
        if (
            src.allowance(caller, self.address) < amount
            or src.balance_of(caller) < amount
            or dst.balance_of(self.address) < amount_out
        ):
            return False

        src.transfer_from(self.address, caller, self.address, amount)
        dst.transfer(self.address, caller, amount_out)
        return True
