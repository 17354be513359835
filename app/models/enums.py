"""Enumerations for the signing service domain model."""

from enum import Enum


class Token(str, Enum):
    """Supported ERC-20 stablecoins."""

    USDC = "USDC"
    USDT = "USDT"
    DAI = "DAI"


class Chain(str, Enum):
    """Supported EVM networks."""

    ETHEREUM = "ethereum"
    BASE = "base"
    POLYGON = "polygon"
    ARBITRUM = "arbitrum"


class LegRole(str, Enum):
    """The two transfers composing a payment."""

    COMMISSION = "commission"
    MERCHANT = "merchant"


class PaymentState(str, Enum):
    """Lifecycle states of a single payment request."""

    AUTHORIZING = "authorizing"
    VALIDATING = "validating"
    SPLITTING = "splitting"
    COMMISSION_PENDING = "commission_pending"
    COMMISSION_CONFIRMED = "commission_confirmed"
    MERCHANT_PENDING = "merchant_pending"
    MERCHANT_CONFIRMED = "merchant_confirmed"
    FAILED = "failed"


class AuthOutcome(str, Enum):
    """Result categories of the owner credential check."""

    AUTHORIZED = "authorized"
    UNAUTHORIZED = "unauthorized"
    MISCONFIGURED = "misconfigured"
