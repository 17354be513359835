"""Tests for response formatting."""

from decimal import Decimal

from app.api.responses import explorer_url, format_error, format_success
from app.engine.errors import ErrorKind, PaymentError
from app.models.enums import Chain, LegRole, Token
from app.models.payment import CommissionSplit, PaymentRequest, PaymentResult, TransferLeg, TransferOutcome

from tests.conftest import COMMISSION_ADDRESS, MERCHANT_ADDRESS

COMMISSION_HASH = "0x" + "a" * 64
MERCHANT_HASH = "0x" + "b" * 64


def make_result(total: int, commission: int, token=Token.USDC, chain=Chain.BASE, decimals=6) -> PaymentResult:
    request = PaymentRequest(
        merchant_address=MERCHANT_ADDRESS,
        total_amount=total,
        token=token,
        chain=chain,
        token_contract="0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
        decimals=decimals,
    )
    split = CommissionSplit(total_amount=total, commission_amount=commission, merchant_amount=total - commission)
    return PaymentResult(
        request=request,
        split=split,
        commission=TransferOutcome(
            leg=TransferLeg(COMMISSION_ADDRESS, commission, LegRole.COMMISSION),
            tx_hash=COMMISSION_HASH,
            block_number=100,
            confirmed=True,
            gas_used=50_000,
        ),
        merchant=TransferOutcome(
            leg=TransferLeg(MERCHANT_ADDRESS, total - commission, LegRole.MERCHANT),
            tx_hash=MERCHANT_HASH,
            block_number=102,
            confirmed=True,
            gas_used=52_000,
        ),
        from_address="0x000000000000000000000000000000000000dEaD",
    )


class TestExplorerUrl:
    def test_base(self):
        assert explorer_url("base", "0xabc") == "https://basescan.org/tx/0xabc"

    def test_arbitrum(self):
        assert explorer_url("arbitrum", "0xabc") == "https://arbiscan.io/tx/0xabc"


class TestFormatSuccess:
    def test_fifteen_usdc(self):
        doc = format_success(make_result(15_000_000, 75_000), Decimal("0.005"), COMMISSION_ADDRESS)

        assert doc["success"] is True
        assert doc["tx_hash"] == MERCHANT_HASH
        assert doc["tx_hash_commission"] == COMMISSION_HASH
        assert doc["block_number"] == 102
        assert doc["block_number_commission"] == 100
        assert doc["explorer_url"] == f"https://basescan.org/tx/{MERCHANT_HASH}"
        assert doc["explorer_url_commission"] == f"https://basescan.org/tx/{COMMISSION_HASH}"
        assert doc["total_amount"] == "15000000"
        assert doc["commission_amount"] == "75000"
        assert doc["merchant_amount"] == "14925000"
        assert doc["commission_rate"] == 0.005
        assert doc["total_usd"] == 15.0
        assert doc["commission_usd"] == 0.075
        assert doc["merchant_usd"] == 14.925
        assert doc["gas_used"] == "102000"
        assert doc["commission_address"] == COMMISSION_ADDRESS
        assert doc["merchant"] == MERCHANT_ADDRESS
        assert doc["token"] == "USDC"
        assert doc["chain"] == "base"

    def test_dai_scaling(self):
        total = 2 * 10**18
        doc = format_success(
            make_result(total, 10**16, token=Token.DAI, chain=Chain.ETHEREUM, decimals=18),
            Decimal("0.005"),
            COMMISSION_ADDRESS,
        )
        assert doc["total_usd"] == 2.0
        assert doc["commission_usd"] == 0.01
        assert doc["total_amount"] == str(total)
        assert doc["explorer_url"].startswith("https://etherscan.io/tx/")


class TestFormatError:
    def test_merchant_failed_links_commission(self):
        error = PaymentError(ErrorKind.MERCHANT_FAILED, "merchant leg reverted", {
            "chain": "polygon",
            "tx_hash": MERCHANT_HASH,
            "tx_hash_commission": COMMISSION_HASH,
        })
        status, body = format_error(error)

        assert status == 500
        assert body["error"] == "Merchant transfer failed"
        assert body["kind"] == "merchant_failed"
        assert body["tx_hash_commission"] == COMMISSION_HASH
        assert body["explorer_url_commission"] == f"https://polygonscan.com/tx/{COMMISSION_HASH}"
        assert body["explorer_url"] == f"https://polygonscan.com/tx/{MERCHANT_HASH}"

    def test_unauthorized(self):
        status, body = format_error(PaymentError(ErrorKind.UNAUTHORIZED, "not the owner"))
        assert status == 403
        assert body == {"error": "Forbidden", "message": "not the owner", "kind": "unauthorized"}

    def test_missing_credential(self):
        status, _ = format_error(PaymentError(ErrorKind.MISSING_CREDENTIAL, "header required"))
        assert status == 401

    def test_validation_errors_are_400(self):
        for kind in (ErrorKind.MISSING_FIELDS, ErrorKind.UNSUPPORTED_CHAIN, ErrorKind.UNSUPPORTED_TOKEN,
                     ErrorKind.TOKEN_NOT_ON_CHAIN, ErrorKind.INVALID_AMOUNT):
            status, _ = format_error(PaymentError(kind, "bad"))
            assert status == 400

    def test_every_kind_has_a_category(self):
        for kind in ErrorKind:
            status, body = format_error(PaymentError(kind, "x"))
            assert status in (400, 401, 403, 500)
            assert body["error"]
