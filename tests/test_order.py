"""Tests for order assembly and EIP-712 signing."""

import dataclasses
import json
import threading
import time

import pytest
from eth_account import Account

from poly_trade_sdk.errors import InvalidOrder, SigningFailed
from poly_trade_sdk.order import (
    CTF_EXCHANGE_POLYGON,
    NEG_RISK_CTF_EXCHANGE_POLYGON,
    ORDER_TYPES,
    ZERO_ADDRESS,
    FixedNonceSource,
    LocalAccountSigner,
    MonotonicNonceSource,
    OrderBuilder,
    OrderType,
    Side,
    SignatureType,
    SignedOrder,
    compute_amounts,
    create_eip712_domain,
    generate_salt,
    recover_order_signer,
    sign_order,
    sign_order_with_signer,
    validate_expiration,
    verify_order_signature,
)

from conftest import PROXY_ADDRESS, TEST_ADDRESS, TEST_PRIVATE_KEY, TOKEN_ID


@pytest.fixture
def builder():
    return OrderBuilder(maker=TEST_ADDRESS, signer=TEST_ADDRESS, nonce_source=FixedNonceSource(0))


@pytest.fixture
def order(builder):
    maker_amount, taker_amount = compute_amounts(Side.BUY, "0.38", 5)
    return builder.build(
        token_id=TOKEN_ID,
        side=Side.BUY,
        maker_amount=maker_amount,
        taker_amount=taker_amount,
    )


class TestOrderBuilder:
    """Tests for order assembly."""

    def test_build_fields(self, order):
        assert order.maker == TEST_ADDRESS
        assert order.signer == TEST_ADDRESS
        assert order.taker == ZERO_ADDRESS
        assert order.token_id == int(TOKEN_ID)
        assert order.maker_amount.value == 1_900000
        assert order.taker_amount.value == 5_000000
        assert order.expiration == 0
        assert order.nonce == 0
        assert order.fee_rate_bps == 0
        assert order.side == Side.BUY
        assert order.signature_type == SignatureType.EOA

    def test_proxy_maker_differs_from_signer(self):
        builder = OrderBuilder(
            maker=PROXY_ADDRESS,
            signer=TEST_ADDRESS,
            signature_type=SignatureType.POLY_PROXY,
        )
        maker_amount, taker_amount = compute_amounts(Side.SELL, "0.5", 10)
        order = builder.build(TOKEN_ID, "sell", maker_amount, taker_amount)

        assert order.maker == PROXY_ADDRESS
        assert order.signer == TEST_ADDRESS
        assert order.side == Side.SELL
        assert order.signature_type == SignatureType.POLY_PROXY

    def test_salts_unique(self, builder, order):
        maker_amount, taker_amount = order.maker_amount, order.taker_amount
        salts = {
            builder.build(TOKEN_ID, Side.BUY, maker_amount, taker_amount).salt
            for _ in range(200)
        }
        assert len(salts) == 200

    def test_salt_has_128_bits(self):
        assert all(0 <= generate_salt() < 2**128 for _ in range(50))
        assert any(generate_salt() >= 2**64 for _ in range(50))

    def test_hex_token_id(self, builder, order):
        built = builder.build("0xff", Side.BUY, order.maker_amount, order.taker_amount)
        assert built.token_id == 255

    @pytest.mark.parametrize("token_id", ["abc", "0", -5])
    def test_invalid_token_id(self, builder, order, token_id):
        with pytest.raises(InvalidOrder, match="Invalid token_id"):
            builder.build(token_id, Side.BUY, order.maker_amount, order.taker_amount)

    @pytest.mark.parametrize("fee", [-1, 10_001])
    def test_invalid_fee_rate(self, builder, order, fee):
        with pytest.raises(InvalidOrder, match="Invalid fee_rate_bps"):
            builder.build(
                TOKEN_ID, Side.BUY, order.maker_amount, order.taker_amount, fee_rate_bps=fee
            )

    def test_invalid_addresses(self):
        with pytest.raises(InvalidOrder, match="Invalid maker"):
            OrderBuilder(maker="invalid", signer=TEST_ADDRESS)

    def test_order_is_immutable(self, order):
        with pytest.raises(dataclasses.FrozenInstanceError):
            order.expiration = 123


class TestNonceSource:
    """Tests for nonce sources."""

    def test_monotonic_increases(self):
        source = MonotonicNonceSource()
        nonces = [source.next_nonce() for _ in range(1000)]
        assert nonces == sorted(nonces)
        assert len(set(nonces)) == len(nonces)

    def test_monotonic_seeded_from_clock(self):
        before = int(time.time() * 1000)
        assert MonotonicNonceSource().next_nonce() >= before

    def test_monotonic_thread_safe(self):
        source = MonotonicNonceSource(start=0)
        results = []

        def worker():
            results.extend(source.next_nonce() for _ in range(500))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 2000
        assert len(set(results)) == 2000

    def test_fixed(self):
        source = FixedNonceSource(7)
        assert source.next_nonce() == source.next_nonce() == 7


class TestExpiration:
    """Tests for expiration vs lifetime policy."""

    def test_gtc_requires_zero(self):
        validate_expiration(OrderType.GTC, 0)
        with pytest.raises(InvalidOrder, match="only allowed for GTD"):
            validate_expiration(OrderType.GTC, int(time.time()) + 900)

    def test_gtd_requires_future(self):
        now = 1_700_000_000
        validate_expiration("GTD", now + 900, now=now)
        with pytest.raises(InvalidOrder, match="GTD expiration"):
            validate_expiration("GTD", now + 30, now=now)
        with pytest.raises(InvalidOrder, match="GTD expiration"):
            validate_expiration("GTD", 0, now=now)


class TestSigning:
    """Tests for EIP-712 order signing."""

    def test_domain(self):
        domain = create_eip712_domain(CTF_EXCHANGE_POLYGON.lower(), 137)
        assert domain == {
            "name": "Polymarket CTF Exchange",
            "version": "1",
            "chainId": 137,
            "verifyingContract": CTF_EXCHANGE_POLYGON,
        }

    def test_domain_invalid_address(self):
        with pytest.raises(ValueError, match="Invalid exchange address"):
            create_eip712_domain("invalid", 137)

    def test_schema_field_order(self):
        names = [field["name"] for field in ORDER_TYPES["Order"]]
        assert names == [
            "salt", "maker", "signer", "taker", "tokenId", "makerAmount",
            "takerAmount", "expiration", "nonce", "feeRateBps", "side", "signatureType",
        ]
        types = {field["name"]: field["type"] for field in ORDER_TYPES["Order"]}
        assert types["side"] == "uint8"
        assert types["signatureType"] == "uint8"

    def test_sign_and_verify(self, order):
        signed = sign_order(TEST_PRIVATE_KEY, CTF_EXCHANGE_POLYGON, order, 137)

        assert isinstance(signed, SignedOrder)
        assert signed.signature.startswith("0x")
        assert len(signed.signature) == 132
        assert verify_order_signature(signed, CTF_EXCHANGE_POLYGON, 137, TEST_ADDRESS) is True

    def test_wrong_signer_fails(self, order):
        signed = sign_order(TEST_PRIVATE_KEY, CTF_EXCHANGE_POLYGON, order, 137)
        wrong_address = Account.create().address

        assert verify_order_signature(signed, CTF_EXCHANGE_POLYGON, 137, wrong_address) is False

    @pytest.mark.parametrize(
        "change",
        [
            {"expiration": 1_800_000_000},
            {"nonce": 1},
            {"fee_rate_bps": 10},
            {"side": Side.SELL},
            {"salt": 42},
            {"taker": PROXY_ADDRESS},
        ],
    )
    def test_mutated_field_invalidates(self, order, change):
        signed = sign_order(TEST_PRIVATE_KEY, CTF_EXCHANGE_POLYGON, order, 137)
        tampered = SignedOrder(
            order=dataclasses.replace(order, **change), signature=signed.signature
        )

        assert verify_order_signature(tampered, CTF_EXCHANGE_POLYGON, 137, TEST_ADDRESS) is False

    def test_domain_is_bound(self, order):
        signed = sign_order(TEST_PRIVATE_KEY, CTF_EXCHANGE_POLYGON, order, 137)

        assert verify_order_signature(signed, NEG_RISK_CTF_EXCHANGE_POLYGON, 137, TEST_ADDRESS) is False
        assert verify_order_signature(signed, CTF_EXCHANGE_POLYGON, 80002, TEST_ADDRESS) is False

    def test_key_must_match_signer(self, order):
        other_key = "0x" + "cd" * 32
        with pytest.raises(SigningFailed, match="does not match"):
            sign_order(other_key, CTF_EXCHANGE_POLYGON, order, 137)

    def test_bad_key(self, order):
        with pytest.raises(SigningFailed):
            sign_order("0x1234", CTF_EXCHANGE_POLYGON, order, 137)

    @pytest.mark.asyncio
    async def test_signer_matches_private_key_signing(self, order):
        signer = LocalAccountSigner(TEST_PRIVATE_KEY)

        via_signer = await sign_order_with_signer(signer, CTF_EXCHANGE_POLYGON, order, 137)
        via_key = sign_order(TEST_PRIVATE_KEY, CTF_EXCHANGE_POLYGON, order, 137)

        assert via_signer.signature == via_key.signature
        assert recover_order_signer(via_signer, CTF_EXCHANGE_POLYGON, 137) == TEST_ADDRESS

    def test_signer_repr_hides_key(self):
        signer = LocalAccountSigner(TEST_PRIVATE_KEY)
        assert "ab" * 32 not in repr(signer)
        assert TEST_ADDRESS in repr(signer)

    def test_payload(self, order):
        payload = sign_order(TEST_PRIVATE_KEY, CTF_EXCHANGE_POLYGON, order, 137).to_payload()

        assert payload["side"] == "BUY"
        assert payload["makerAmount"] == "1900000"
        assert payload["takerAmount"] == "5000000"
        assert payload["tokenId"] == TOKEN_ID
        assert payload["salt"] == str(order.salt)
        assert payload["signatureType"] == 0

    def test_payload_salt_survives_double_parsing(self, builder, order):
        """A 128-bit salt is sent as a string so float-based JSON readers keep it exact."""
        salt = 2**127 + 12345
        big = builder.build(
            TOKEN_ID, Side.BUY, order.maker_amount, order.taker_amount, salt=salt
        )
        payload = sign_order(TEST_PRIVATE_KEY, CTF_EXCHANGE_POLYGON, big, 137).to_payload()

        decoded = json.loads(json.dumps(payload), parse_int=float)
        assert int(decoded["salt"]) == salt
