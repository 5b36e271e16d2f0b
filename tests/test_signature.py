import logging

from housecalls.signature import compute_signature, verify_signature

from conftest import sign

BODY = b'{"event":"charge.success","data":{"reference":"ps_ref_X"}}'


def test_valid_signature_accepted():
    assert verify_signature(BODY, sign(BODY), "whsec_test") is True


def test_signature_is_hmac_sha512_hex():
    sig = compute_signature(BODY, "whsec_test")
    assert len(sig) == 128
    assert sig == sign(BODY)


def test_uppercase_header_still_matches():
    assert verify_signature(BODY, sign(BODY).upper(), "whsec_test") is True


def test_mismatch_rejected():
    assert verify_signature(BODY, sign(BODY, "other-secret"), "whsec_test") is False


def test_body_must_be_exact_bytes():
    reserialized = b'{"event": "charge.success", "data": {"reference": "ps_ref_X"}}'
    assert verify_signature(reserialized, sign(BODY), "whsec_test") is False


def test_missing_header_rejected():
    assert verify_signature(BODY, None, "whsec_test") is False
    assert verify_signature(BODY, "", "whsec_test") is False


def test_non_ascii_header_does_not_raise():
    assert verify_signature(BODY, "sïgnature", "whsec_test") is False


def test_no_secret_fails_closed(caplog):
    with caplog.at_level(logging.ERROR, logger="housecalls.signature"):
        assert verify_signature(BODY, sign(BODY), None) is False
        assert verify_signature(BODY, sign(BODY, ""), "") is False
    assert "not configured" in caplog.text
