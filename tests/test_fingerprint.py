"""Tests for fingerprint module."""

from subtracker.lib.fingerprint import fingerprint, subscription_id, to_cents


def test_to_cents():
    assert to_cents(15.99) == 1599
    assert to_cents(1.005) == 101
    assert to_cents(10) == 1000


def test_id_deterministic():
    assert subscription_id("NETFLIX COM", "monthly", 15.99) == subscription_id(
        "NETFLIX COM", "monthly", 15.99
    )


def test_id_ignores_sub_cent_noise():
    assert subscription_id("NETFLIX COM", "monthly", 15.99) == subscription_id(
        "NETFLIX COM", "monthly", 15.990000001
    )


def test_id_different_amounts():
    assert subscription_id("STORE", "monthly", 15.99) != subscription_id("STORE", "monthly", 16.99)


def test_id_different_cadence():
    assert subscription_id("STORE", "monthly", 15.99) != subscription_id("STORE", "yearly", 15.99)


def test_fingerprint_is_sha256():
    fp = fingerprint("STORE", "monthly", 10.0)
    assert len(fp) == 64
    assert all(c in "0123456789abcdef" for c in fp)


def test_id_is_fingerprint_prefix():
    sid = subscription_id("STORE", "yearly", 99.0)
    assert len(sid) == 16
    assert fingerprint("STORE", "yearly", 99.0).startswith(sid)
