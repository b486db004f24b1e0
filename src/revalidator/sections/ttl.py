"""Freshness windows for fetched section data.

Fetchers call these after a successful fetch to learn when their result stops
being guaranteed fresh, then hand that time to the scheduler.
"""

from __future__ import annotations

from datetime import datetime, timedelta

ONE_HOUR = 60 * 60
ONE_DAY = 24 * ONE_HOUR
ONE_WEEK = 7 * ONE_DAY

TTL_DNS_DEFAULT = ONE_HOUR  # fallback when the record carries no TTL
TTL_DNS_MAX = ONE_DAY  # cap for received TTLs
TTL_HEADERS = 12 * ONE_HOUR
TTL_HOSTING = ONE_DAY
TTL_SEO = ONE_DAY
TTL_REGISTRATION_REGISTERED = ONE_DAY
TTL_REGISTRATION_NEAR_EXPIRY = ONE_HOUR
TTL_REGISTRATION_EXPIRY_THRESHOLD = ONE_WEEK
TTL_CERTIFICATES_WINDOW = ONE_DAY
TTL_CERTIFICATES_MIN = ONE_HOUR
TTL_CERTIFICATES_EXPIRY_BUFFER = 2 * ONE_DAY


def add_seconds(base: datetime, seconds: int) -> datetime:
    return base + timedelta(seconds=seconds)


def ttl_for_dns_record(now: datetime, ttl_seconds: int | None = None) -> datetime:
    if ttl_seconds is not None and ttl_seconds > 0:
        ttl = min(ttl_seconds, TTL_DNS_MAX)
    else:
        ttl = TTL_DNS_DEFAULT
    return add_seconds(now, ttl)


def ttl_for_headers(now: datetime) -> datetime:
    return add_seconds(now, TTL_HEADERS)


def ttl_for_hosting(now: datetime) -> datetime:
    return add_seconds(now, TTL_HOSTING)


def ttl_for_seo(now: datetime) -> datetime:
    return add_seconds(now, TTL_SEO)


def ttl_for_registration(now: datetime, expiration_date: datetime | None = None) -> datetime:
    # Revalidate aggressively in the last week before expiry
    if expiration_date is not None:
        until_expiry = expiration_date - now
        if until_expiry <= timedelta(seconds=TTL_REGISTRATION_EXPIRY_THRESHOLD):
            return add_seconds(now, TTL_REGISTRATION_NEAR_EXPIRY)
    return add_seconds(now, TTL_REGISTRATION_REGISTERED)


def ttl_for_certificates(now: datetime, valid_to: datetime) -> datetime:
    """Daily sliding window, tightened to start checking 48h before expiry.

    Never sooner than an hour from now, including for expired certificates.
    """
    window = add_seconds(now, TTL_CERTIFICATES_WINDOW)
    revalidate_before = valid_to - timedelta(seconds=TTL_CERTIFICATES_EXPIRY_BUFFER)
    return max(min(window, revalidate_before), add_seconds(now, TTL_CERTIFICATES_MIN))


def to_epoch_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)
