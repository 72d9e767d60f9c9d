"""HTTP session shared by the FIRMS, CAL FIRE and Open-Meteo fetchers."""

from __future__ import annotations

import logging

from requests import Session
from requests.adapters import HTTPAdapter
from urllib3.response import BaseHTTPResponse
from urllib3.util.retry import Retry

from initial_attack import __version__
from initial_attack.config import InitialAttackConfig

logger = logging.getLogger(__name__)

# FIRMS and CAL FIRE both reject requests without a User-Agent.
USER_AGENT = f"initial-attack/{__version__} (+wildfire decision support)"

# 429 is FIRMS' per-MAP_KEY transaction limit; the 5xx codes are gateway
# timeouts seen on the CAL FIRE registry during large incidents.
TRANSIENT_STATUSES = frozenset({429, 500, 502, 503, 504})

# A Retry-After longer than this is not waited out; the stale cache covers it.
MAX_RETRY_AFTER_SECONDS = 60


class _CappedRetry(Retry):
    def get_retry_after(self, response: BaseHTTPResponse) -> float | None:
        seconds = super().get_retry_after(response)
        if seconds is not None and seconds > MAX_RETRY_AFTER_SECONDS:
            logger.debug("Capping Retry-After of %.0fs", seconds)
            return float(MAX_RETRY_AFTER_SECONDS)
        return seconds


def create_session(
    retries: int = 3,
    backoff_factor: float = 0.5,
    user_agent: str = USER_AGENT,
) -> Session:
    """Session whose GETs retry connection errors and transient statuses.

    Attempts are spaced ``backoff_factor * 2 ** (n - 1)`` seconds apart, or by
    the server's Retry-After (capped at ``MAX_RETRY_AFTER_SECONDS``). Once
    retries run out the last response is returned, so the fetchers see the
    failure through ``raise_for_status()`` and wrap it as an upstream error.
    """
    policy = _CappedRetry(
        total=retries,
        backoff_factor=backoff_factor,
        status_forcelist=TRANSIENT_STATUSES,
        allowed_methods=frozenset({"GET"}),
        respect_retry_after_header=True,
        raise_on_status=False,
    )
    session = Session()
    session.headers.update({"User-Agent": user_agent, "Accept-Encoding": "gzip, deflate"})
    adapter = HTTPAdapter(max_retries=policy)
    for prefix in ("https://", "http://"):
        session.mount(prefix, adapter)
    return session


def session_from_config(config: InitialAttackConfig) -> Session:
    return create_session(retries=config.http_retries, backoff_factor=config.http_backoff_factor)
