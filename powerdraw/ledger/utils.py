"""Session bootstrap for the HTTP token ledger service."""

import logging
import os
from typing import Optional

import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()

JWT_PATH = "/api/v1/auth/jwt-token"


def ledger_base_url(base_fqdn: Optional[str] = None) -> str:
    """Return ``https://<fqdn>`` for ``base_fqdn`` or ``LEDGER_BASE_FQDN``.

    Raises
    ------
    RuntimeError
        If neither is set.
    """
    fqdn = base_fqdn or os.environ.get("LEDGER_BASE_FQDN")
    if not fqdn:
        raise RuntimeError("Environment variable 'LEDGER_BASE_FQDN' is not set")
    return f"https://{fqdn}".rstrip("/")


def open_session(base_fqdn: Optional[str] = None) -> tuple[requests.Session, str]:
    """Open a ledger session and pick up its CSRF cookie.

    Parameters
    ----------
    base_fqdn : Optional[str], default: None
        Ledger host. Defaults to ``LEDGER_BASE_FQDN``.

    Returns
    -------
    tuple[requests.Session, str]
        The live session and the CSRF token to send on state-changing calls.

    Raises
    ------
    RuntimeError
        If the host is unreachable, answers with an error, or sets no
        ``csrftoken`` cookie.
    """
    url = ledger_base_url(base_fqdn)
    session = requests.Session()
    try:
        response = session.get(url)
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.critical("Cannot reach token ledger at %s: %s", url, exc)
        raise RuntimeError(f"Failed to establish ledger session: {exc}") from exc

    csrf_token = response.cookies.get("csrftoken")
    if not csrf_token:
        logger.critical("Token ledger at %s returned no CSRF cookie", url)
        raise RuntimeError("Ledger did not return a CSRF token")
    logger.debug("Ledger session opened")
    return session, csrf_token


def get_jwt_token(session: requests.Session, base_fqdn: Optional[str] = None) -> str:
    """Log the pool service account in and return its access token.

    Credentials come from ``LEDGER_SERVICE_USERNAME`` and
    ``LEDGER_SERVICE_PASSWORD``; neither is ever logged.

    Raises
    ------
    RuntimeError
        If the credentials are not configured.
    requests.HTTPError
        If the ledger refuses the login.
    KeyError
        If the response carries no ``"access"`` token.
    """
    username = os.environ.get("LEDGER_SERVICE_USERNAME")
    password = os.environ.get("LEDGER_SERVICE_PASSWORD")
    if not username or not password:
        raise RuntimeError("Ledger service credentials are not configured")

    response = session.post(
        ledger_base_url(base_fqdn) + JWT_PATH,
        json={"username": username, "password": password},
    )
    response.raise_for_status()
    logger.debug("Ledger JWT obtained for %s", username)
    return response.json()["access"]
