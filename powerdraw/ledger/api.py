import os
from urllib.parse import urljoin
from dotenv import load_dotenv
from .base import TokenLedger
from .utils import get_jwt_token, ledger_base_url, open_session
from typing import Any, Optional, Mapping


class TokenLedgerClient(TokenLedger):
    """HTTP adapter for a custodial token ledger service."""

    def __init__(
        self,
        account: Optional[str] = None,
        base_fqdn: Optional[str] = None,
        timeout: int = 45,
    ):
        load_dotenv()
        fqdn = base_fqdn or os.getenv("LEDGER_BASE_FQDN")
        if not fqdn:
            raise ValueError("Environment variable 'LEDGER_BASE_FQDN' is not set")
        pool_account = account or os.getenv("LEDGER_POOL_ACCOUNT")
        if not pool_account:
            raise ValueError("Environment variable 'LEDGER_POOL_ACCOUNT' is not set")

        self.account = pool_account
        self.base_url = ledger_base_url(fqdn)
        session_info = open_session(fqdn)
        if not session_info or len(session_info) != 2:
            raise ValueError("open_session() must return (session, csrf_token)")
        self.session, self.csrf = session_info
        self.jwt = get_jwt_token(self.session, fqdn)
        self.timeout = timeout

    # -------- headers --------
    @property
    def auth_headers(self) -> Mapping[str, str]:
        return {"Accept": "application/json", "Authorization": f"Bearer {self.jwt}"}

    @property
    def auth_csrf_headers(self) -> Mapping[str, str]:
        return {**self.auth_headers, "X-CSRFTOKEN": self.csrf}

    # -------- core request --------
    def _request(
        self,
        method: str,
        path: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> Any:
        url = urljoin(self.base_url + "/", path.lstrip("/"))
        r = self.session.request(
            method=method.upper(),
            url=url,
            headers=headers or self.auth_headers,
            params=params,
            json=json,
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json() if r.content else None

    @staticmethod
    def _succeeded(response: Any) -> bool:
        return isinstance(response, dict) and response.get("status") == "success"

    # -------- ledger operations --------
    def balance_of(self, account: str) -> int:
        response = self._request("GET", f"/api/v1/accounts/{account}/balance")
        if not isinstance(response, dict) or "balance" not in response:
            raise RuntimeError(f"Unexpected ledger balance response: {response!r}")
        return int(response["balance"])

    def transfer(self, to: str, amount: int) -> bool:
        response = self._request(
            "POST",
            "/api/v1/transfers",
            headers=self.auth_csrf_headers,
            json={"from": self.account, "to": to, "amount": amount},
        )
        return self._succeeded(response)

    def transfer_from(self, sender: str, to: str, amount: int) -> bool:
        response = self._request(
            "POST",
            "/api/v1/transfers/delegated",
            headers=self.auth_csrf_headers,
            json={
                "owner": sender,
                "spender": self.account,
                "to": to,
                "amount": amount,
            },
        )
        return self._succeeded(response)
