import os
import logging

import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    """The identity provider refused a request or could not be reached."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class HttpIdentityProvider:
    """
    Client for the identity provider's admin API. Accounts are created and
    removed with the service key; ``get_user`` resolves a caller's bearer
    token to their account.
    """

    def __init__(self, base_url=None, service_key=None, timeout=10, session=None):
        load_dotenv()
        self.base_url = (base_url or os.getenv("HALLSMART_AUTH_URL") or "").rstrip("/")
        self.service_key = service_key or os.getenv("HALLSMART_SERVICE_KEY")
        self.timeout = timeout
        self.http = session or requests.Session()

    def is_configured(self) -> bool:
        return bool(self.base_url and self.service_key)

    def _headers(self, bearer=None):
        return {
            "Content-Type": "application/json",
            "apikey": self.service_key or "",
            "Authorization": f"Bearer {bearer or self.service_key}",
        }

    def _request(self, method, path, bearer=None, **kwargs):
        if not self.is_configured():
            raise IdentityError("identity provider is not configured (HALLSMART_AUTH_URL / HALLSMART_SERVICE_KEY)")
        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(method, url, headers=self._headers(bearer), timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error("Identity provider unreachable: %s %s: %s", method, path, e)
            raise IdentityError(str(e)) from e
        if response.status_code >= 400:
            try:
                body = response.json()
                message = body.get("msg") or body.get("message") or body.get("error_description") or body.get("error")
            except ValueError:
                message = None
            message = message or response.text or f"HTTP {response.status_code}"
            logger.warning("Identity provider %s %s -> %s: %s", method, path, response.status_code, message)
            raise IdentityError(message, status_code=response.status_code)
        return response.json() if response.content else {}

    def get_user(self, token):
        """Account for a bearer token, or None when the token is rejected."""
        try:
            user = self._request("GET", "/auth/v1/user", bearer=token)
        except IdentityError as e:
            if e.status_code in (401, 403):
                return None
            raise
        return user or None

    def create_account(self, email, password, username):
        payload = {
            "email": email,
            "password": password,
            "email_confirm": True,
            "user_metadata": {"username": username, "full_name": username},
        }
        account = self._request("POST", "/auth/v1/admin/users", json=payload)
        logger.info("Identity account %s created for %s", account.get("id"), username)
        return account

    def delete_account(self, account_id):
        self._request("DELETE", f"/auth/v1/admin/users/{account_id}")
        logger.info("Identity account %s deleted", account_id)
