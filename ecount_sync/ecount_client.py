import asyncio
import logging
from functools import lru_cache
from typing import Optional

import httpx

from .classifier import Outcome, classify_response, failure_message
from .conf import EcountConfig, load_config, use_stub
from .exceptions import (
    ConfigurationMissing,
    NetworkFailure,
    NetworkTimeout,
    RemoteRejected,
    ValidationError,
)
from .session import SessionManager

logger = logging.getLogger(__name__)

LOGIN_PATH = '/OAPI/V2/OAPILogin'
SAVE_BASIC_PRODUCT_PATH = '/OAPI/V2/InventoryBasic/SaveBasicProduct'
MAX_ATTEMPTS = 2   # first try plus one retry after a fresh login


def _require_product_code(record: dict):
    if not str(record.get('PROD_CD') or '').strip():
        raise ValidationError("PROD_CD is empty – cannot create the ECOUNT item.")


class EcountClient:
    """
    Async client for the ECOUNT OAPI v2 SaveBasicProduct endpoint.

    One instance owns one SessionManager; share the instance between all
    concurrent syncs so they share the session.
    """

    def __init__(self, config: EcountConfig, transport: Optional[httpx.AsyncBaseTransport] = None,
                 sessions: Optional[SessionManager] = None):
        self._config = config
        self._transport = transport
        self.sessions = sessions or SessionManager(self._login)

    async def send(self, record: dict) -> dict:
        """Push one flat product record; return the parsed ECOUNT response."""
        _require_product_code(record)
        body = {
            'KEY': 'SaveBasicProduct',
            'ProductList': [{'Line': '0', 'BulkDatas': record}],
        }

        for attempt in range(1, MAX_ATTEMPTS + 1):
            session = await self.sessions.ensure_session()
            status, payload = await self._post(
                SAVE_BASIC_PRODUCT_PATH, body, params={'SESSION_ID': session.session_id},
            )
            outcome = classify_response(payload, status)

            if outcome is Outcome.SUCCESS:
                logger.info("PROD_CD %s pushed to ECOUNT (attempt %d).", record['PROD_CD'], attempt)
                return payload

            if outcome is not Outcome.SESSION_EXPIRED:
                break

            self.sessions.invalidate()
            if attempt < MAX_ATTEMPTS:
                logger.warning(
                    "ECOUNT session rejected for PROD_CD %s (attempt %d/%d). Logging in again.",
                    record['PROD_CD'], attempt, MAX_ATTEMPTS,
                )

        raise RemoteRejected(
            failure_message(payload) or "ECOUNT item sync failed.",
            status=status if status >= 400 else 502,
            details=payload,
        )

    async def _login(self) -> tuple[str, Optional[str]]:
        body = {
            'COM_CODE': self._config.company_code,
            'USER_ID': self._config.user_id,
            'API_CERT_KEY': self._config.api_cert_key,
            'ZONE': self._config.zone,
            'LAN_TYPE': self._config.language,
        }
        status, payload = await self._post(LOGIN_PATH, body)
        if not 200 <= status < 300:
            message = payload.get('Message') if isinstance(payload, dict) else None
            raise RemoteRejected(message or "ECOUNT login failed.", status=status, details=payload)

        data = payload.get('Data') if isinstance(payload, dict) else None
        data = data if isinstance(data, dict) else {}
        nested = data.get('Datas') if isinstance(data.get('Datas'), dict) else {}

        session_id = data.get('SESSION_ID') or nested.get('SESSION_ID')
        if not session_id:
            raise RemoteRejected("ECOUNT login response has no SESSION_ID.", status=status, details=payload)
        return session_id, data.get('EXPIRE_TIME') or nested.get('EXPIRE_TIME')

    async def _post(self, path: str, body: dict, params: Optional[dict] = None) -> tuple[int, dict]:
        """POST JSON and parse the answer, bounded by the configured timeout."""
        try:
            return await asyncio.wait_for(self._do_post(path, body, params), timeout=self._config.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise NetworkTimeout("ECOUNT API request timed out.") from exc
        except httpx.HTTPError as exc:
            raise NetworkFailure(f"ECOUNT API call failed: {exc}") from exc

    async def _do_post(self, path: str, body: dict, params: Optional[dict]) -> tuple[int, dict]:
        async with httpx.AsyncClient(base_url=self._config.base_url, transport=self._transport,
                                     timeout=self._config.timeout) as client:
            response = await client.post(
                path, params=params, json=body, headers={'Accept': 'application/json'},
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise NetworkFailure(
                f"ECOUNT returned an unreadable response (HTTP {response.status_code}).",
                details=response.text,
            ) from exc
        return response.status_code, payload


class StubEcountClient:
    """Stand-in for sandboxes: logs the record and reports success without network I/O."""

    async def send(self, record: dict) -> dict:
        _require_product_code(record)
        logger.info("[StubEcountClient] SaveBasicProduct %s", record)
        return {'Status': 200, 'Data': {'ResultDetails': [{'Line': '0', 'IsSuccess': True}]}}


@lru_cache(maxsize=None)
def get_client():
    """
    Process-wide ECOUNT client, built once from settings.

    Returns None when the credentials are not configured, which disables the
    sync. Only the task entry points call this; everything else receives the
    client as an argument.
    """
    if use_stub():
        logger.info("ECOUNT_API_USE_MOCK is set – using the logging stub client.")
        return StubEcountClient()

    try:
        config = load_config()
    except ConfigurationMissing as exc:
        logger.warning("%s – ECOUNT sync is disabled.", exc)
        return None
    return EcountClient(config)
