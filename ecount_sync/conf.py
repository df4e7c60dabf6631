from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .exceptions import ConfigurationMissing

DEFAULT_TIMEOUT = 10.0
DEFAULT_LANGUAGE = 'ko-KR'


@dataclass(frozen=True)
class EcountConfig:
    company_code: str
    user_id: str
    api_cert_key: str
    zone: str
    base_url: str
    timeout: float = DEFAULT_TIMEOUT
    language: str = DEFAULT_LANGUAGE


def _setting(name: str) -> str:
    value = getattr(settings, name, None)
    return str(value).strip() if value is not None else ''


def _parse_timeout(raw: str) -> float:
    try:
        timeout = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_TIMEOUT
    return timeout if timeout > 0 else DEFAULT_TIMEOUT


def resolve_base_url(custom: Optional[str], zone: str) -> str:
    """
    Explicit override wins; otherwise the zone-specific ECOUNT host.

    Only scheme and host are kept: the OAPI paths are absolute, so any path
    in the override is dropped.
    """
    url = (custom or '').strip() or f"https://sboapi{zone.upper()}.ecount.com"
    parsed = urlparse(url)
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise ImproperlyConfigured(f"Invalid ECOUNT_API_BASE_URL value: {url}")
    return f"{parsed.scheme}://{parsed.netloc}/"


def use_stub() -> bool:
    return bool(getattr(settings, 'ECOUNT_API_USE_MOCK', False))


def load_config() -> EcountConfig:
    """Read the ECOUNT_API_* settings; raise ConfigurationMissing if credentials are absent."""
    company_code = _setting('ECOUNT_API_COMPANY_CODE')
    user_id = _setting('ECOUNT_API_USER_ID')
    api_cert_key = _setting('ECOUNT_API_CERT_KEY')
    zone = _setting('ECOUNT_API_ZONE')

    missing = [
        name for name, value in (
            ('ECOUNT_API_COMPANY_CODE', company_code),
            ('ECOUNT_API_USER_ID', user_id),
            ('ECOUNT_API_CERT_KEY', api_cert_key),
            ('ECOUNT_API_ZONE', zone),
        ) if not value
    ]
    if missing:
        raise ConfigurationMissing(f"ECOUNT settings missing: {', '.join(missing)}")

    return EcountConfig(
        company_code=company_code,
        user_id=user_id,
        api_cert_key=api_cert_key,
        zone=zone,
        base_url=resolve_base_url(_setting('ECOUNT_API_BASE_URL'), zone),
        timeout=_parse_timeout(_setting('ECOUNT_API_TIMEOUT') or DEFAULT_TIMEOUT),
        language=_setting('ECOUNT_API_LANG') or DEFAULT_LANGUAGE,
    )

