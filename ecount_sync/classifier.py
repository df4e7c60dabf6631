"""
Classification of ECOUNT responses.

ECOUNT reports failures as free text rather than error codes. A failure whose
message mentions SESSION or LOGIN is treated as an expired session; the
connector then logs in again and retries once. Keep the heuristic in this
module so it can be swapped without touching the client.
"""
import enum
from typing import Optional

SESSION_MARKERS = ('SESSION', 'LOGIN')


class Outcome(enum.Enum):
    SUCCESS = 'success'
    SESSION_EXPIRED = 'session_expired'
    REJECTED = 'rejected'


def _first_result_detail(payload) -> dict:
    if not isinstance(payload, dict):
        return {}
    data = payload.get('Data')
    if not isinstance(data, dict):
        return {}
    details = data.get('ResultDetails')
    if isinstance(details, list) and details and isinstance(details[0], dict):
        return details[0]
    return {}


def is_success(payload) -> bool:
    """Per-line IsSuccess wins; otherwise the coarse Status must be 2xx."""
    detail = _first_result_detail(payload)
    if detail.get('IsSuccess') is not None:
        return bool(detail['IsSuccess'])
    status = payload.get('Status') if isinstance(payload, dict) else None
    return str(status if status is not None else '').startswith('2')


def failure_message(payload) -> Optional[str]:
    detail = _first_result_detail(payload)
    message = detail.get('TotalError')
    if not message and isinstance(payload, dict):
        message = payload.get('Message')
    return message or None


def is_session_problem(payload) -> bool:
    message = (failure_message(payload) or '').upper()
    return any(marker in message for marker in SESSION_MARKERS)


def classify_response(payload, http_status: int = 200) -> Outcome:
    if 200 <= http_status < 300 and is_success(payload):
        return Outcome.SUCCESS
    if is_session_problem(payload):
        return Outcome.SESSION_EXPIRED
    return Outcome.REJECTED
