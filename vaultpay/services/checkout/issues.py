"""Decoder for the processor's error bodies.

Knowledge of the error-body shape lives here only; callers branch on the
closed `ProcessorIssue` enumeration.
"""

from enum import Enum
from typing import Any


class ProcessorIssue(str, Enum):
    ORDER_ALREADY_CAPTURED = "ORDER_ALREADY_CAPTURED"
    ORDER_NOT_APPROVED = "ORDER_NOT_APPROVED"
    INSTRUMENT_DECLINED = "INSTRUMENT_DECLINED"
    PAYER_ACTION_REQUIRED = "PAYER_ACTION_REQUIRED"
    DUPLICATE_REQUEST = "DUPLICATE_REQUEST"
    UNKNOWN = "UNKNOWN"


# Processor issue codes that map onto the same enumerator.
_ALIASES = {
    "DUPLICATE_REQUEST_ID": ProcessorIssue.DUPLICATE_REQUEST,
    "DUPLICATE_INVOICE_ID": ProcessorIssue.DUPLICATE_REQUEST,
}


def _lookup(code: Any) -> ProcessorIssue | None:
    if not isinstance(code, str):
        return None
    code = code.strip().upper()
    if code in _ALIASES:
        return _ALIASES[code]
    try:
        issue = ProcessorIssue(code)
    except ValueError:
        return None
    return None if issue is ProcessorIssue.UNKNOWN else issue


def decode_issue(body: Any) -> ProcessorIssue:
    """Classify an error body by its machine-readable issue code.

    Looks at `details[].issue` first (first recognised code wins) and falls
    back to the top-level `name`. Anything unrecognised, including non-dict
    bodies, is `UNKNOWN`.
    """

    if not isinstance(body, dict):
        return ProcessorIssue.UNKNOWN
    details = body.get("details")
    if isinstance(details, list):
        for detail in details:
            if isinstance(detail, dict):
                issue = _lookup(detail.get("issue"))
                if issue is not None:
                    return issue
    return _lookup(body.get("name")) or ProcessorIssue.UNKNOWN
