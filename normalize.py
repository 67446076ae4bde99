# normalize.py
import logging
from typing import Any, List, Tuple

from errors import FormatError
from models import ContactRecord, ResultBundle

logger = logging.getLogger(__name__)

BUNDLE_KEYS = {
    "extracted_contacts": ("extracted_contacts", "extractedContacts"),
    "duplicates": ("duplicates",),
    "empty_records": ("empty_records", "emptyRecords"),
    "failed_extractions": ("failed_extractions", "failedExtractions"),
}


def dedupe_by_email(records: List[ContactRecord]) -> Tuple[List[ContactRecord], List[ContactRecord]]:
    """
    Split records into (kept, duplicates) in a single pass.

    The first record seen for an email wins. Emails are compared as-is
    (case-sensitive). Records without an email are always kept.
    """
    seen = set()
    kept, dups = [], []
    for r in records:
        email = r.get("email")
        if not email:
            # email なしは比較不可能なので常に残す
            kept.append(r)
        elif email in seen:
            dups.append(r)
        else:
            seen.add(email)
            kept.append(r)
    return kept, dups


def _bucket(raw: dict, name: str) -> list:
    for key in BUNDLE_KEYS[name]:
        value = raw.get(key)
        if value is not None:
            if not isinstance(value, list):
                raise FormatError()
            return value
    return []


def is_bundle(raw: Any) -> bool:
    return isinstance(raw, dict) and any(k in raw for k in BUNDLE_KEYS["extracted_contacts"])


def normalize(raw: Any, dedupe: bool = True) -> ResultBundle:
    """
    Turn a finished job payload into a ResultBundle.

    A flat list of contact objects is de-duplicated by email client-side
    (unless dedupe is False). A server-side bundle is taken as-is.

    Raises:
        FormatError: the payload is neither shape
    """
    if isinstance(raw, list):
        if not all(isinstance(r, dict) for r in raw):
            logger.error("Unexpected response format: %r", raw)
            raise FormatError()
        if not dedupe:
            return ResultBundle(extracted_contacts=list(raw))
        kept, dups = dedupe_by_email(raw)
        if dups:
            logger.info("Removed %d duplicate contacts by email", len(dups))
        return ResultBundle(extracted_contacts=kept, duplicates=dups)

    if is_bundle(raw):
        return ResultBundle(
            extracted_contacts=_bucket(raw, "extracted_contacts"),
            duplicates=_bucket(raw, "duplicates"),
            empty_records=_bucket(raw, "empty_records"),
            failed_extractions=_bucket(raw, "failed_extractions"),
        )

    logger.error("Unexpected response format: %r", raw)
    raise FormatError()
