from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from .. import models
from . import RecordNotFound

# purpose: keep an IAQ record's sample_ids list in step with its samples
# status: active

logger = logging.getLogger(__name__)


def normalize_cowl(cowl_no: str | None) -> str | None:
    """Cowl numbers are stored with a leading ``C``."""

    if not cowl_no:
        return cowl_no
    cowl_no = cowl_no.strip()
    if cowl_no.upper().startswith("C"):
        return "C" + cowl_no[1:]
    return f"C{cowl_no}"


def attach_sample(db: Session, sample: models.IAQSample) -> models.IAQRecord:
    record = db.get(models.IAQRecord, sample.iaq_record_id)
    if record is None:
        raise RecordNotFound("IAQ record not found")
    record.sample_ids = [*(record.sample_ids or []), str(sample.id)]
    return record


def detach_sample(db: Session, sample: models.IAQSample) -> None:
    record = db.get(models.IAQRecord, sample.iaq_record_id)
    if record is None:
        logger.warning("Sample %s points at missing IAQ record %s", sample.id, sample.iaq_record_id)
        return
    record.sample_ids = [sid for sid in record.sample_ids or [] if sid != str(sample.id)]
