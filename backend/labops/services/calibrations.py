"""Calibration record services: due dates, derived results and equipment write-back."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timezone
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import calibration, models, schemas
from . import DuplicateReference, RecordNotFound

# purpose: apply the calibration rules to persisted records and keep equipment in step
# status: active
# depends_on: labops.calibration

logger = logging.getLogger(__name__)

FLOWMETER_TYPES = (calibration.SITE_FLOWMETER, calibration.BUBBLE_FLOWMETER)
GRATICULE_ID_PREFIX = "GRAT-"


def frequency_for(db: Session, equipment_type: str | None) -> calibration.Frequency | None:
    if not equipment_type:
        return None
    row = (
        db.query(models.CalibrationFrequency)
        .filter(models.CalibrationFrequency.equipment_type == equipment_type)
        .first()
    )
    if row is None:
        return None
    return calibration.Frequency(row.frequency_value, row.frequency_unit)


def due_date_for(db: Session, equipment_type: str | None, calibration_date: date) -> date:
    """Next due date from the configured frequency, else the per-type default."""

    return calibration.compute_due_date(
        calibration_date,
        frequency_for(db, equipment_type),
        default=calibration.default_frequency(equipment_type or ""),
    )


def equipment_by_reference(db: Session, reference: str | None) -> models.Equipment | None:
    if not reference:
        return None
    return (
        db.query(models.Equipment)
        .filter(models.Equipment.equipment_reference == reference)
        .first()
    )


def _write_back(
    db: Session,
    equipment: models.Equipment | None,
    calibration_date: date,
    due: date | None,
    status: str | None = None,
) -> None:
    """Copy the latest calibration onto its equipment; failures are logged only."""

    if equipment is None:
        return
    if equipment.last_calibration and equipment.last_calibration > calibration_date:
        return
    try:
        equipment.last_calibration = calibration_date
        equipment.calibration_due = due
        if status is not None:
            equipment.status = status
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning("Failed to update equipment %s after calibration", equipment.id, exc_info=True)


# air pumps


def create_air_pump_calibration(
    db: Session,
    payload: schemas.AirPumpCalibrationCreate,
    user: models.User,
) -> models.AirPumpCalibration:
    pump = db.get(models.Equipment, payload.pump_id)
    if pump is None:
        raise RecordNotFound("Air pump not found")
    tests, overall = calibration.evaluate_air_pump_tests(t.model_dump() for t in payload.test_results)
    due = due_date_for(db, pump.equipment_type, payload.calibration_date)
    record = models.AirPumpCalibration(
        pump_id=pump.id,
        calibration_date=payload.calibration_date,
        calibrated_by=user.id,
        test_results=tests,
        overall_result=overall,
        notes=payload.notes,
        flowmeter_id=payload.flowmeter_id,
        next_calibration_due=due,
    )
    db.add(record)
    db.commit()
    db.refresh(record)

    status = None
    if overall == calibration.PASS and pump.status == calibration.EQUIPMENT_OUT_OF_SERVICE:
        status = calibration.EQUIPMENT_ACTIVE
    _write_back(db, pump, record.calibration_date, due, status)
    return record


def update_air_pump_calibration(
    db: Session,
    record: models.AirPumpCalibration,
    payload: schemas.AirPumpCalibrationUpdate,
) -> models.AirPumpCalibration:
    data = payload.model_dump(exclude_unset=True)
    if data.get("test_results") is not None:
        tests, overall = calibration.evaluate_air_pump_tests(data.pop("test_results"))
        record.test_results = tests
        record.overall_result = overall
    else:
        data.pop("test_results", None)
    if data.get("calibration_date") is not None:
        pump = db.get(models.Equipment, record.pump_id)
        record.next_calibration_due = due_date_for(
            db, pump.equipment_type if pump else calibration.AIR_PUMP, data["calibration_date"]
        )
    for k, v in data.items():
        setattr(record, k, v)
    db.commit()
    db.refresh(record)

    pump = db.get(models.Equipment, record.pump_id)
    status = None
    if (
        pump is not None
        and record.overall_result == calibration.PASS
        and pump.status == calibration.EQUIPMENT_OUT_OF_SERVICE
    ):
        status = calibration.EQUIPMENT_ACTIVE
    _write_back(db, pump, record.calibration_date, record.next_calibration_due, status)
    return record


def air_pump_stats(db: Session, pump_id: UUID) -> dict:
    records = (
        db.query(models.AirPumpCalibration)
        .filter(models.AirPumpCalibration.pump_id == pump_id)
        .all()
    )
    passed = sum(1 for r in records if r.overall_result == calibration.PASS)
    errors = [r.average_percent_error for r in records if r.total_tests]
    return {
        "total_calibrations": len(records),
        "passed_calibrations": passed,
        "failed_calibrations": len(records) - passed,
        "average_percent_error": sum(errors) / len(errors) if errors else 0.0,
        "last_calibration_date": max((r.calibration_date for r in records), default=None),
    }


# flowmeters


def _apply_flowmeter_readings(record: models.FlowmeterCalibration) -> None:
    readings = calibration.flowmeter_readings(
        record.flow_rate,
        record.bubbleflow_volume,
        (record.runtime1, record.runtime2, record.runtime3),
    )
    record.average_runtime = readings.average_runtime
    record.equivalent_flowrate = readings.equivalent_flowrate
    record.difference = readings.difference
    if readings.status is not None:
        record.status = readings.status


def _flowmeter_type(equipment: models.Equipment | None) -> str:
    return equipment.equipment_type if equipment else calibration.SITE_FLOWMETER


def create_flowmeter_calibration(
    db: Session,
    payload: schemas.FlowmeterCalibrationCreate,
    user: models.User,
) -> models.FlowmeterCalibration:
    flowmeter = equipment_by_reference(db, payload.flowmeter_id)
    record = models.FlowmeterCalibration(**payload.model_dump(), calibrated_by=user.id)
    _apply_flowmeter_readings(record)
    record.next_calibration = due_date_for(db, _flowmeter_type(flowmeter), payload.date)
    db.add(record)
    db.commit()
    db.refresh(record)
    _write_back(db, flowmeter, record.date, record.next_calibration)
    return record


def update_flowmeter_calibration(
    db: Session,
    record: models.FlowmeterCalibration,
    payload: schemas.FlowmeterCalibrationUpdate,
) -> models.FlowmeterCalibration:
    data = payload.model_dump(exclude_unset=True)
    for k, v in data.items():
        setattr(record, k, v)
    _apply_flowmeter_readings(record)
    if "date" in data:
        flowmeter = equipment_by_reference(db, record.flowmeter_id)
        record.next_calibration = due_date_for(db, _flowmeter_type(flowmeter), record.date)
    db.commit()
    db.refresh(record)
    _write_back(db, equipment_by_reference(db, record.flowmeter_id), record.date, record.next_calibration)
    return record


# graticules


def next_graticule_calibration_id(db: Session) -> str:
    ids = (
        db.query(models.GraticuleCalibration.calibration_id)
        .filter(models.GraticuleCalibration.calibration_id.like(f"{GRATICULE_ID_PREFIX}%"))
        .all()
    )
    highest = 0
    for (value,) in ids:
        match = re.fullmatch(rf"{GRATICULE_ID_PREFIX}(\d+)", value or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{GRATICULE_ID_PREFIX}{highest + 1:04d}"


def _apply_diameter_checks(record: models.GraticuleCalibration, diameters: list[float]) -> None:
    checks, status = calibration.evaluate_graticule_checks(diameters)
    record.diameter_checks = checks
    if status is not None:
        record.status = status


def _microscope_reference(db: Session, microscope_id: UUID | None) -> str | None:
    if microscope_id is None:
        return None
    microscope = db.get(models.Equipment, microscope_id)
    if microscope is None:
        raise RecordNotFound("Microscope not found")
    return microscope.equipment_reference


def create_graticule_calibration(
    db: Session,
    payload: schemas.GraticuleCalibrationCreate,
    user: models.User,
) -> models.GraticuleCalibration:
    data = payload.model_dump(exclude={"diameters"})
    record = models.GraticuleCalibration(
        **data,
        calibration_id=next_graticule_calibration_id(db),
        microscope_reference=_microscope_reference(db, payload.microscope_id),
        next_calibration=None,
        calibrated_by=user.id,
    )
    _apply_diameter_checks(record, payload.diameters)
    db.add(record)
    db.commit()
    db.refresh(record)
    _write_back(
        db,
        equipment_by_reference(db, record.graticule_id),
        record.date,
        None,
        calibration.graticule_status(record.status),
    )
    return record


def update_graticule_calibration(
    db: Session,
    record: models.GraticuleCalibration,
    payload: schemas.GraticuleCalibrationUpdate,
) -> models.GraticuleCalibration:
    data = payload.model_dump(exclude_unset=True)
    diameters = data.pop("diameters", None)
    if "microscope_id" in data:
        record.microscope_reference = _microscope_reference(db, data["microscope_id"])
    for k, v in data.items():
        setattr(record, k, v)
    if diameters is not None:
        _apply_diameter_checks(record, diameters)
    db.commit()
    db.refresh(record)
    _write_back(
        db,
        equipment_by_reference(db, record.graticule_id),
        record.date,
        None,
        calibration.graticule_status(record.status),
    )
    return record


# filter holders


def _apply_filter_diameters(record: models.FilterHolderCalibration) -> None:
    errors = calibration.filter_holder_errors(record.filters)
    if errors:
        raise calibration.CalibrationError("; ".join(errors))
    status = calibration.filter_holder_status(record.filters)
    if status is not None:
        record.status = status


def archive_older_filter_holder_calibrations(
    db: Session, filter_holder_model: str, before: date, user: models.User
) -> int:
    """Archive active calibrations of a model dated before ``before``."""

    archived = (
        db.query(models.FilterHolderCalibration)
        .filter(
            models.FilterHolderCalibration.filter_holder_model == filter_holder_model,
            models.FilterHolderCalibration.date < before,
            models.FilterHolderCalibration.archived_at.is_(None),
        )
        .update(
            {
                models.FilterHolderCalibration.archived_at: datetime.now(timezone.utc),
                models.FilterHolderCalibration.archived_by: user.id,
            },
            synchronize_session=False,
        )
    )
    if archived:
        logger.info("Archived %d calibrations for filter holder %s", archived, filter_holder_model)
    return archived


def create_filter_holder_calibration(
    db: Session,
    payload: schemas.FilterHolderCalibrationCreate,
    user: models.User,
) -> models.FilterHolderCalibration:
    record = models.FilterHolderCalibration(
        **payload.model_dump(),
        next_calibration=None,
        calibrated_by=user.id,
    )
    _apply_filter_diameters(record)
    archive_older_filter_holder_calibrations(db, record.filter_holder_model, record.date, user)
    db.add(record)
    db.commit()
    db.refresh(record)
    _write_back(db, equipment_by_reference(db, record.filter_holder_model), record.date, None)
    return record


def update_filter_holder_calibration(
    db: Session,
    record: models.FilterHolderCalibration,
    payload: schemas.FilterHolderCalibrationUpdate,
    user: models.User,
) -> models.FilterHolderCalibration:
    data = payload.model_dump(exclude_unset=True)
    for k, v in data.items():
        setattr(record, k, v)
    _apply_filter_diameters(record)
    if record.archived_at is None and ("date" in data or "filter_holder_model" in data):
        archive_older_filter_holder_calibrations(db, record.filter_holder_model, record.date, user)
    db.commit()
    db.refresh(record)
    if record.archived_at is None:
        _write_back(db, equipment_by_reference(db, record.filter_holder_model), record.date, None)
    return record


# acetone vaporisers


def _vaporiser(db: Session, vaporiser_id: UUID) -> models.Equipment:
    vaporiser = db.get(models.Equipment, vaporiser_id)
    if vaporiser is None:
        raise RecordNotFound("Equipment not found")
    if vaporiser.equipment_type != calibration.ACETONE_VAPORISER:
        raise calibration.CalibrationError("Equipment is not an Acetone Vaporiser")
    return vaporiser


def create_acetone_vaporiser_calibration(
    db: Session,
    payload: schemas.AcetoneVaporiserCalibrationCreate,
    user: models.User,
) -> models.AcetoneVaporiserCalibration:
    vaporiser = _vaporiser(db, payload.vaporiser_id)
    record = models.AcetoneVaporiserCalibration(
        **payload.model_dump(exclude={"technician_id"}),
        vaporiser_reference=vaporiser.equipment_reference,
        status=calibration.acetone_vaporiser_status(payload.temperature),
        next_calibration=due_date_for(db, vaporiser.equipment_type, payload.date),
        calibrated_by=payload.technician_id or user.id,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    _write_back(db, vaporiser, record.date, record.next_calibration, _vaporiser_status(vaporiser, record))
    return record


def update_acetone_vaporiser_calibration(
    db: Session,
    record: models.AcetoneVaporiserCalibration,
    payload: schemas.AcetoneVaporiserCalibrationUpdate,
) -> models.AcetoneVaporiserCalibration:
    data = payload.model_dump(exclude_unset=True)
    technician_id = data.pop("technician_id", None)
    for k, v in data.items():
        if v is not None:
            setattr(record, k, v)
    if technician_id is not None:
        record.calibrated_by = technician_id
    record.status = calibration.acetone_vaporiser_status(record.temperature)
    vaporiser = db.get(models.Equipment, record.vaporiser_id)
    record.next_calibration = due_date_for(
        db, vaporiser.equipment_type if vaporiser else calibration.ACETONE_VAPORISER, record.date
    )
    db.commit()
    db.refresh(record)
    if vaporiser is not None:
        _write_back(db, vaporiser, record.date, record.next_calibration, _vaporiser_status(vaporiser, record))
    return record


def _vaporiser_status(vaporiser: models.Equipment, record: models.AcetoneVaporiserCalibration) -> str | None:
    if record.status == calibration.PASS and vaporiser.status == calibration.EQUIPMENT_OUT_OF_SERVICE:
        return calibration.EQUIPMENT_ACTIVE
    return None


# RI liquids


def _check_ri_reading(refractive_index: float | None, asbestos_type: str | None) -> str:
    errors = calibration.validate_ri_liquid(refractive_index, asbestos_type)
    if errors:
        raise calibration.CalibrationError("; ".join(errors))
    return calibration.result_label(calibration.ri_liquid_passes(refractive_index, asbestos_type))


def create_ri_liquid_calibration(
    db: Session,
    payload: schemas.RiLiquidCalibrationCreate,
    user: models.User,
) -> models.RiLiquidCalibration:
    status = _check_ri_reading(payload.refractive_index, payload.asbestos_type_verified)
    data = payload.model_dump(exclude={"technician_id"})
    record = models.RiLiquidCalibration(
        **data,
        status=status,
        next_calibration=due_date_for(db, calibration.RI_LIQUIDS, payload.date),
        calibrated_by=payload.technician_id or user.id,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def update_ri_liquid_calibration(
    db: Session,
    record: models.RiLiquidCalibration,
    payload: schemas.RiLiquidCalibrationUpdate,
) -> models.RiLiquidCalibration:
    data = payload.model_dump(exclude_unset=True)
    technician_id = data.pop("technician_id", None)
    refractive_index = data.get("refractive_index", record.refractive_index)
    asbestos_type = data.get("asbestos_type_verified", record.asbestos_type_verified)
    record.status = _check_ri_reading(refractive_index, asbestos_type)
    if data.get("date") is not None and data["date"] != record.date:
        record.next_calibration = due_date_for(db, calibration.RI_LIQUIDS, data["date"])
    for k, v in data.items():
        setattr(record, k, v)
    if technician_id is not None:
        record.calibrated_by = technician_id
    db.commit()
    db.refresh(record)
    return record


def mark_bottle_empty(db: Session, bottle_id: str) -> int:
    updated = (
        db.query(models.RiLiquidCalibration)
        .filter(
            models.RiLiquidCalibration.bottle_id == bottle_id,
            models.RiLiquidCalibration.is_empty.is_(False),
        )
        .update({models.RiLiquidCalibration.is_empty: True}, synchronize_session=False)
    )
    db.commit()
    return updated


def calibration_stats(records, date_attr: str, due_attr: str | None = None) -> dict:
    dates = [getattr(r, date_attr) for r in records]
    passed = sum(1 for r in records if r.status == calibration.PASS)
    dues = [getattr(r, due_attr) for r in records if due_attr and getattr(r, due_attr)]
    return {
        "total_calibrations": len(records),
        "passed_calibrations": passed,
        "failed_calibrations": len(records) - passed,
        "last_calibration_date": max(dates, default=None),
        "next_calibration_due": max(dues, default=None),
    }


# frequency configuration


def ensure_unique_frequency(db: Session, equipment_type: str, exclude_id: UUID | None = None) -> None:
    query = db.query(models.CalibrationFrequency).filter(
        models.CalibrationFrequency.equipment_type == equipment_type
    )
    if exclude_id is not None:
        query = query.filter(models.CalibrationFrequency.id != exclude_id)
    if query.first():
        raise DuplicateReference(f"Frequency already configured for {equipment_type}")


def recompute_due_dates(db: Session, equipment_type: str, frequency: calibration.Frequency) -> int:
    """Push ``frequency`` onto equipment of a type and recompute due dates.

    Returns the number of equipment rows touched. Types that never expire by
    date are left alone. Errors are logged and reported as zero.
    """

    if equipment_type in calibration.UNDATED_TYPES:
        logger.info("%s calibrations are not due by date; frequency not applied", equipment_type)
        return 0
    try:
        equipment = (
            db.query(models.Equipment)
            .filter(models.Equipment.equipment_type == equipment_type)
            .all()
        )
        today = date.today()
        for item in equipment:
            item.calibration_frequency = frequency.months
            if item.last_calibration:
                item.calibration_due = calibration.compute_due_date(item.last_calibration, frequency)
                if item.status != calibration.EQUIPMENT_OUT_OF_SERVICE:
                    item.status = calibration.equipment_status_for_due_date(item.calibration_due, today)

        ids = [item.id for item in equipment]
        references = [item.equipment_reference for item in equipment]
        if ids:
            for record in db.query(models.AirPumpCalibration).filter(
                models.AirPumpCalibration.pump_id.in_(ids)
            ):
                record.next_calibration_due = calibration.compute_due_date(record.calibration_date, frequency)
        if references and equipment_type in FLOWMETER_TYPES:
            for record in db.query(models.FlowmeterCalibration).filter(
                models.FlowmeterCalibration.flowmeter_id.in_(references)
            ):
                record.next_calibration = calibration.compute_due_date(record.date, frequency)
        if ids and equipment_type == calibration.ACETONE_VAPORISER:
            for record in db.query(models.AcetoneVaporiserCalibration).filter(
                models.AcetoneVaporiserCalibration.vaporiser_id.in_(ids)
            ):
                record.next_calibration = calibration.compute_due_date(record.date, frequency)
        if equipment_type == calibration.RI_LIQUIDS:
            for record in db.query(models.RiLiquidCalibration).filter(
                models.RiLiquidCalibration.is_empty.is_(False)
            ):
                record.next_calibration = calibration.compute_due_date(record.date, frequency)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning("Failed to apply frequency for %s", equipment_type, exc_info=True)
        return 0
    logger.info("Applied %s frequency to %d equipment", equipment_type, len(equipment))
    return len(equipment)


def apply_frequency(db: Session, row: models.CalibrationFrequency) -> int:
    frequency = calibration.Frequency(row.frequency_value, row.frequency_unit)
    return recompute_due_dates(db, row.equipment_type, frequency)


def restore_default_frequency(db: Session, equipment_type: str) -> int:
    """Recompute a type's due dates once it no longer has a configured frequency."""

    return recompute_due_dates(db, equipment_type, calibration.default_frequency(equipment_type))
