import uuid
from sqlalchemy import (
    Column,
    String,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    JSON,
    Integer,
    Text,
    Float,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from .database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String, unique=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    phone = Column(String)
    role = Column(String, default="employee", nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class PasswordResetToken(Base):
    __tablename__ = "password_reset_tokens"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"))
    token = Column(String, unique=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used = Column(Boolean, default=False)


class AuditLog(Base):
    __tablename__ = "audit_logs"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    action = Column(String, nullable=False)
    target_type = Column(String)
    target_id = Column(UUID(as_uuid=True))
    details = Column(JSON, default=dict)
    created_at = Column(DateTime, default=_utcnow)


class Equipment(Base):
    __tablename__ = "equipment"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    equipment_reference = Column(String, unique=True, nullable=False)
    equipment_type = Column(String, nullable=False)
    section = Column(String)
    brand_model = Column(String)
    status = Column(String, default="active", nullable=False)
    last_calibration = Column(Date)
    calibration_due = Column(Date)
    # months between calibrations, copied from the frequency configuration
    calibration_frequency = Column(Integer)
    archived = Column(Boolean, default=False, nullable=False)
    archived_at = Column(DateTime)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class CalibrationFrequency(Base):
    __tablename__ = "calibration_frequencies"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    equipment_type = Column(String, unique=True, nullable=False)
    frequency_value = Column(Integer, nullable=False)
    frequency_unit = Column(String, default="months", nullable=False)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    updated_by = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class AirPumpCalibration(Base):
    __tablename__ = "air_pump_calibrations"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    pump_id = Column(UUID(as_uuid=True), ForeignKey("equipment.id"), nullable=False, index=True)
    calibration_date = Column(Date, nullable=False)
    calibrated_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    # list of {set_flowrate, actual_flowrate, percent_error, passed}
    test_results = Column(JSON, default=list)
    overall_result = Column(String, default="Fail", nullable=False)
    notes = Column(Text)
    flowmeter_id = Column(UUID(as_uuid=True), ForeignKey("equipment.id"), nullable=True)
    next_calibration_due = Column(Date)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    pump = relationship("Equipment", foreign_keys=[pump_id])
    flowmeter = relationship("Equipment", foreign_keys=[flowmeter_id])

    @property
    def total_tests(self) -> int:
        return len(self.test_results or [])

    @property
    def tests_passed(self) -> int:
        return sum(1 for r in self.test_results or [] if r.get("passed"))

    @property
    def average_percent_error(self) -> float:
        results = self.test_results or []
        if not results:
            return 0.0
        return sum(r.get("percent_error", 0.0) for r in results) / len(results)


class FlowmeterCalibration(Base):
    __tablename__ = "flowmeter_calibrations"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    flowmeter_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False)
    # L/min
    flow_rate = Column(Float, nullable=False)
    bubbleflow_volume = Column(String, nullable=False)
    status = Column(String, default="Pass", nullable=False)
    technician = Column(String, nullable=False)
    next_calibration = Column(Date)
    notes = Column(Text)
    runtime1 = Column(Float)
    runtime2 = Column(Float)
    runtime3 = Column(Float)
    average_runtime = Column(Float)
    equivalent_flowrate = Column(Float)
    difference = Column(Float)
    calibrated_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class GraticuleCalibration(Base):
    __tablename__ = "graticule_calibrations"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    calibration_id = Column(String, unique=True)
    graticule_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False)
    scale = Column(String, nullable=False)
    status = Column(String, default="Pass", nullable=False)
    technician = Column(String, nullable=False)
    # graticules stay in service until a calibration fails, so this stays empty
    next_calibration = Column(Date, nullable=True)
    microscope_id = Column(UUID(as_uuid=True), ForeignKey("equipment.id"), nullable=True)
    microscope_reference = Column(String)
    diameter_checks = Column(JSON, default=list)
    notes = Column(Text)
    calibrated_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class FilterHolderCalibration(Base):
    __tablename__ = "filter_holder_calibrations"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    filter_holder_model = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False)
    filter1_diameter1 = Column(Float)
    filter1_diameter2 = Column(Float)
    filter2_diameter1 = Column(Float)
    filter2_diameter2 = Column(Float)
    filter3_diameter1 = Column(Float)
    filter3_diameter2 = Column(Float)
    status = Column(String, default="Pass", nullable=False)
    technician = Column(String, nullable=False)
    # due "on change of filter holder model", never by date
    next_calibration = Column(Date, nullable=True)
    notes = Column(Text)
    calibrated_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    archived_at = Column(DateTime, nullable=True)
    archived_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    @property
    def filters(self) -> list[tuple[float | None, float | None]]:
        return [
            (self.filter1_diameter1, self.filter1_diameter2),
            (self.filter2_diameter1, self.filter2_diameter2),
            (self.filter3_diameter1, self.filter3_diameter2),
        ]


class AcetoneVaporiserCalibration(Base):
    __tablename__ = "acetone_vaporiser_calibrations"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    vaporiser_id = Column(UUID(as_uuid=True), ForeignKey("equipment.id"), nullable=False, index=True)
    vaporiser_reference = Column(String)
    date = Column(Date, nullable=False)
    temperature = Column(Float, nullable=False)
    status = Column(String, nullable=False)
    next_calibration = Column(Date)
    notes = Column(Text, default="")
    calibrated_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class RiLiquidCalibration(Base):
    __tablename__ = "ri_liquid_calibrations"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    bottle_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False)
    refractive_index = Column(Float, nullable=False)
    asbestos_type_verified = Column(String, nullable=False)
    date_opened = Column(Date, nullable=False)
    batch_number = Column(String, nullable=False)
    status = Column(String, nullable=False)
    next_calibration = Column(Date)
    notes = Column(Text, default="")
    is_empty = Column(Boolean, default=False, nullable=False)
    calibrated_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class Incident(Base):
    __tablename__ = "incidents"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    type = Column(String, nullable=False)
    ref = Column(String)
    date = Column(Date, nullable=False)
    reported_by = Column(String)
    nature = Column(String)
    description = Column(Text)
    category = Column(String)
    corrective_action_required = Column(Boolean, default=False)
    corrective_action = Column(Text)
    person_responsible = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    corrective_action_due = Column(Date)
    attachments = Column(JSON, default=list)
    signed_off_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    signed_off_by_name = Column(String)
    signed_off_at = Column(DateTime)
    sign_off_evidence = Column(Text)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class ControlledDocument(Base):
    __tablename__ = "controlled_documents"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    type = Column(String, nullable=False)
    document_ref = Column(String, nullable=False, index=True)
    document_title = Column(String, nullable=False)
    document_description = Column(Text)
    section = Column(String)
    current_revision = Column(Integer)
    last_review_date = Column(Date)
    hard_copy_locations = Column(JSON, default=list)
    file_name = Column(String)
    file_data = Column(Text)
    # list of {revision, updated_at, updated_by}
    history = Column(JSON, default=list)
    deleted_at = Column(DateTime)
    deleted_by = Column(String)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class IAQRecord(Base):
    __tablename__ = "iaq_records"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    monitoring_date = Column(Date, nullable=False)
    status = Column(String, default="In Progress", nullable=False)
    # ids of the samples owned by this record, kept in creation order
    sample_ids = Column(JSON, default=list)
    report_approved_by = Column(String)
    report_issue_date = Column(Date)
    analysed_by = Column(String)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class IAQSample(Base):
    __tablename__ = "iaq_samples"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    iaq_record_id = Column(UUID(as_uuid=True), ForeignKey("iaq_records.id", ondelete="CASCADE"), nullable=False)
    sample_number = Column(String, nullable=False)
    full_sample_id = Column(String)
    location = Column(String)
    pump_no = Column(String)
    flowmeter = Column(String)
    cowl_no = Column(String)
    sampler = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    collected_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    filter_size = Column(String)
    start_time = Column(String)
    end_time = Column(String)
    initial_flowrate = Column(Float)
    final_flowrate = Column(Float)
    average_flowrate = Column(Float)
    status = Column(String, default="pending")
    notes = Column(Text)
    is_field_blank = Column(Boolean, default=False)
    analysis = Column(JSON)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class Project(Base):
    __tablename__ = "projects"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    client = Column(String)
    status = Column(String, default="In progress", nullable=False)
    category = Column(String)
    address = Column(String)
    notes = Column(Text)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class ProjectAudit(Base):
    __tablename__ = "project_audits"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), index=True)
    action = Column(String, nullable=False)
    field = Column(String)
    old_value = Column(String)
    new_value = Column(String)
    changed_by = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    notes = Column(String)
    timestamp = Column(DateTime, default=_utcnow)


class LeadClearance(Base):
    __tablename__ = "lead_clearances"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(UUID(as_uuid=True), ForeignKey("projects.id"), nullable=False, index=True)
    clearance_date = Column(Date, nullable=False)
    inspection_time = Column(String)
    status = Column(String, default="in progress", nullable=False)
    consultant = Column(String)
    lead_abatement_contractor = Column(String)
    jurisdiction = Column(String, default="ACT")
    notes = Column(Text)
    sequence_number = Column(Integer, default=1, nullable=False)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class AirMonitoringSample(Base):
    __tablename__ = "air_monitoring_samples"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(UUID(as_uuid=True), ForeignKey("projects.id"), nullable=True, index=True)
    sample_number = Column(String, nullable=False)
    full_sample_id = Column(String, unique=True, nullable=False, index=True)
    type = Column(String)
    location = Column(String)
    pump_no = Column(String)
    cowl_no = Column(String)
    filter_size = Column(String)
    start_time = Column(String)
    end_time = Column(String)
    initial_flowrate = Column(Float)
    final_flowrate = Column(Float)
    average_flowrate = Column(Float)
    status = Column(String, default="pending", nullable=False)
    notes = Column(Text)
    collected_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    analysis = Column(JSON)
    analyzed_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)
