import datetime as dt
from datetime import datetime
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .calibration import EQUIPMENT_STATUSES

T = TypeVar("T")

Role = Literal["admin", "manager", "employee"]
CalibrationResult = Literal["Pass", "Fail"]
EquipmentStatus = Literal[EQUIPMENT_STATUSES]
FrequencyUnit = Literal["months", "years"]


class Pagination(BaseModel):
    total: int
    pages: int
    page: int
    limit: int


class Page(BaseModel, Generic[T]):
    data: List[T]
    pagination: Pagination


class MessageOut(BaseModel):
    message: str


class BulkUpdateOut(MessageOut):
    updated_count: int


# users and auth


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str
    last_name: str
    phone: Optional[str] = None


class UserOut(BaseModel):
    id: UUID
    email: EmailStr
    first_name: str
    last_name: str
    phone: Optional[str] = None
    role: Role
    is_active: bool = True
    model_config = ConfigDict(from_attributes=True)


class UserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None


class UserAdminUpdate(UserUpdate):
    role: Optional[Role] = None
    is_active: Optional[bool] = None


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str = Field(min_length=6)


class AuditLogOut(BaseModel):
    id: UUID
    user_id: UUID
    action: str
    target_type: str | None = None
    target_id: UUID | None = None
    details: Dict[str, Any] = {}
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class AuditReportItem(BaseModel):
    action: str
    count: int


# equipment


class EquipmentCreate(BaseModel):
    equipment_reference: str = Field(min_length=1)
    equipment_type: str
    section: str | None = None
    brand_model: str | None = None
    status: EquipmentStatus = "active"
    last_calibration: dt.date | None = None
    calibration_due: dt.date | None = None
    calibration_frequency: int | None = Field(default=None, gt=0)


class EquipmentUpdate(BaseModel):
    equipment_reference: str | None = None
    equipment_type: str | None = None
    section: str | None = None
    brand_model: str | None = None
    status: EquipmentStatus | None = None
    last_calibration: dt.date | None = None
    calibration_due: dt.date | None = None
    calibration_frequency: int | None = Field(default=None, gt=0)
    archived: bool | None = None


class EquipmentOut(BaseModel):
    id: UUID
    equipment_reference: str
    equipment_type: str
    section: str | None = None
    brand_model: str | None = None
    status: str
    last_calibration: dt.date | None = None
    calibration_due: dt.date | None = None
    calibration_frequency: int | None = None
    archived: bool = False
    archived_at: datetime | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class CalibrationFrequencyCreate(BaseModel):
    equipment_type: str
    frequency_value: int = Field(gt=0)
    frequency_unit: FrequencyUnit = "months"


class CalibrationFrequencyUpdate(BaseModel):
    equipment_type: str | None = None
    frequency_value: int | None = Field(default=None, gt=0)
    frequency_unit: FrequencyUnit | None = None


class CalibrationFrequencyOut(CalibrationFrequencyCreate):
    id: UUID
    created_by: UUID | None = None
    updated_by: UUID | None = None
    created_at: datetime
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


# calibrations


class AirPumpTestIn(BaseModel):
    set_flowrate: Literal[1000, 1500, 2000, 3000, 4000]
    actual_flowrate: float = Field(ge=0)


class AirPumpTestOut(BaseModel):
    set_flowrate: float
    actual_flowrate: float
    percent_error: float
    passed: bool


class AirPumpCalibrationCreate(BaseModel):
    pump_id: UUID
    calibration_date: dt.date
    test_results: List[AirPumpTestIn] = []
    notes: str | None = None
    flowmeter_id: UUID | None = None


class AirPumpCalibrationUpdate(BaseModel):
    calibration_date: dt.date | None = None
    test_results: List[AirPumpTestIn] | None = None
    notes: str | None = None
    flowmeter_id: UUID | None = None


class AirPumpCalibrationOut(BaseModel):
    id: UUID
    pump_id: UUID
    calibration_date: dt.date
    calibrated_by: UUID
    test_results: List[AirPumpTestOut]
    overall_result: CalibrationResult
    notes: str | None = None
    flowmeter_id: UUID | None = None
    next_calibration_due: dt.date | None = None
    average_percent_error: float
    tests_passed: int
    total_tests: int
    created_at: datetime
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class AirPumpCalibrationStats(BaseModel):
    total_calibrations: int
    passed_calibrations: int
    failed_calibrations: int
    average_percent_error: float
    last_calibration_date: dt.date | None = None


class CalibrationStats(BaseModel):
    total_calibrations: int
    passed_calibrations: int
    failed_calibrations: int
    last_calibration_date: dt.date | None = None
    next_calibration_due: dt.date | None = None


class FlowmeterCalibrationCreate(BaseModel):
    flowmeter_id: str
    date: dt.date
    flow_rate: float = Field(gt=0)
    bubbleflow_volume: Literal["500", "1000"]
    status: CalibrationResult = "Pass"
    technician: str
    notes: str | None = None
    runtime1: float | None = Field(default=None, ge=0)
    runtime2: float | None = Field(default=None, ge=0)
    runtime3: float | None = Field(default=None, ge=0)


class FlowmeterCalibrationUpdate(BaseModel):
    date: Optional[dt.date] = None
    flow_rate: float | None = Field(default=None, gt=0)
    bubbleflow_volume: Literal["500", "1000"] | None = None
    status: CalibrationResult | None = None
    technician: str | None = None
    notes: str | None = None
    runtime1: float | None = Field(default=None, ge=0)
    runtime2: float | None = Field(default=None, ge=0)
    runtime3: float | None = Field(default=None, ge=0)


class FlowmeterCalibrationOut(BaseModel):
    id: UUID
    flowmeter_id: str
    date: dt.date
    flow_rate: float
    bubbleflow_volume: str
    status: CalibrationResult
    technician: str
    next_calibration: dt.date | None = None
    notes: str | None = None
    runtime1: float | None = None
    runtime2: float | None = None
    runtime3: float | None = None
    average_runtime: float | None = None
    equivalent_flowrate: float | None = None
    difference: float | None = None
    calibrated_by: UUID
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class GraticuleCalibrationCreate(BaseModel):
    graticule_id: str
    date: dt.date
    scale: str
    status: CalibrationResult = "Pass"
    technician: str
    microscope_id: UUID | None = None
    notes: str | None = None
    diameters: List[float] = []


class GraticuleCalibrationUpdate(BaseModel):
    date: Optional[dt.date] = None
    scale: str | None = None
    status: CalibrationResult | None = None
    technician: str | None = None
    microscope_id: UUID | None = None
    notes: str | None = None
    diameters: List[float] | None = None


class DiameterCheckOut(BaseModel):
    diameter_um: float
    passed: bool


class GraticuleCalibrationOut(BaseModel):
    id: UUID
    calibration_id: str | None = None
    graticule_id: str
    date: dt.date
    scale: str
    status: CalibrationResult
    technician: str
    next_calibration: dt.date | None = None
    microscope_id: UUID | None = None
    microscope_reference: str | None = None
    diameter_checks: List[DiameterCheckOut] = []
    notes: str | None = None
    calibrated_by: UUID
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class FilterHolderDiameters(BaseModel):
    filter1_diameter1: float | None = None
    filter1_diameter2: float | None = None
    filter2_diameter1: float | None = None
    filter2_diameter2: float | None = None
    filter3_diameter1: float | None = None
    filter3_diameter2: float | None = None


class FilterHolderCalibrationCreate(FilterHolderDiameters):
    filter_holder_model: str = Field(min_length=1)
    date: dt.date
    status: CalibrationResult = "Pass"
    technician: str
    notes: str | None = None


class FilterHolderCalibrationUpdate(FilterHolderDiameters):
    filter_holder_model: str | None = None
    date: Optional[dt.date] = None
    status: CalibrationResult | None = None
    technician: str | None = None
    notes: str | None = None


class FilterHolderCalibrationOut(FilterHolderDiameters):
    id: UUID
    filter_holder_model: str
    date: dt.date
    status: CalibrationResult
    technician: str
    next_calibration: dt.date | None = None
    notes: str | None = None
    calibrated_by: UUID
    archived_at: datetime | None = None
    archived_by: UUID | None = None
    created_at: datetime
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class FilterHolderCalibrationStats(CalibrationStats):
    recent_calibrations: List[FilterHolderCalibrationOut] = []


class AcetoneVaporiserCalibrationCreate(BaseModel):
    vaporiser_id: UUID
    date: dt.date
    temperature: float = Field(ge=0, le=200)
    notes: str | None = None
    technician_id: UUID | None = None


class AcetoneVaporiserCalibrationUpdate(BaseModel):
    date: Optional[dt.date] = None
    temperature: float | None = Field(default=None, ge=0, le=200)
    notes: str | None = None
    technician_id: UUID | None = None


class AcetoneVaporiserCalibrationOut(BaseModel):
    id: UUID
    vaporiser_id: UUID
    vaporiser_reference: str | None = None
    date: dt.date
    temperature: float
    status: CalibrationResult
    next_calibration: dt.date | None = None
    notes: str | None = None
    calibrated_by: UUID
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class RiLiquidCalibrationCreate(BaseModel):
    bottle_id: str = Field(min_length=1)
    date: dt.date
    refractive_index: float
    asbestos_type_verified: str
    date_opened: dt.date
    batch_number: str = Field(min_length=1)
    notes: str | None = None
    technician_id: UUID | None = None


class RiLiquidCalibrationUpdate(BaseModel):
    date: Optional[dt.date] = None
    refractive_index: float | None = None
    asbestos_type_verified: str | None = None
    date_opened: Optional[dt.date] = None
    batch_number: str | None = None
    notes: str | None = None
    technician_id: UUID | None = None


class RiLiquidCalibrationOut(BaseModel):
    id: UUID
    bottle_id: str
    date: dt.date
    refractive_index: float
    asbestos_type_verified: str
    date_opened: dt.date
    batch_number: str
    status: CalibrationResult
    next_calibration: dt.date | None = None
    notes: str | None = None
    is_empty: bool
    calibrated_by: UUID
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# incidents and documents

IncidentType = Literal["incident", "non-conformance", "feedback"]


class IncidentCreate(BaseModel):
    type: IncidentType
    ref: str | None = None
    date: dt.date
    reported_by: str | None = None
    nature: str | None = None
    description: str | None = None
    category: str | None = None
    corrective_action_required: bool = False
    corrective_action: str | None = None
    person_responsible: UUID | None = None
    corrective_action_due: Optional[dt.date] = None
    attachments: List[Dict[str, Any]] = []


class IncidentUpdate(BaseModel):
    type: IncidentType | None = None
    ref: str | None = None
    date: Optional[dt.date] = None
    reported_by: str | None = None
    nature: str | None = None
    description: str | None = None
    category: str | None = None
    corrective_action_required: bool | None = None
    corrective_action: str | None = None
    person_responsible: UUID | None = None
    corrective_action_due: Optional[dt.date] = None
    attachments: List[Dict[str, Any]] | None = None


class IncidentSignOff(BaseModel):
    signed_off_by: UUID
    signed_off_by_name: str | None = None
    signed_off_at: datetime
    sign_off_evidence: str | None = None


class IncidentOut(IncidentCreate):
    id: UUID
    signed_off_by: UUID | None = None
    signed_off_by_name: str | None = None
    signed_off_at: datetime | None = None
    sign_off_evidence: str | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class DocumentHistoryEntry(BaseModel):
    revision: int | None = None
    updated_at: datetime
    updated_by: str | None = None


class ControlledDocumentCreate(BaseModel):
    type: str
    document_ref: str = Field(min_length=1)
    document_title: str
    document_description: str | None = None
    section: str | None = None
    current_revision: int | None = None
    last_review_date: Optional[dt.date] = None
    hard_copy_locations: List[str] = []
    file_name: str | None = None
    file_data: str | None = None


class ControlledDocumentUpdate(BaseModel):
    type: str | None = None
    document_ref: str | None = None
    document_title: str | None = None
    document_description: str | None = None
    section: str | None = None
    current_revision: int | None = None
    last_review_date: Optional[dt.date] = None
    hard_copy_locations: List[str] | None = None
    file_name: str | None = None
    file_data: str | None = None


class ControlledDocumentOut(ControlledDocumentCreate):
    id: UUID
    history: List[DocumentHistoryEntry] = []
    deleted_at: datetime | None = None
    deleted_by: str | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# air quality monitoring

IAQStatus = Literal["In Progress", "Complete", "Closed"]


class IAQRecordCreate(BaseModel):
    monitoring_date: dt.date
    status: IAQStatus = "In Progress"


class IAQRecordUpdate(BaseModel):
    monitoring_date: Optional[dt.date] = None
    status: IAQStatus | None = None
    report_approved_by: str | None = None
    report_issue_date: Optional[dt.date] = None
    analysed_by: str | None = None


class IAQRecordOut(BaseModel):
    id: UUID
    monitoring_date: dt.date
    status: IAQStatus
    sample_ids: List[UUID] = []
    report_approved_by: str | None = None
    report_issue_date: dt.date | None = None
    analysed_by: str | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class IAQSampleCreate(BaseModel):
    iaq_record_id: UUID
    sample_number: str
    full_sample_id: str | None = None
    location: str | None = None
    pump_no: str | None = None
    flowmeter: str | None = None
    cowl_no: str | None = None
    sampler: UUID | None = None
    collected_by: UUID | None = None
    filter_size: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    initial_flowrate: float | None = None
    final_flowrate: float | None = None
    average_flowrate: float | None = None
    status: str = "pending"
    notes: str | None = None
    is_field_blank: bool = False


class IAQSampleUpdate(BaseModel):
    sample_number: str | None = None
    full_sample_id: str | None = None
    location: str | None = None
    pump_no: str | None = None
    flowmeter: str | None = None
    cowl_no: str | None = None
    sampler: UUID | None = None
    collected_by: UUID | None = None
    filter_size: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    initial_flowrate: float | None = None
    final_flowrate: float | None = None
    average_flowrate: float | None = None
    status: str | None = None
    notes: str | None = None
    is_field_blank: bool | None = None
    analysis: Dict[str, Any] | None = None


class IAQSampleOut(IAQSampleCreate):
    id: UUID
    analysis: Dict[str, Any] | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class IAQRecordDetail(IAQRecordOut):
    samples: List[IAQSampleOut] = []


# projects and clearances


class ProjectCreate(BaseModel):
    project_id: str = Field(min_length=1)
    name: str
    client: str | None = None
    status: str = "In progress"
    category: str | None = None
    address: str | None = None
    notes: str | None = None


class ProjectUpdate(BaseModel):
    name: str | None = None
    client: str | None = None
    status: str | None = None
    category: str | None = None
    address: str | None = None
    notes: str | None = None


class ProjectOut(ProjectCreate):
    id: UUID
    created_by: UUID | None = None
    created_at: datetime
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class ProjectAuditOut(BaseModel):
    id: UUID
    project_id: UUID
    action: str
    field: str | None = None
    old_value: str | None = None
    new_value: str | None = None
    changed_by: UUID | None = None
    notes: str | None = None
    timestamp: datetime
    model_config = ConfigDict(from_attributes=True)


ClearanceStatus = Literal["in progress", "complete", "closed"]


class LeadClearanceCreate(BaseModel):
    project_id: UUID
    clearance_date: dt.date
    inspection_time: str | None = None
    status: ClearanceStatus = "in progress"
    consultant: str | None = None
    lead_abatement_contractor: str | None = None
    jurisdiction: str | None = None
    notes: str | None = None


class LeadClearanceUpdate(BaseModel):
    inspection_time: str | None = None
    status: ClearanceStatus | None = None
    consultant: str | None = None
    lead_abatement_contractor: str | None = None
    jurisdiction: str | None = None
    notes: str | None = None


class LeadClearanceOut(LeadClearanceCreate):
    id: UUID
    sequence_number: int
    created_by: UUID | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# air-monitoring samples

SampleType = Literal["Background", "Clearance", "Exposure"]
SampleStatus = Literal["pending", "in_progress", "at_lab", "analyzed", "completed"]


class AirMonitoringSampleCreate(BaseModel):
    project_id: UUID | None = None
    sample_number: str = Field(min_length=1)
    full_sample_id: str = Field(min_length=1)
    type: SampleType | None = None
    location: str | None = None
    pump_no: str | None = None
    cowl_no: str | None = None
    filter_size: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    initial_flowrate: float | None = None
    final_flowrate: float | None = None
    average_flowrate: float | None = None
    status: SampleStatus = "pending"
    notes: str | None = None
    collected_by: UUID | None = None


class AirMonitoringSampleUpdate(BaseModel):
    project_id: UUID | None = None
    sample_number: str | None = None
    full_sample_id: str | None = Field(default=None, min_length=1)
    type: SampleType | None = None
    location: str | None = None
    pump_no: str | None = None
    cowl_no: str | None = None
    filter_size: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    initial_flowrate: float | None = None
    final_flowrate: float | None = None
    average_flowrate: float | None = None
    status: SampleStatus | None = None
    notes: str | None = None
    collected_by: UUID | None = None
    analysis: Dict[str, Any] | None = None


class AirMonitoringSampleOut(AirMonitoringSampleCreate):
    id: UUID
    analysis: Dict[str, Any] | None = None
    analyzed_by: UUID | None = None
    created_at: datetime
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)
