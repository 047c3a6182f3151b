"""Calibration pass/fail and due-date rules shared by the calibration records."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping

from dateutil.relativedelta import relativedelta

# purpose: keep calibration arithmetic free of persistence so every record type applies the same rules
# status: active

PASS = "Pass"
FAIL = "Fail"

FLOW_TOLERANCE_PERCENT = 5.0
AIR_PUMP_SET_FLOWRATES = (1000, 1500, 2000, 3000, 4000)
BUBBLEFLOW_VOLUMES = ("500", "1000")

RI_TOLERANCE = 0.001
RI_REFERENCE_PAIRS: tuple[tuple[float, str], ...] = (
    (1.55, "Chrysotile"),
    (1.67, "Amosite"),
    (1.70, "Crocidolite"),
)
ALLOWED_REFRACTIVE_INDICES = tuple(index for index, _ in RI_REFERENCE_PAIRS)
ASBESTOS_TYPES = tuple(fibre for _, fibre in RI_REFERENCE_PAIRS)

# inclusive band for the graticule reference circle, in micrometres
GRATICULE_DIAMETER_BAND_UM = (98.0, 102.0)

# filter holders, in millimetres
FILTER_HOLDER_TOLERANCE_MM = 0.5
FILTER_HOLDER_FILTER_COUNT = 3

# acetone vaporisers, in degrees Celsius
ACETONE_TEMPERATURE_BAND_C = (65.0, 100.0)

FREQUENCY_UNITS = ("months", "years")

AIR_PUMP = "Air pump"
RI_LIQUIDS = "RI Liquids"
GRATICULE = "Graticule"
FILTER_HOLDER = "Filter holder"
ACETONE_VAPORISER = "Acetone Vaporiser"
SITE_FLOWMETER = "Site flowmeter"
BUBBLE_FLOWMETER = "Bubble flowmeter"

# calibrated on change or failure, never due by date
UNDATED_TYPES = (GRATICULE, FILTER_HOLDER)

EQUIPMENT_ACTIVE = "active"
EQUIPMENT_CALIBRATION_DUE = "calibration due"
EQUIPMENT_OUT_OF_SERVICE = "out-of-service"
EQUIPMENT_STATUSES = (EQUIPMENT_ACTIVE, EQUIPMENT_CALIBRATION_DUE, EQUIPMENT_OUT_OF_SERVICE)


class CalibrationError(ValueError):
    """Raised when calibration inputs cannot be evaluated."""


class AggregationPolicy(str, enum.Enum):
    ALL = "all"
    ANY = "any"


@dataclass(frozen=True)
class Frequency:
    value: int
    unit: str = "months"

    def __post_init__(self) -> None:
        if self.unit not in FREQUENCY_UNITS:
            raise CalibrationError(f"Unknown frequency unit: {self.unit}")
        if self.value <= 0:
            raise CalibrationError("Frequency value must be positive")

    @property
    def months(self) -> int:
        return self.value * 12 if self.unit == "years" else self.value


FALLBACK_FREQUENCY = Frequency(12, "months")

DEFAULT_FREQUENCIES: dict[str, Frequency] = {
    AIR_PUMP: Frequency(1, "years"),
    RI_LIQUIDS: Frequency(6, "months"),
    SITE_FLOWMETER: Frequency(12, "months"),
    BUBBLE_FLOWMETER: Frequency(12, "months"),
}


@dataclass(frozen=True)
class FlowmeterReadings:
    average_runtime: float | None
    equivalent_flowrate: float | None
    difference: float | None
    status: str | None


def percent_error(actual: float, target: float) -> float:
    """Return ``|actual - target| / target * 100``."""

    if target is None or target <= 0:
        raise CalibrationError("Target value must be greater than zero")
    return abs(actual - target) / target * 100


def flow_passes(actual: float, target: float) -> bool:
    return percent_error(actual, target) < FLOW_TOLERANCE_PERCENT


def validate_ri_liquid(refractive_index: float | None, asbestos_type: str | None) -> list[str]:
    """Return validation messages for an RI liquid reading; empty when valid."""

    errors: list[str] = []
    if refractive_index is None or not any(
        abs(refractive_index - allowed) < RI_TOLERANCE for allowed in ALLOWED_REFRACTIVE_INDICES
    ):
        errors.append("Refractive index must be one of: 1.55, 1.67, or 1.70")
    if asbestos_type not in ASBESTOS_TYPES:
        errors.append("Asbestos type verified must be one of: Chrysotile, Amosite, or Crocidolite")
    return errors


def ri_liquid_passes(refractive_index: float, asbestos_type: str) -> bool:
    return any(
        abs(refractive_index - index) < RI_TOLERANCE and asbestos_type == fibre
        for index, fibre in RI_REFERENCE_PAIRS
    )


def graticule_diameter_passes(diameter_um: float) -> bool:
    low, high = GRATICULE_DIAMETER_BAND_UM
    return low <= diameter_um <= high


def acetone_vaporiser_status(temperature: float) -> str:
    low, high = ACETONE_TEMPERATURE_BAND_C
    return result_label(low <= temperature <= high)


def aggregate(passes: Iterable[bool], policy: AggregationPolicy) -> bool:
    """Combine sub-test results; an empty set of sub-tests never passes."""

    values = list(passes)
    if not values:
        return False
    if policy is AggregationPolicy.ALL:
        return all(values)
    return any(values)


def result_label(passed: bool) -> str:
    return PASS if passed else FAIL


def evaluate_air_pump_tests(tests: Iterable[Mapping]) -> tuple[list[dict], str]:
    """Score each flow test and derive the overall air-pump result.

    Air pumps pass when at least one flow test is within tolerance.
    """

    evaluated: list[dict] = []
    for test in tests:
        set_flowrate = float(test["set_flowrate"])
        actual_flowrate = float(test["actual_flowrate"])
        error = percent_error(actual_flowrate, set_flowrate)
        evaluated.append(
            {
                "set_flowrate": set_flowrate,
                "actual_flowrate": actual_flowrate,
                "percent_error": error,
                "passed": error < FLOW_TOLERANCE_PERCENT,
            }
        )
    overall = aggregate((t["passed"] for t in evaluated), AggregationPolicy.ANY)
    return evaluated, result_label(overall)


def evaluate_graticule_checks(diameters: Iterable[float]) -> tuple[list[dict], str | None]:
    """Score diameter checks; every check must be inside the band.

    Returns ``None`` for the status when no checks were recorded.
    """

    checks = [
        {"diameter_um": float(d), "passed": graticule_diameter_passes(float(d))}
        for d in diameters
    ]
    if not checks:
        return [], None
    return checks, result_label(aggregate((c["passed"] for c in checks), AggregationPolicy.ALL))


def filter_holder_errors(filters: Iterable[tuple[float | None, float | None]]) -> list[str]:
    """Reject filters whose two measured diameters differ by more than the tolerance."""

    errors = []
    for number, (first, second) in enumerate(filters, start=1):
        if first is None or second is None:
            continue
        if abs(first - second) > FILTER_HOLDER_TOLERANCE_MM:
            errors.append(
                f"Filter {number}: Filter Unsuitable - diameters differ by more than {FILTER_HOLDER_TOLERANCE_MM}mm"
            )
    return errors


def filter_holder_status(filters: Iterable[tuple[float | None, float | None]]) -> str | None:
    """Pass when the filter average diameters sit within the tolerance of each other.

    Returns ``None`` unless every filter has both diameters.
    """

    averages = []
    for first, second in filters:
        if first is None or second is None:
            return None
        averages.append((first + second) / 2)
    if len(averages) != FILTER_HOLDER_FILTER_COUNT:
        return None
    return result_label(max(averages) - min(averages) <= FILTER_HOLDER_TOLERANCE_MM)


def flowmeter_readings(
    flow_rate: float,
    bubbleflow_volume: str,
    runtimes: tuple[float | None, float | None, float | None],
) -> FlowmeterReadings:
    """Derive the bubble-flow comparison for a flowmeter set to ``flow_rate`` L/min."""

    if not all(runtimes):
        return FlowmeterReadings(None, None, None, None)
    average_runtime = sum(runtimes) / 3
    volume = float(bubbleflow_volume)
    flow_ml_min = flow_rate * 1000
    if average_runtime <= 0 or flow_ml_min <= 0:
        return FlowmeterReadings(average_runtime, None, None, None)
    expected_seconds = volume / flow_ml_min * 60
    equivalent = expected_seconds / average_runtime * flow_ml_min
    difference = percent_error(equivalent, flow_ml_min)
    return FlowmeterReadings(
        average_runtime=average_runtime,
        equivalent_flowrate=equivalent,
        difference=difference,
        status=result_label(difference < FLOW_TOLERANCE_PERCENT),
    )


def add_frequency(start: date, value: int, unit: str) -> date:
    """Advance ``start`` by whole calendar months or years.

    Month ends clamp, so 31 January plus one month is the last day of February.
    """

    if unit not in FREQUENCY_UNITS:
        raise CalibrationError(f"Unknown frequency unit: {unit}")
    if unit == "years":
        return start + relativedelta(years=value)
    return start + relativedelta(months=value)


def default_frequency(equipment_type: str) -> Frequency:
    return DEFAULT_FREQUENCIES.get(equipment_type, FALLBACK_FREQUENCY)


def compute_due_date(
    calibration_date: date,
    frequency: Frequency | None,
    *,
    default: Frequency = FALLBACK_FREQUENCY,
) -> date:
    chosen = frequency or default
    return add_frequency(calibration_date, chosen.value, chosen.unit)


def graticule_status(latest_result: str | None) -> str:
    """Graticules never expire; only a failed latest calibration takes one out of service."""

    if latest_result == FAIL:
        return EQUIPMENT_OUT_OF_SERVICE
    return EQUIPMENT_ACTIVE


def equipment_status_for_due_date(due: date | None, today: date) -> str:
    if due is not None and due < today:
        return EQUIPMENT_CALIBRATION_DUE
    return EQUIPMENT_ACTIVE
