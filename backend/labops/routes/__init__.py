from importlib import import_module

modules = [
    'auth',
    'users',
    'equipment',
    'calibration_frequency',
    'air_pump_calibrations',
    'flowmeter_calibrations',
    'graticule_calibrations',
    'filter_holder_calibrations',
    'acetone_vaporiser_calibrations',
    'ri_liquid_calibrations',
    'incidents',
    'controlled_documents',
    'iaq',
    'projects',
    'lead_clearances',
    'air_monitoring_samples',
    'audit',
]

for m in modules:
    import_module(f'.{m}', __name__)

__all__ = modules
