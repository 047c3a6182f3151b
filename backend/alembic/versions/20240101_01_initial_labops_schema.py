"""initial labops schema

Revision ID: 20240101_01
Revises:
Create Date: 2024-01-01 09:00:00
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '20240101_01'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.UUID(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False, unique=True),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('first_name', sa.String(), nullable=False),
        sa.Column('last_name', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('role', sa.String(), nullable=False, server_default='employee'),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'password_reset_tokens',
        sa.Column('id', sa.UUID(), primary_key=True),
        sa.Column('user_id', sa.UUID(), sa.ForeignKey('users.id', ondelete='CASCADE')),
        sa.Column('token', sa.String(), nullable=False, unique=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('used', sa.Boolean(), nullable=True),
    )
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.UUID(), primary_key=True),
        sa.Column('user_id', sa.UUID(), sa.ForeignKey('users.id')),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('target_type', sa.String(), nullable=True),
        sa.Column('target_id', sa.UUID(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_table(
        'equipment',
        sa.Column('id', sa.UUID(), primary_key=True),
        sa.Column('equipment_reference', sa.String(), nullable=False, unique=True),
        sa.Column('equipment_type', sa.String(), nullable=False),
        sa.Column('section', sa.String(), nullable=True),
        sa.Column('brand_model', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='active'),
        sa.Column('last_calibration', sa.Date(), nullable=True),
        sa.Column('calibration_due', sa.Date(), nullable=True),
        sa.Column('calibration_frequency', sa.Integer(), nullable=True),
        sa.Column('archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('archived_at', sa.DateTime(), nullable=True),
        sa.Column('created_by', sa.UUID(), sa.ForeignKey('users.id')),
        *_timestamps(),
    )
    op.create_table(
        'calibration_frequencies',
        sa.Column('id', sa.UUID(), primary_key=True),
        sa.Column('equipment_type', sa.String(), nullable=False, unique=True),
        sa.Column('frequency_value', sa.Integer(), nullable=False),
        sa.Column('frequency_unit', sa.String(), nullable=False, server_default='months'),
        sa.Column('created_by', sa.UUID(), sa.ForeignKey('users.id')),
        sa.Column('updated_by', sa.UUID(), sa.ForeignKey('users.id')),
        *_timestamps(),
    )
    op.create_table(
        'air_pump_calibrations',
        sa.Column('id', sa.UUID(), primary_key=True),
        sa.Column('pump_id', sa.UUID(), sa.ForeignKey('equipment.id'), nullable=False),
        sa.Column('calibration_date', sa.Date(), nullable=False),
        sa.Column('calibrated_by', sa.UUID(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('test_results', sa.JSON(), nullable=True),
        sa.Column('overall_result', sa.String(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('flowmeter_id', sa.UUID(), sa.ForeignKey('equipment.id'), nullable=True),
        sa.Column('next_calibration_due', sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_air_pump_calibrations_pump_id', 'air_pump_calibrations', ['pump_id'])
    op.create_table(
        'flowmeter_calibrations',
        sa.Column('id', sa.UUID(), primary_key=True),
        sa.Column('flowmeter_id', sa.String(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('flow_rate', sa.Float(), nullable=False),
        sa.Column('bubbleflow_volume', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('technician', sa.String(), nullable=False),
        sa.Column('next_calibration', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('runtime1', sa.Float(), nullable=True),
        sa.Column('runtime2', sa.Float(), nullable=True),
        sa.Column('runtime3', sa.Float(), nullable=True),
        sa.Column('average_runtime', sa.Float(), nullable=True),
        sa.Column('equivalent_flowrate', sa.Float(), nullable=True),
        sa.Column('difference', sa.Float(), nullable=True),
        sa.Column('calibrated_by', sa.UUID(), sa.ForeignKey('users.id'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_flowmeter_calibrations_flowmeter_id', 'flowmeter_calibrations', ['flowmeter_id'])
    op.create_table(
        'graticule_calibrations',
        sa.Column('id', sa.UUID(), primary_key=True),
        sa.Column('calibration_id', sa.String(), nullable=True, unique=True),
        sa.Column('graticule_id', sa.String(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('scale', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('technician', sa.String(), nullable=False),
        sa.Column('next_calibration', sa.Date(), nullable=True),
        sa.Column('microscope_id', sa.UUID(), sa.ForeignKey('equipment.id'), nullable=True),
        sa.Column('microscope_reference', sa.String(), nullable=True),
        sa.Column('diameter_checks', sa.JSON(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('calibrated_by', sa.UUID(), sa.ForeignKey('users.id'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_graticule_calibrations_graticule_id', 'graticule_calibrations', ['graticule_id'])
    op.create_table(
        'filter_holder_calibrations',
        sa.Column('id', sa.UUID(), primary_key=True),
        sa.Column('filter_holder_model', sa.String(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        *[
            sa.Column(f'filter{n}_diameter{d}', sa.Float(), nullable=True)
            for n in (1, 2, 3)
            for d in (1, 2)
        ],
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('technician', sa.String(), nullable=False),
        sa.Column('next_calibration', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('calibrated_by', sa.UUID(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('archived_at', sa.DateTime(), nullable=True),
        sa.Column('archived_by', sa.UUID(), sa.ForeignKey('users.id'), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        'ix_filter_holder_calibrations_filter_holder_model',
        'filter_holder_calibrations',
        ['filter_holder_model'],
    )
    op.create_table(
        'acetone_vaporiser_calibrations',
        sa.Column('id', sa.UUID(), primary_key=True),
        sa.Column('vaporiser_id', sa.UUID(), sa.ForeignKey('equipment.id'), nullable=False),
        sa.Column('vaporiser_reference', sa.String(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('temperature', sa.Float(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('next_calibration', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('calibrated_by', sa.UUID(), sa.ForeignKey('users.id'), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        'ix_acetone_vaporiser_calibrations_vaporiser_id',
        'acetone_vaporiser_calibrations',
        ['vaporiser_id'],
    )
    op.create_table(
        'ri_liquid_calibrations',
        sa.Column('id', sa.UUID(), primary_key=True),
        sa.Column('bottle_id', sa.String(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('refractive_index', sa.Float(), nullable=False),
        sa.Column('asbestos_type_verified', sa.String(), nullable=False),
        sa.Column('date_opened', sa.Date(), nullable=False),
        sa.Column('batch_number', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('next_calibration', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_empty', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('calibrated_by', sa.UUID(), sa.ForeignKey('users.id'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_ri_liquid_calibrations_bottle_id', 'ri_liquid_calibrations', ['bottle_id'])
    op.create_table(
        'incidents',
        sa.Column('id', sa.UUID(), primary_key=True),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('ref', sa.String(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('reported_by', sa.String(), nullable=True),
        sa.Column('nature', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('corrective_action_required', sa.Boolean(), nullable=True),
        sa.Column('corrective_action', sa.Text(), nullable=True),
        sa.Column('person_responsible', sa.UUID(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('corrective_action_due', sa.Date(), nullable=True),
        sa.Column('attachments', sa.JSON(), nullable=True),
        sa.Column('signed_off_by', sa.UUID(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('signed_off_by_name', sa.String(), nullable=True),
        sa.Column('signed_off_at', sa.DateTime(), nullable=True),
        sa.Column('sign_off_evidence', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'controlled_documents',
        sa.Column('id', sa.UUID(), primary_key=True),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('document_ref', sa.String(), nullable=False),
        sa.Column('document_title', sa.String(), nullable=False),
        sa.Column('document_description', sa.Text(), nullable=True),
        sa.Column('section', sa.String(), nullable=True),
        sa.Column('current_revision', sa.Integer(), nullable=True),
        sa.Column('last_review_date', sa.Date(), nullable=True),
        sa.Column('hard_copy_locations', sa.JSON(), nullable=True),
        sa.Column('file_name', sa.String(), nullable=True),
        sa.Column('file_data', sa.Text(), nullable=True),
        sa.Column('history', sa.JSON(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.Column('deleted_by', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_controlled_documents_document_ref', 'controlled_documents', ['document_ref'])
    op.create_table(
        'iaq_records',
        sa.Column('id', sa.UUID(), primary_key=True),
        sa.Column('monitoring_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='In Progress'),
        sa.Column('sample_ids', sa.JSON(), nullable=True),
        sa.Column('report_approved_by', sa.String(), nullable=True),
        sa.Column('report_issue_date', sa.Date(), nullable=True),
        sa.Column('analysed_by', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'iaq_samples',
        sa.Column('id', sa.UUID(), primary_key=True),
        sa.Column('iaq_record_id', sa.UUID(), sa.ForeignKey('iaq_records.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sample_number', sa.String(), nullable=False),
        sa.Column('full_sample_id', sa.String(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('pump_no', sa.String(), nullable=True),
        sa.Column('flowmeter', sa.String(), nullable=True),
        sa.Column('cowl_no', sa.String(), nullable=True),
        sa.Column('sampler', sa.UUID(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('collected_by', sa.UUID(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('filter_size', sa.String(), nullable=True),
        sa.Column('start_time', sa.String(), nullable=True),
        sa.Column('end_time', sa.String(), nullable=True),
        sa.Column('initial_flowrate', sa.Float(), nullable=True),
        sa.Column('final_flowrate', sa.Float(), nullable=True),
        sa.Column('average_flowrate', sa.Float(), nullable=True),
        sa.Column('status', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_field_blank', sa.Boolean(), nullable=True),
        sa.Column('analysis', sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'projects',
        sa.Column('id', sa.UUID(), primary_key=True),
        sa.Column('project_id', sa.String(), nullable=False, unique=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('client', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='In progress'),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.UUID(), sa.ForeignKey('users.id')),
        *_timestamps(),
    )
    op.create_table(
        'project_audits',
        sa.Column('id', sa.UUID(), primary_key=True),
        sa.Column('project_id', sa.UUID(), sa.ForeignKey('projects.id', ondelete='CASCADE')),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('field', sa.String(), nullable=True),
        sa.Column('old_value', sa.String(), nullable=True),
        sa.Column('new_value', sa.String(), nullable=True),
        sa.Column('changed_by', sa.UUID(), sa.ForeignKey('users.id')),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_project_audits_project_id', 'project_audits', ['project_id'])
    op.create_table(
        'lead_clearances',
        sa.Column('id', sa.UUID(), primary_key=True),
        sa.Column('project_id', sa.UUID(), sa.ForeignKey('projects.id'), nullable=False),
        sa.Column('clearance_date', sa.Date(), nullable=False),
        sa.Column('inspection_time', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='in progress'),
        sa.Column('consultant', sa.String(), nullable=True),
        sa.Column('lead_abatement_contractor', sa.String(), nullable=True),
        sa.Column('jurisdiction', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('sequence_number', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_by', sa.UUID(), sa.ForeignKey('users.id')),
        *_timestamps(),
    )
    op.create_index('ix_lead_clearances_project_id', 'lead_clearances', ['project_id'])
    op.create_table(
        'air_monitoring_samples',
        sa.Column('id', sa.UUID(), primary_key=True),
        sa.Column('project_id', sa.UUID(), sa.ForeignKey('projects.id'), nullable=True),
        sa.Column('sample_number', sa.String(), nullable=False),
        sa.Column('full_sample_id', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('pump_no', sa.String(), nullable=True),
        sa.Column('cowl_no', sa.String(), nullable=True),
        sa.Column('filter_size', sa.String(), nullable=True),
        sa.Column('start_time', sa.String(), nullable=True),
        sa.Column('end_time', sa.String(), nullable=True),
        sa.Column('initial_flowrate', sa.Float(), nullable=True),
        sa.Column('final_flowrate', sa.Float(), nullable=True),
        sa.Column('average_flowrate', sa.Float(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('collected_by', sa.UUID(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('analysis', sa.JSON(), nullable=True),
        sa.Column('analyzed_by', sa.UUID(), sa.ForeignKey('users.id'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_air_monitoring_samples_project_id', 'air_monitoring_samples', ['project_id'])
    op.create_index(
        'ix_air_monitoring_samples_full_sample_id',
        'air_monitoring_samples',
        ['full_sample_id'],
        unique=True,
    )


def downgrade():
    op.drop_index('ix_air_monitoring_samples_full_sample_id', table_name='air_monitoring_samples')
    op.drop_index('ix_air_monitoring_samples_project_id', table_name='air_monitoring_samples')
    op.drop_table('air_monitoring_samples')
    op.drop_index('ix_lead_clearances_project_id', table_name='lead_clearances')
    op.drop_table('lead_clearances')
    op.drop_index('ix_project_audits_project_id', table_name='project_audits')
    op.drop_table('project_audits')
    op.drop_table('projects')
    op.drop_table('iaq_samples')
    op.drop_table('iaq_records')
    op.drop_index('ix_controlled_documents_document_ref', table_name='controlled_documents')
    op.drop_table('controlled_documents')
    op.drop_table('incidents')
    op.drop_index('ix_ri_liquid_calibrations_bottle_id', table_name='ri_liquid_calibrations')
    op.drop_table('ri_liquid_calibrations')
    op.drop_index('ix_acetone_vaporiser_calibrations_vaporiser_id', table_name='acetone_vaporiser_calibrations')
    op.drop_table('acetone_vaporiser_calibrations')
    op.drop_index('ix_filter_holder_calibrations_filter_holder_model', table_name='filter_holder_calibrations')
    op.drop_table('filter_holder_calibrations')
    op.drop_index('ix_graticule_calibrations_graticule_id', table_name='graticule_calibrations')
    op.drop_table('graticule_calibrations')
    op.drop_index('ix_flowmeter_calibrations_flowmeter_id', table_name='flowmeter_calibrations')
    op.drop_table('flowmeter_calibrations')
    op.drop_index('ix_air_pump_calibrations_pump_id', table_name='air_pump_calibrations')
    op.drop_table('air_pump_calibrations')
    op.drop_table('calibration_frequencies')
    op.drop_table('equipment')
    op.drop_table('audit_logs')
    op.drop_table('password_reset_tokens')
    op.drop_table('users')
