"""Create campsite availability schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-10-01

Creates parks, facilities, sites, site_availability, sync_runs and settings.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column(
            'updated_at',
            sa.DateTime(),
            nullable=False,
            server_default=sa.text('CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP')
        ),
    ]


def upgrade() -> None:
    op.create_table(
        'parks',
        sa.Column('park_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column(
            'park_number',
            sa.String(20),
            nullable=False,
            unique=True,
            comment="External PlaceId on ReserveCalifornia"
        ),
        sa.Column(
            'facility_filter',
            sa.Text(),
            nullable=True,
            comment="JSON list of external facility ids to include; NULL = all"
        ),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        mysql_engine='InnoDB',
        mysql_charset='utf8mb4'
    )

    op.create_table(
        'facilities',
        sa.Column('facility_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'park_id',
            sa.Integer(),
            sa.ForeignKey('parks.park_id', ondelete='CASCADE'),
            nullable=False
        ),
        sa.Column('external_facility_id', sa.String(20), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint('park_id', 'external_facility_id', name='facility_park_external_unique'),
        mysql_engine='InnoDB',
        mysql_charset='utf8mb4'
    )
    op.create_index('ix_facilities_park_id', 'facilities', ['park_id'])

    op.create_table(
        'sites',
        sa.Column('site_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'park_id',
            sa.Integer(),
            sa.ForeignKey('parks.park_id', ondelete='CASCADE'),
            nullable=False
        ),
        sa.Column(
            'facility_id',
            sa.Integer(),
            sa.ForeignKey('facilities.facility_id', ondelete='SET NULL'),
            nullable=True
        ),
        sa.Column('site_number', sa.String(50), nullable=False),
        sa.Column('site_name', sa.String(255), nullable=True),
        sa.Column('site_type', sa.String(100), nullable=True),
        sa.Column('unit_type_id', sa.Integer(), nullable=True),
        sa.Column('is_ada', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('vehicle_length', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('external_site_id', sa.String(50), nullable=True),
        *_timestamps(),
        mysql_engine='InnoDB',
        mysql_charset='utf8mb4'
    )
    op.create_index('idx_site_identity', 'sites', ['park_id', 'facility_id', 'site_number'])

    op.create_table(
        'site_availability',
        sa.Column('availability_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'site_id',
            sa.Integer(),
            sa.ForeignKey('sites.site_id', ondelete='CASCADE'),
            nullable=False
        ),
        sa.Column('availability_date', sa.Date(), nullable=False),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint('site_id', 'availability_date', name='site_availability_unique'),
        mysql_engine='InnoDB',
        mysql_charset='utf8mb4'
    )
    op.create_index(
        'idx_available_dates',
        'site_availability',
        ['site_id', 'is_available', 'availability_date']
    )

    op.create_table(
        'sync_runs',
        sa.Column('run_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'park_id',
            sa.Integer(),
            sa.ForeignKey('parks.park_id', ondelete='CASCADE'),
            nullable=False
        ),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('finished_at', sa.DateTime(), nullable=True),
        sa.Column(
            'status',
            sa.Enum('pending', 'success', 'error', name='sync_status_enum'),
            nullable=False,
            server_default='pending'
        ),
        sa.Column('error_message', sa.Text(), nullable=True),
        mysql_engine='InnoDB',
        mysql_charset='utf8mb4'
    )
    op.create_index('idx_sync_runs_park_started', 'sync_runs', ['park_id', 'started_at'])

    op.create_table(
        'settings',
        sa.Column('setting_key', sa.String(100), primary_key=True),
        sa.Column('setting_value', sa.Text(), nullable=True),
        mysql_engine='InnoDB',
        mysql_charset='utf8mb4'
    )


def downgrade() -> None:
    op.drop_table('settings')
    op.drop_index('idx_sync_runs_park_started', table_name='sync_runs')
    op.drop_table('sync_runs')
    op.drop_index('idx_available_dates', table_name='site_availability')
    op.drop_table('site_availability')
    op.drop_index('idx_site_identity', table_name='sites')
    op.drop_table('sites')
    op.drop_index('ix_facilities_park_id', table_name='facilities')
    op.drop_table('facilities')
    op.drop_table('parks')
