"""Initial schema with organizations, profiles, pets, services, appointments and schedule blocks

Revision ID: 001
Revises:
Create Date: 2024-05-20 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _audit_columns():
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    user_role = sa.Enum('superadmin', 'admin', 'staff', 'customer', name='user_role')
    pet_species = sa.Enum('dog', 'cat', 'other', name='pet_species')
    pet_gender = sa.Enum('male', 'female', name='pet_gender')
    pet_size = sa.Enum('small', 'medium', 'large', 'giant', name='pet_size')
    service_category = sa.Enum('grooming', 'daycare', 'boarding', 'other', name='service_category')
    appointment_status = sa.Enum(
        'pending', 'confirmed', 'in_progress', 'done', 'canceled', 'no_show',
        name='appointment_status',
    )
    json_type = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql')

    op.create_table('organizations',
        *_audit_columns(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table('profiles',
        *_audit_columns(),
        sa.Column('organization_id', sa.Uuid(), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('work_start', sa.Time(), nullable=True),
        sa.Column('lunch_start', sa.Time(), nullable=True),
        sa.Column('lunch_end', sa.Time(), nullable=True),
        sa.Column('work_end', sa.Time(), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_profiles_organization_id', 'profiles', ['organization_id'])
    op.create_index('ix_profiles_role', 'profiles', ['role'])
    op.create_index('idx_profiles_org_role', 'profiles', ['organization_id', 'role'])

    op.create_table('customers',
        *_audit_columns(),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('profile_id', sa.Uuid(), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['profile_id'], ['profiles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_customers_organization_id', 'customers', ['organization_id'])
    op.create_index('ix_customers_profile_id', 'customers', ['profile_id'])

    op.create_table('pets',
        *_audit_columns(),
        sa.Column('customer_id', sa.Uuid(), nullable=False),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('species', pet_species, nullable=False),
        sa.Column('breed', sa.String(length=100), nullable=True),
        sa.Column('gender', pet_gender, nullable=False),
        sa.Column('size', pet_size, nullable=False),
        sa.Column('weight_kg', sa.Numeric(precision=6, scale=2), nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('is_neutered', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('medical_notes', sa.Text(), nullable=True),
        sa.Column('vaccination_up_to_date', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('photo_url', sa.String(length=500), nullable=True),
        sa.Column('perfume_allowed', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('accessories_allowed', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.CheckConstraint('weight_kg IS NULL OR weight_kg > 0', name='ck_pets_weight_positive'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_pets_customer_id', 'pets', ['customer_id'])
    op.create_index('ix_pets_organization_id', 'pets', ['organization_id'])
    op.create_index('idx_pets_org_customer', 'pets', ['organization_id', 'customer_id'])

    op.create_table('services',
        *_audit_columns(),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('category', service_category, nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('base_price', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.CheckConstraint('duration_minutes > 0', name='ck_services_duration_positive'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_services_organization_id', 'services', ['organization_id'])
    op.create_index('ix_services_category', 'services', ['category'])

    op.create_table('appointments',
        *_audit_columns(),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('pet_id', sa.Uuid(), nullable=False),
        sa.Column('service_id', sa.Uuid(), nullable=False),
        sa.Column('customer_id', sa.Uuid(), nullable=True),
        sa.Column('staff_id', sa.Uuid(), nullable=True),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', appointment_status, nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('checklist', json_type, nullable=False),
        sa.Column('actual_check_in', sa.DateTime(timezone=True), nullable=True),
        sa.Column('actual_check_out', sa.DateTime(timezone=True), nullable=True),
        sa.Column('check_in_date', sa.Date(), nullable=True),
        sa.Column('check_out_date', sa.Date(), nullable=True),
        sa.CheckConstraint("actual_check_out IS NULL OR status = 'done'", name='ck_appointments_checked_out_is_done'),
        sa.CheckConstraint(
            'check_out_date IS NULL OR check_in_date IS NULL OR check_out_date >= check_in_date',
            name='ck_appointments_boarding_dates_ordered',
        ),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['pet_id'], ['pets.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['service_id'], ['services.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['staff_id'], ['profiles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_appointments_organization_id', 'appointments', ['organization_id'])
    op.create_index('ix_appointments_pet_id', 'appointments', ['pet_id'])
    op.create_index('ix_appointments_service_id', 'appointments', ['service_id'])
    op.create_index('ix_appointments_customer_id', 'appointments', ['customer_id'])
    op.create_index('ix_appointments_staff_id', 'appointments', ['staff_id'])
    op.create_index('ix_appointments_scheduled_at', 'appointments', ['scheduled_at'])
    op.create_index('ix_appointments_status', 'appointments', ['status'])
    op.create_index('idx_appointments_org_scheduled', 'appointments', ['organization_id', 'scheduled_at'])
    op.create_index('idx_appointments_org_status', 'appointments', ['organization_id', 'status'])
    op.create_index('idx_appointments_staff_scheduled', 'appointments', ['staff_id', 'scheduled_at'])

    op.create_table('schedule_blocks',
        *_audit_columns(),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('start_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('reason', sa.String(length=500), nullable=False),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.CheckConstraint('start_at < end_at', name='ck_schedule_blocks_range'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_schedule_blocks_organization_id', 'schedule_blocks', ['organization_id'])
    op.create_index('idx_schedule_blocks_org_range', 'schedule_blocks', ['organization_id', 'start_at', 'end_at'])


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_table('schedule_blocks')
    op.drop_table('appointments')
    op.drop_table('services')
    op.drop_table('pets')
    op.drop_table('customers')
    op.drop_table('profiles')
    op.drop_table('organizations')

    # Drop enum types
    op.execute("DROP TYPE IF EXISTS appointment_status")
    op.execute("DROP TYPE IF EXISTS service_category")
    op.execute("DROP TYPE IF EXISTS pet_size")
    op.execute("DROP TYPE IF EXISTS pet_gender")
    op.execute("DROP TYPE IF EXISTS pet_species")
    op.execute("DROP TYPE IF EXISTS user_role")
