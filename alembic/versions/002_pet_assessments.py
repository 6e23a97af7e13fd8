"""Add pet assessments gating daycare and boarding bookings

Revision ID: 002
Revises: 001
Create Date: 2024-07-08 09:30:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    assessment_status = sa.Enum('pending', 'approved', 'rejected', name='assessment_status')
    json_type = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql')

    op.create_table('pet_assessments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('pet_id', sa.Uuid(), nullable=False),
        sa.Column('status', assessment_status, nullable=False),
        sa.Column('answers', json_type, nullable=False),
        sa.Column('owner_declaration_accepted', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('declaration_accepted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reviewed_by', sa.Uuid(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('review_notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['pet_id'], ['pets.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reviewed_by'], ['profiles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('pet_id', name='uq_pet_assessments_pet'),
    )
    op.create_index('ix_pet_assessments_organization_id', 'pet_assessments', ['organization_id'])


def downgrade() -> None:
    op.drop_table('pet_assessments')
    op.execute("DROP TYPE IF EXISTS assessment_status")
