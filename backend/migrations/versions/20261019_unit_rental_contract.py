"""Track which rental contract holds a rented-out unit

Revision ID: 20261019_unit_rental
Revises: 20261001_initial
Create Date: 2026-10-19

Activation of a rental contract moves tracked units to RENTED_OUT; closing
the contract brings the same units back. units.rental_contract_id links
them while they are out.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_unit_rental'
down_revision = '20261001_initial'
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table('units', schema=None) as batch_op:
        batch_op.add_column(sa.Column('rental_contract_id', sa.Integer(), nullable=True))
        batch_op.create_index(batch_op.f('ix_units_rental_contract_id'), ['rental_contract_id'], unique=False)


def downgrade():
    with op.batch_alter_table('units', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_units_rental_contract_id'))
        batch_op.drop_column('rental_contract_id')
