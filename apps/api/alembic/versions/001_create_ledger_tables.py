"""Create ledger_blocks and evidence_files.

Revision ID: 001
Revises:
Create Date: 2024-05-01
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'ledger_blocks',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('block_number', sa.Integer(), nullable=False),
        sa.Column('hash', sa.String(length=64), nullable=False),
        sa.Column('previous_hash', sa.String(length=64), nullable=False),
        sa.Column('data_hash', sa.String(length=64), nullable=False),
        sa.Column('timestamp', sa.String(length=32), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.Column('evidence_count', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    # Unique block numbers stop two writers from forking the chain
    op.create_index('ix_ledger_blocks_block_number', 'ledger_blocks', ['block_number'], unique=True)
    op.create_index('ix_ledger_blocks_hash', 'ledger_blocks', ['hash'])

    op.create_table(
        'evidence_files',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('case_id', sa.String(length=255), nullable=False),
        sa.Column('block_id', sa.String(length=64), nullable=False),
        sa.Column('file_name', sa.String(length=512), nullable=False),
        sa.Column('file_path', sa.String(length=512), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('file_type', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('uploaded_by', sa.String(length=255), nullable=False),
        sa.Column('uploader_name', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(['block_id'], ['ledger_blocks.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_evidence_files_case_id', 'evidence_files', ['case_id'])
    op.create_index('ix_evidence_files_block_id', 'evidence_files', ['block_id'])
    op.create_index('ix_evidence_files_uploaded_by', 'evidence_files', ['uploaded_by'])


def downgrade() -> None:
    op.drop_index('ix_evidence_files_uploaded_by', table_name='evidence_files')
    op.drop_index('ix_evidence_files_block_id', table_name='evidence_files')
    op.drop_index('ix_evidence_files_case_id', table_name='evidence_files')
    op.drop_table('evidence_files')
    op.drop_index('ix_ledger_blocks_hash', table_name='ledger_blocks')
    op.drop_index('ix_ledger_blocks_block_number', table_name='ledger_blocks')
    op.drop_table('ledger_blocks')
