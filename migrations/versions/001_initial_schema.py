"""Initial schema with storage tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _variant_key() -> list:
    return [
        sa.Column('storage_id', sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(['storage_id'], ['storages.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('storage_id'),
    ]


def upgrade() -> None:
    # Create storages table
    op.create_table(
        'storages',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('workspace_id', sa.Uuid(), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('last_save_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_storages_workspace_id'), 'storages', ['workspace_id'], unique=False)

    # Create local_storages table
    op.create_table(
        'local_storages',
        sa.Column('path', sa.String(length=1000), nullable=True),
        *_variant_key()
    )

    # Create s3_storages table
    op.create_table(
        's3_storages',
        sa.Column('s3_bucket', sa.String(length=255), nullable=False),
        sa.Column('s3_region', sa.String(length=100), nullable=True),
        sa.Column('s3_access_key', sa.Text(), nullable=False),
        sa.Column('s3_secret_key', sa.Text(), nullable=False),
        sa.Column('s3_endpoint', sa.String(length=500), nullable=True),
        sa.Column('s3_prefix', sa.String(length=500), nullable=True),
        sa.Column('s3_use_virtual_hosted_style', sa.Boolean(), nullable=False, server_default='false'),
        *_variant_key()
    )

    # Create google_drive_storages table
    op.create_table(
        'google_drive_storages',
        sa.Column('client_id', sa.String(length=500), nullable=False),
        sa.Column('client_secret', sa.Text(), nullable=False),
        sa.Column('token_json', sa.Text(), nullable=True),
        sa.Column('folder_name', sa.String(length=255), nullable=True),
        *_variant_key()
    )

    # Create nas_storages table
    op.create_table(
        'nas_storages',
        sa.Column('host', sa.String(length=255), nullable=False),
        sa.Column('port', sa.Integer(), nullable=False, server_default='445'),
        sa.Column('share', sa.String(length=255), nullable=False),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('password', sa.Text(), nullable=False),
        sa.Column('use_ssl', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('domain', sa.String(length=255), nullable=True),
        sa.Column('path', sa.String(length=1000), nullable=True),
        *_variant_key()
    )

    # Create azure_blob_storages table
    op.create_table(
        'azure_blob_storages',
        sa.Column('auth_method', sa.String(length=50), nullable=False, server_default='ACCOUNT_KEY'),
        sa.Column('connection_string', sa.Text(), nullable=True),
        sa.Column('account_name', sa.String(length=255), nullable=True),
        sa.Column('account_key', sa.Text(), nullable=True),
        sa.Column('container_name', sa.String(length=255), nullable=False),
        sa.Column('endpoint', sa.String(length=500), nullable=True),
        sa.Column('prefix', sa.String(length=500), nullable=True),
        *_variant_key()
    )

    # Create ftp_storages table
    op.create_table(
        'ftp_storages',
        sa.Column('host', sa.String(length=255), nullable=False),
        sa.Column('port', sa.Integer(), nullable=False, server_default='21'),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('password', sa.Text(), nullable=False),
        sa.Column('use_ssl', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('skip_tls_verify', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('path', sa.String(length=1000), nullable=True),
        *_variant_key()
    )

    # Create multi_storages table (legs are references, not owned)
    op.create_table(
        'multi_storages',
        sa.Column('primary_id', sa.Uuid(), nullable=False),
        sa.Column('secondary_id', sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(['primary_id'], ['storages.id']),
        sa.ForeignKeyConstraint(['secondary_id'], ['storages.id']),
        *_variant_key()
    )
    op.create_index(op.f('ix_multi_storages_primary_id'), 'multi_storages', ['primary_id'], unique=False)
    op.create_index(op.f('ix_multi_storages_secondary_id'), 'multi_storages', ['secondary_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_multi_storages_secondary_id'), table_name='multi_storages')
    op.drop_index(op.f('ix_multi_storages_primary_id'), table_name='multi_storages')
    op.drop_table('multi_storages')
    op.drop_table('ftp_storages')
    op.drop_table('azure_blob_storages')
    op.drop_table('nas_storages')
    op.drop_table('google_drive_storages')
    op.drop_table('s3_storages')
    op.drop_table('local_storages')
    op.drop_index(op.f('ix_storages_workspace_id'), table_name='storages')
    op.drop_table('storages')
