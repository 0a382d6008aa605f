"""Create teams, users and collections tables

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

Teams are keyed by (external_provider, external_tenant_id); users by
(service, service_id, team_id). Both unique constraints are what the
sign-in find-or-create relies on to resolve concurrent first logins.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _uuid_column():
    return sa.Column(
        'uuid',
        postgresql.UUID(as_uuid=True).with_variant(sa.LargeBinary(16), 'sqlite'),
        nullable=False
    )


def upgrade() -> None:
    """
    Create the sign-in schema.

    teams:
    - subdomain: optional routing label (unique)
    - external_provider/external_tenant_id: federated tenant binding (unique together)
    - avatar_url, sharing

    users:
    - service/service_id/team_id: federated identity (unique together)
    - is_admin, suspended_at/suspended_by_id
    - last_signed_in_at/last_signed_in_ip

    collections:
    - default content seeded for new teams
    """
    op.create_table(
        'teams',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('subdomain', sa.String(length=32), nullable=True),
        sa.Column('external_provider', sa.String(length=50), nullable=True),
        sa.Column('external_tenant_id', sa.String(length=255), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('sharing', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('uuid'),
        sa.UniqueConstraint(
            'external_provider', 'external_tenant_id', name='uq_teams_external_tenant'
        ),
    )
    op.create_index('ix_teams_uuid', 'teams', ['uuid'], unique=True)
    op.create_index('ix_teams_subdomain', 'teams', ['subdomain'], unique=True)
    op.create_index('ix_teams_external_tenant_id', 'teams', ['external_tenant_id'])

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('team_id', sa.Integer(), nullable=False),
        sa.Column('service', sa.String(length=50), nullable=False),
        sa.Column('service_id', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('suspended_at', sa.DateTime(), nullable=True),
        sa.Column('suspended_by_id', sa.Integer(), nullable=True),
        sa.Column('last_signed_in_at', sa.DateTime(), nullable=True),
        sa.Column('last_signed_in_ip', sa.String(length=45), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['team_id'], ['teams.id'], name='fk_users_team_id'),
        sa.ForeignKeyConstraint(
            ['suspended_by_id'], ['users.id'],
            name='fk_users_suspended_by_id', ondelete='SET NULL'
        ),
        sa.UniqueConstraint('uuid'),
        sa.UniqueConstraint(
            'service', 'service_id', 'team_id', name='uq_users_service_identity'
        ),
    )
    op.create_index('ix_users_uuid', 'users', ['uuid'], unique=True)
    op.create_index('ix_users_team_id', 'users', ['team_id'])
    op.create_index('ix_users_email', 'users', ['email'])

    op.create_table(
        'collections',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column(
            'type',
            sa.Enum('ATLAS', 'JOURNAL', name='collection_type', create_constraint=True),
            nullable=False
        ),
        sa.Column('team_id', sa.Integer(), nullable=False),
        sa.Column('creator_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['team_id'], ['teams.id'], name='fk_collections_team_id'),
        sa.ForeignKeyConstraint(
            ['creator_id'], ['users.id'],
            name='fk_collections_creator_id', ondelete='SET NULL'
        ),
        sa.UniqueConstraint('uuid'),
    )
    op.create_index('ix_collections_uuid', 'collections', ['uuid'], unique=True)
    op.create_index('ix_collections_team_id', 'collections', ['team_id'])


def downgrade() -> None:
    """Drop the sign-in schema."""
    op.drop_index('ix_collections_team_id', table_name='collections')
    op.drop_index('ix_collections_uuid', table_name='collections')
    op.drop_table('collections')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_team_id', table_name='users')
    op.drop_index('ix_users_uuid', table_name='users')
    op.drop_table('users')
    op.drop_index('ix_teams_external_tenant_id', table_name='teams')
    op.drop_index('ix_teams_subdomain', table_name='teams')
    op.drop_index('ix_teams_uuid', table_name='teams')
    op.drop_table('teams')
    sa.Enum(name='collection_type').drop(op.get_bind(), checkfirst=True)
