"""initial_schema

Revision ID: 4b1f6c2d9e07
Revises: 
Create Date: 2026-10-19 09:20:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '4b1f6c2d9e07'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- Users ---
    op.create_table(
        'users',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('handle', sa.String(), nullable=True),
        sa.Column('avatar_url', sa.String(), nullable=True),
        sa.Column('role', sa.String(), server_default='USER', nullable=False),
        sa.Column('accepted_author_agreement', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=False)

    op.create_table(
        'linked_auth_providers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('provider', sa.String(), nullable=False),
        sa.Column('provider_user_id', sa.String(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('provider', 'provider_user_id', name='uq_linked_provider_identity')
    )
    op.create_index(op.f('ix_linked_auth_providers_user_id'), 'linked_auth_providers', ['user_id'], unique=False)

    # --- Themes ---
    op.create_table(
        'themes',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('favorites_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('versions_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_themes_user_id'), 'themes', ['user_id'], unique=False)

    op.create_table(
        'theme_versions',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('theme_id', sa.String(), nullable=False),
        sa.Column('version', sa.String(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['theme_id'], ['themes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('theme_id', 'version', name='uq_theme_version')
    )
    op.create_index(op.f('ix_theme_versions_theme_id'), 'theme_versions', ['theme_id'], unique=False)

    # --- Theme Job Queue (at most one pending job per theme) ---
    op.create_table(
        'theme_job_queue',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('theme_id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('version', sa.String(), nullable=False),
        sa.Column('action', sa.String(), server_default='CREATE', nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_theme_job_queue_theme_id'), 'theme_job_queue', ['theme_id'], unique=True)
    op.create_index(op.f('ix_theme_job_queue_user_id'), 'theme_job_queue', ['user_id'], unique=False)

    # --- Plugins ---
    op.create_table(
        'plugins',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('favorites_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('image_url', sa.String(), nullable=True),
        sa.Column('package_url', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('status', sa.String(), server_default='SYNC', nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_plugins_status'), 'plugins', ['status'], unique=False)
    op.create_index(op.f('ix_plugins_user_id'), 'plugins', ['user_id'], unique=False)

    # --- Favorites ---
    op.create_table(
        'favorite_themes',
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('theme_id', sa.String(), nullable=False),
        sa.ForeignKeyConstraint(['theme_id'], ['themes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id', 'theme_id')
    )
    op.create_index('idx_favorite_themes_theme', 'favorite_themes', ['theme_id'], unique=False)

    op.create_table(
        'favorite_plugins',
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('plugin_id', sa.String(), nullable=False),
        sa.ForeignKeyConstraint(['plugin_id'], ['plugins.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id', 'plugin_id')
    )
    op.create_index('idx_favorite_plugins_plugin', 'favorite_plugins', ['plugin_id'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_favorite_plugins_plugin', table_name='favorite_plugins')
    op.drop_table('favorite_plugins')
    op.drop_index('idx_favorite_themes_theme', table_name='favorite_themes')
    op.drop_table('favorite_themes')
    op.drop_index(op.f('ix_plugins_user_id'), table_name='plugins')
    op.drop_index(op.f('ix_plugins_status'), table_name='plugins')
    op.drop_table('plugins')
    op.drop_index(op.f('ix_theme_job_queue_user_id'), table_name='theme_job_queue')
    op.drop_index(op.f('ix_theme_job_queue_theme_id'), table_name='theme_job_queue')
    op.drop_table('theme_job_queue')
    op.drop_index(op.f('ix_theme_versions_theme_id'), table_name='theme_versions')
    op.drop_table('theme_versions')
    op.drop_index(op.f('ix_themes_user_id'), table_name='themes')
    op.drop_table('themes')
    op.drop_index(op.f('ix_linked_auth_providers_user_id'), table_name='linked_auth_providers')
    op.drop_table('linked_auth_providers')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
