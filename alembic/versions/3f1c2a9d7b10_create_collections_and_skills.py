"""create_collections_and_skills

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19 09:12:41.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'collections',
        sa.Column('id', sa.String(length=40), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_collections_token_hash', 'collections', ['token_hash'], unique=True)

    op.create_table(
        'skills',
        sa.Column('id', sa.String(length=40), nullable=False),
        sa.Column('collection_id', sa.String(length=40), nullable=False),
        sa.Column('source_url', sa.String(length=2048), nullable=False),
        sa.Column('alias', sa.String(length=200), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('last_etag', sa.String(length=512), nullable=True),
        sa.Column('last_content', sa.Text(), nullable=True),
        sa.Column('last_fetched_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_fetch_status', sa.Integer(), nullable=True),
        sa.Column('last_fetch_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['collection_id'], ['collections.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('collection_id', 'source_url', name='uq_skills_collection_source_url'),
        sa.UniqueConstraint('collection_id', 'alias', name='uq_skills_collection_alias'),
    )
    op.create_index('ix_skills_collection_created', 'skills', ['collection_id', 'created_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_skills_collection_created', table_name='skills')
    op.drop_table('skills')
    op.drop_index('ix_collections_token_hash', table_name='collections')
    op.drop_table('collections')
