"""Candidate comments and per-section read markers

Revision ID: 0002_candidate_comments
Revises: 0001_initial_hr_admin
Create Date: 2026-02-03 14:27:09.551820

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002_candidate_comments'
down_revision: Union[str, Sequence[str], None] = '0001_initial_hr_admin'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'candidate_comments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('candidate_id', sa.Integer(), nullable=False),
        sa.Column('parent_comment_id', sa.Integer(), nullable=True),
        sa.Column('author_id', sa.Integer(), nullable=False),
        sa.Column('section_key', sa.String(length=100), nullable=False),
        sa.Column('comment', sa.Text(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['candidate_id'], ['candidates.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['parent_comment_id'], ['candidate_comments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['author_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    for column in ('organization_id', 'parent_comment_id', 'author_id'):
        op.create_index(op.f(f'ix_candidate_comments_{column}'), 'candidate_comments', [column], unique=False)
    op.create_index(
        'ix_candidate_comments_candidate_section', 'candidate_comments', ['candidate_id', 'section_key'], unique=False
    )

    op.create_table(
        'comment_views',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('candidate_id', sa.Integer(), nullable=False),
        sa.Column('section_key', sa.String(length=100), nullable=False),
        sa.Column('last_viewed_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['candidate_id'], ['candidates.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'candidate_id', 'section_key', name='uq_comment_view_user_candidate_section')
    )
    op.create_index(op.f('ix_comment_views_candidate_id'), 'comment_views', ['candidate_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_comment_views_candidate_id'), table_name='comment_views')
    op.drop_table('comment_views')

    op.drop_index('ix_candidate_comments_candidate_section', table_name='candidate_comments')
    for column in ('organization_id', 'parent_comment_id', 'author_id'):
        op.drop_index(op.f(f'ix_candidate_comments_{column}'), table_name='candidate_comments')
    op.drop_table('candidate_comments')
