"""add chapters and chapter progress

Revision ID: 8d4a1b6e2c57
Revises: 5c1e2f9a7b30
Create Date: 2026-10-18 15:40:02.731946

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '8d4a1b6e2c57'
down_revision: Union[str, None] = '5c1e2f9a7b30'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column('courses', sa.Column('thumbnail_url', sa.String(length=500), nullable=True))
    op.add_column('courses', sa.Column('estimated_duration', sa.Integer(), server_default='0', nullable=False))

    op.create_table(
        'chapters',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('course_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.Column('media_url', sa.String(length=500), nullable=True),
        sa.Column('media_type', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_chapters_id'), 'chapters', ['id'], unique=False)
    op.create_index(op.f('ix_chapters_course_id'), 'chapters', ['course_id'], unique=False)

    op.create_table(
        'chapter_progress',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('enrollment_id', sa.Integer(), nullable=False),
        sa.Column('chapter_id', sa.Integer(), nullable=False),
        sa.Column('is_completed', sa.Boolean(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('time_spent_seconds', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['chapter_id'], ['chapters.id'], ),
        sa.ForeignKeyConstraint(['enrollment_id'], ['course_enrollments.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('enrollment_id', 'chapter_id', name='uq_chapter_progress_enrollment_chapter')
    )
    op.create_index(op.f('ix_chapter_progress_id'), 'chapter_progress', ['id'], unique=False)
    op.create_index(op.f('ix_chapter_progress_enrollment_id'), 'chapter_progress', ['enrollment_id'], unique=False)
    op.create_index(op.f('ix_chapter_progress_chapter_id'), 'chapter_progress', ['chapter_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_chapter_progress_chapter_id'), table_name='chapter_progress')
    op.drop_index(op.f('ix_chapter_progress_enrollment_id'), table_name='chapter_progress')
    op.drop_index(op.f('ix_chapter_progress_id'), table_name='chapter_progress')
    op.drop_table('chapter_progress')
    op.drop_index(op.f('ix_chapters_course_id'), table_name='chapters')
    op.drop_index(op.f('ix_chapters_id'), table_name='chapters')
    op.drop_table('chapters')
    op.drop_column('courses', 'estimated_duration')
    op.drop_column('courses', 'thumbnail_url')
