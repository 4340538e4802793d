"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


user_role = sa.Enum('STUDENT', 'ADMIN', name='user_role', create_constraint=True)
lesson_type = sa.Enum('video', 'pdf', 'text', name='lesson_type', create_constraint=True)
mux_status = sa.Enum('pending', 'ready', 'error', name='mux_status', create_constraint=True)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'courses',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_courses_slug', 'courses', ['slug'], unique=True)

    op.create_table(
        'chapters',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
    )

    op.create_table(
        'lessons',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('chapter_id', sa.Integer(), sa.ForeignKey('chapters.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('type', lesson_type, nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('mux_upload_id', sa.String(length=255), nullable=True),
        sa.Column('mux_asset_id', sa.String(length=255), nullable=True),
        sa.Column('mux_playback_id', sa.String(length=255), nullable=True),
        sa.Column('mux_status', mux_status, nullable=False),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('view_limit', sa.Integer(), nullable=False, server_default='2'),
        sa.Column('is_free', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('attachments', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_lessons_mux_upload_id', 'lessons', ['mux_upload_id'], unique=False)
    op.create_index('ix_lessons_mux_asset_id', 'lessons', ['mux_asset_id'], unique=False)

    op.create_table(
        'enrollments',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('enrolled_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('user_id', 'course_id', name='uq_user_course'),
    )

    op.create_table(
        'video_views',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lesson_id', sa.Integer(), sa.ForeignKey('lessons.id', ondelete='CASCADE'), nullable=False),
        sa.Column('view_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('custom_view_limit', sa.Integer(), nullable=True),
        sa.Column('last_viewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('user_id', 'lesson_id', name='uq_video_view_user_lesson'),
    )


def downgrade() -> None:
    op.drop_table('video_views')
    op.drop_table('enrollments')
    op.drop_index('ix_lessons_mux_asset_id', table_name='lessons')
    op.drop_index('ix_lessons_mux_upload_id', table_name='lessons')
    op.drop_table('lessons')
    op.drop_table('chapters')
    op.drop_index('ix_courses_slug', table_name='courses')
    op.drop_table('courses')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    bind = op.get_bind()
    mux_status.drop(bind, checkfirst=True)
    lesson_type.drop(bind, checkfirst=True)
    user_role.drop(bind, checkfirst=True)
