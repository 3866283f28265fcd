"""initial

Revision ID: 0001
Revises: 
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamp(name):
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('raw_user_meta_data', sa.JSON(), nullable=False),
        _timestamp('created_at'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table('profiles',
        sa.Column('id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('avatar_url', sa.String(), nullable=True),
        sa.Column('role', sa.String(), nullable=False, server_default='member'),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.CheckConstraint("role IN ('member', 'pastor', 'admin')", name='ck_profiles_role'),
    )

    op.create_table('bookmarks',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('book_id', sa.String(), nullable=False),
        sa.Column('book_name', sa.String(), nullable=False),
        sa.Column('chapter', sa.Integer(), nullable=False),
        sa.Column('verse', sa.Integer(), nullable=False),
        sa.Column('verse_text', sa.Text(), nullable=False),
        sa.Column('highlight_color', sa.String(), nullable=True),
        _timestamp('created_at'),
    )
    op.create_index('ix_bookmarks_user_id', 'bookmarks', ['user_id'])

    op.create_table('stories',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('author_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('author_name', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('media_url', sa.String(), nullable=True),
        sa.Column('verse_reference', sa.String(), nullable=True),
        sa.Column('likes_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.CheckConstraint("type IN ('verse', 'quote', 'video', 'image', 'devotional')", name='ck_stories_type'),
    )
    op.create_index('ix_stories_author_id', 'stories', ['author_id'])
    op.create_index('ix_stories_is_published', 'stories', ['is_published'])
    op.create_index('ix_stories_created_at', 'stories', ['created_at'])

    op.create_table('daily_manna',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('author_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False, unique=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('verse_reference', sa.String(), nullable=False),
        sa.Column('verse_text', sa.Text(), nullable=False),
        sa.Column('reflection', sa.Text(), nullable=False),
        sa.Column('prayer', sa.Text(), nullable=True),
        _timestamp('created_at'),
    )
    op.create_index('ix_daily_manna_author_id', 'daily_manna', ['author_id'])

    op.create_table('story_likes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('story_id', sa.Uuid(), sa.ForeignKey('stories.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        _timestamp('created_at'),
        sa.UniqueConstraint('story_id', 'user_id', name='uix_story_user_like'),
    )
    op.create_index('ix_story_likes_story_id', 'story_likes', ['story_id'])
    op.create_index('ix_story_likes_user_id', 'story_likes', ['user_id'])

    op.create_table('notes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('book_id', sa.String(), nullable=False),
        sa.Column('chapter', sa.Integer(), nullable=False),
        sa.Column('verse', sa.Integer(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )
    op.create_index('ix_notes_user_id', 'notes', ['user_id'])

    buckets = op.create_table('storage_buckets',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('public', sa.Boolean(), nullable=False),
        _timestamp('created_at'),
    )
    op.bulk_insert(buckets, [{'id': 'media', 'name': 'media', 'public': True}])

    op.create_table('media_objects',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('bucket_id', sa.String(), sa.ForeignKey('storage_buckets.id'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('owner_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('content_type', sa.String(), nullable=True),
        sa.Column('size', sa.Integer(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=False),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.UniqueConstraint('bucket_id', 'name', name='uix_bucket_object_name'),
    )
    op.create_index('ix_media_objects_bucket_id', 'media_objects', ['bucket_id'])


def downgrade():
    op.drop_table('media_objects')
    op.drop_table('storage_buckets')
    op.drop_table('notes')
    op.drop_table('story_likes')
    op.drop_table('daily_manna')
    op.drop_table('stories')
    op.drop_table('bookmarks')
    op.drop_table('profiles')
    op.drop_table('users')
