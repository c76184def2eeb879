"""Create library tables

Revision ID: 3f9c2a7d1e4b
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c2a7d1e4b'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BOOK_STATUSES = ('WISHLIST', 'READING', 'FINISHED', 'ABANDONED', 'ON_HOLD')
READING_MOODS = ('EXCITED', 'RELAXED', 'FOCUSED', 'TIRED', 'DISTRACTED')


def upgrade() -> None:
    op.create_table('authors',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False, comment="Author's given name"),
        sa.Column('last_name', sa.String(length=100), nullable=False, comment="Author's family name"),
        sa.Column('biography', sa.Text(), nullable=True, comment='Author biography'),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('nationality', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='When the author record was created'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='When the author record was last updated'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('first_name', 'last_name', name='uq_authors_full_name')
    )
    op.create_index(op.f('ix_authors_last_name'), 'authors', ['last_name'], unique=False)
    op.create_index(op.f('ix_authors_nationality'), 'authors', ['nationality'], unique=False)

    op.create_table('genres',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False, comment="Normalized genre name (e.g., 'Science Fiction')"),
        sa.Column('description', sa.Text(), nullable=True, comment='Description of what this genre encompasses'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_genres_name'), 'genres', ['name'], unique=True)

    op.create_table('books',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False, comment='Book title'),
        sa.Column('isbn', sa.String(length=20), nullable=True, comment='International Standard Book Number'),
        sa.Column('total_pages', sa.Integer(), nullable=True, comment='Number of pages, null when unknown'),
        sa.Column('current_page', sa.Integer(), server_default='0', nullable=False, comment='Last page the reader reported'),
        sa.Column('status', sa.Enum(*BOOK_STATUSES, name='book_status', native_enum=False, length=20), server_default='WISHLIST', nullable=False),
        sa.Column('publisher', sa.String(length=200), nullable=True),
        sa.Column('published_date', sa.Date(), nullable=True, comment='Date of publication'),
        sa.Column('description', sa.Text(), nullable=True, comment='Book description or summary'),
        sa.Column('personal_rating', sa.Numeric(precision=2, scale=1), nullable=True, comment="Reader's own rating, 0.0-5.0"),
        sa.Column('personal_notes', sa.Text(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True, comment='Day the reader started the book'),
        sa.Column('finish_date', sa.Date(), nullable=True, comment='Day the reader finished the book'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('current_page >= 0', name='ck_books_current_page_non_negative'),
        sa.CheckConstraint('total_pages IS NULL OR current_page <= total_pages', name='ck_books_current_page_within_total'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_books_title'), 'books', ['title'], unique=False)
    op.create_index(op.f('ix_books_isbn'), 'books', ['isbn'], unique=True)
    op.create_index(op.f('ix_books_status'), 'books', ['status'], unique=False)
    op.create_index(op.f('ix_books_finish_date'), 'books', ['finish_date'], unique=False)

    op.create_table('book_authors',
        sa.Column('book_id', sa.Integer(), nullable=False),
        sa.Column('author_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['author_id'], ['authors.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['book_id'], ['books.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('book_id', 'author_id'),
        comment='Association table linking books to their authors'
    )
    op.create_table('book_genres',
        sa.Column('book_id', sa.Integer(), nullable=False),
        sa.Column('genre_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['book_id'], ['books.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['genre_id'], ['genres.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('book_id', 'genre_id'),
        comment='Association table linking books to their genres'
    )

    op.create_table('reading_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('book_id', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=True),
        sa.Column('pages_read', sa.Integer(), server_default='0', nullable=False),
        sa.Column('mood', sa.Enum(*READING_MOODS, name='reading_mood', native_enum=False, length=20), nullable=True),
        sa.Column('notes', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('pages_read >= 0', name='ck_reading_sessions_pages_non_negative'),
        sa.CheckConstraint('end_time IS NULL OR end_time >= start_time', name='ck_reading_sessions_end_after_start'),
        sa.ForeignKeyConstraint(['book_id'], ['books.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_reading_sessions_book_id'), 'reading_sessions', ['book_id'], unique=False)
    op.create_index(op.f('ix_reading_sessions_start_time'), 'reading_sessions', ['start_time'], unique=False)
    op.create_index(op.f('ix_reading_sessions_mood'), 'reading_sessions', ['mood'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_reading_sessions_mood'), table_name='reading_sessions')
    op.drop_index(op.f('ix_reading_sessions_start_time'), table_name='reading_sessions')
    op.drop_index(op.f('ix_reading_sessions_book_id'), table_name='reading_sessions')
    op.drop_table('reading_sessions')
    op.drop_table('book_genres')
    op.drop_table('book_authors')
    op.drop_index(op.f('ix_books_finish_date'), table_name='books')
    op.drop_index(op.f('ix_books_status'), table_name='books')
    op.drop_index(op.f('ix_books_isbn'), table_name='books')
    op.drop_index(op.f('ix_books_title'), table_name='books')
    op.drop_table('books')
    op.drop_index(op.f('ix_genres_name'), table_name='genres')
    op.drop_table('genres')
    op.drop_index(op.f('ix_authors_nationality'), table_name='authors')
    op.drop_index(op.f('ix_authors_last_name'), table_name='authors')
    op.drop_table('authors')
