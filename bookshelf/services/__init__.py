"""
Services Package

Business logic, kept separate from HTTP handling so it can be called
from routers, scripts and tests alike. Every function takes the
SQLAlchemy session explicitly.

Current services:
- analytics.py: Dashboard, yearly/monthly progress and reading statistics
- authors.py: Author CRUD, name normalization and author statistics
- book_import.py: Import, enrichment and search across local and Google data
- books.py: Book CRUD, search and duplicate detection
- cache.py: Redis caching for Google Books responses
- genre_normalizer.py: Canonical genre names
- genres.py: Genre CRUD, find-or-create and orphan cleanup
- google_books.py: Google Books API client and volume conversion
- mapping.py: ORM entity to response mapping with derived fields
- progress.py: Reading progress and status lifecycle rules
- rate_limiter.py: Rate limiting with slowapi and Redis backend
- reading_sessions.py: Reading session recording and statistics
"""
