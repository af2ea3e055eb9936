"""레포지토리 패키지 — 데이터베이스 쿼리 계층.

Repository package — Database query layer.
Every repository extends BaseRepository for the generic, envelope-returning
CRUD surface and adds entity-specific lookups.
"""
