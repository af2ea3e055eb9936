"""서비스 패키지 — 순수 쿼리 변환 계층.

Service package — Pure query translation layer.
Contains the query compiler and the identifier resolver. Nothing here
touches the database; repositories call these before executing queries.
"""
