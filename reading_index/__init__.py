"""
Reading index core package.

Extracts plain text from the course reading PDFs and upserts it, together
with the syllabus metadata, into a content store for full-text search. The
`ingestion` subpackage holds the catalog, extraction engines, publishers,
and the worker that drives one sequential indexing run.
"""
