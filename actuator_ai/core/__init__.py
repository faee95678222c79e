"""Cross-cutting infrastructure: logging, audit sink and database layer."""
