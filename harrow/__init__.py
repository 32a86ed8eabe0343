"""
Listing harvester.

This package harvests a paginated listing of detail pages, extracts a fixed
set of fields from each page, caches fetched bytes on disk and writes the
results as a CSV table.
"""
