"""
Services package

- hierarchy_service.py: grouping leaves under aggregates, orphan cleanup
- ownership_service.py: per-user library membership
- catalog_service.py: single add, JSON import and export
"""
