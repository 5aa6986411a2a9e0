"""
Catalog ETL Package

Builds the sponsorship item catalog and plan matrix from published spreadsheet tabs.

Modules:
- extract: Published sheet fetching and CSV record parsing
- transform: Merging item tabs into the nested item catalog
- images: Remote image harvesting and reference rewriting
- predicates: Row classification heuristics
- plans: Sponsorship plan matrix building
- load: JSON artifact writing
- run_etl: Pipeline orchestration
"""

__version__ = "1.0.0"
__author__ = "Data Engineering Team"
