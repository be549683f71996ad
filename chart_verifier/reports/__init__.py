"""
Derived report output.

Contains:
- ReportSummarizer - metadata, digests, annotations and results summaries
"""
