"""sheetweaver - spreadsheet reconciliation tooling for the operations team.

Duplicate scanning of student workbooks, name-based merging of two tables,
ticket export conversion and the Google Sheets import/update/undo flow.
"""

__version__ = "0.3.0"
