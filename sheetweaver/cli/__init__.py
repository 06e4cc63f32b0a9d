"""Command line interface (``python -m sheetweaver.cli``)."""
