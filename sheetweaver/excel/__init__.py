"""Workbook reading (xlsx / xls / csv) on top of pandas."""
