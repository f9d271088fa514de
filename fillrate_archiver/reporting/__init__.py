"""
Reporting layer — JSON and CSV file writers shared by both pipeline stages.
"""
