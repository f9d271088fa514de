"""
Archive layer — dated JSON + CSV snapshots under ``logs/YYYY/MM/``.

Submodules:
  writer     — paths, record assembly and the JSON-then-CSV write
  collation  — Icelandic sort key used for CSV row order
"""
