"""
Fill-rate archiver.

Two batch jobs around one data contract (the fill-rate feed JSON):
  - ``generate-forecast`` — Broadsign reporting API → ``public/fillrate-next30.json``
  - ``archive-snapshot``  — published feed → ``logs/YYYY/MM/YYYY-MM-DD.{json,csv}``
"""

__version__ = "0.1.0"
