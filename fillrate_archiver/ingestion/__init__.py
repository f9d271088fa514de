"""
Ingestion layer — network clients for both halves of the system.

Submodules:
  broadsign_client — Broadsign Direct reporting API (cookie session, one re-login)
  source_client    — published feed fetch with an ordered fallback chain

Credential placement (.env, gitignored):
  BROADSIGN_BASE             — Broadsign Direct API root
  BROADSIGN_EMAIL            — account e-mail
  BROADSIGN_PASSWORD         — account password
  SOURCE_URL_PRIMARY         — published feed URL
  SOURCE_URL_FALLBACK_1/2    — mirrors tried in order when the primary fails
"""
