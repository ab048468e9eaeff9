"""
checkin - Scan-ID Member Check-in
==================================

Reads the latest ID scan exported by the Scan-ID device and finds the
matching member (and their membership plans) on a Wix site.

Modules:
--------
- config.py      : Configuration management (loads settings from .env)
- errors.py      : Error taxonomy and conversion to error envelopes
- models.py      : Scan, query, candidate, match and plan value objects
- loader.py      : Scan-ID CSV loading and latest-scan selection
- normalizer.py  : Name title-casing, first-name variants, DOB formatting
- http_client.py : HTTP client for the Wix REST API
- sources.py     : Member search sources (members, contacts, free text)
- matcher.py     : Source fallback, de-duplication, exact-match ordering
- plans.py       : Pricing-plan subscriptions and orders
- service.py     : The operations exposed to the front end
- watcher.py     : Export file watching
- run_checkin.py : Command line entry point

Usage:
------
    python -m checkin.run_checkin scan
    python -m checkin.run_checkin find JOHN SMITH --dob 03-22-1985
    python -m checkin.run_checkin checkin --plans
    python -m checkin.run_checkin watch

Workflow:
---------
1. Load configuration from .env file
2. Read the newest row of the Scan-ID export
3. Normalize the name (title case, first-name variants) and date of birth
4. Search Wix members, then contacts, then free text, stopping at the first hit
5. Show the member's plans and orders on request
"""
