"""
Library Panels: reusable dashboard panel definitions

Library panels are stored independently of any dashboard and can be embedded
in many dashboards at once.
Responsibilities:
- Library panel CRUD with per-folder name uniqueness
- Dashboard <-> library panel connection bookkeeping
- Dashboard document hydration on load
- Dashboard document cleaning and connection reconciliation on save
- Connection teardown on dashboard deletion
"""
