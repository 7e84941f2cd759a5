"""
EduFinX Test Suite

- test_finance.py: fee status, payment recording, aggregation, budgets, currency
- test_commands.py: typed form commands and their validation messages
- test_store.py: read-through record cache and ownership lookups
- test_preferences.py: cookie-backed theme and settings
- test_models.py: schema creation
- test_auth.py: signup, login, logout
- test_dashboard.py: dashboard totals
- test_fees.py: fee CRUD and payment recording
- test_expenses.py: expense and budget CRUD
- test_categories.py: fee and expense categories
- test_profile.py: profile and student record upsert
- test_settings.py: preferences pages
- test_security.py: access control, CSRF, headers

Run all tests:
    pytest tests/

Run with verbose output:
    pytest tests/ -v
"""
