"""
Cross-app test suite for the Station Forms backend.

Test Organization:
- integration/ - API flows spanning the contact and preferences apps
- App-specific tests remain in their respective app directories (e.g., contact/tests.py)
"""
