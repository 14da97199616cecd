"""
Tests for the identity app.

- test_models.py: User manager, display-name fallbacks, Profile username rules
- test_views.py: JWT token endpoints and the current-user endpoint
"""
