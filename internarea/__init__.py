# InternArea - Public space and account recovery API
"""
InternArea - Backend for the internship portal's public space.

Post to a shared feed within a daily limit set by your friend count,
like and comment on posts, and recover access with a generated password.
"""

__version__ = "1.0.0"
__author__ = "InternArea"
__description__ = "Public space feed and password recovery API"
