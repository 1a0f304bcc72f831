"""
Authentication module for the healthcare identity service.

This module provides authentication and authorization functionality including:
- Patient and doctor self-registration
- Email verification
- Password reset
- Signed session tokens
- Role-based access control
"""
