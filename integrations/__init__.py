"""
Clients for external services: Google Trends and the Resend email API.
"""
