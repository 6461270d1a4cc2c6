"""
Test suite for TrendPulse.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_trend_service.py -v
"""
