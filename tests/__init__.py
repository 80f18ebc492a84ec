"""
Patient Relay Tests

Running Tests:
    # Run unit and HTTP tests
    pytest -v

    # Run one module
    pytest tests/unit/test_notification_service.py -v

    # Smoke test a running server (not collected by default)
    pytest tests/e2e/smoke_test_e2e.py -v

Test Coverage:
    - Settings and connection URL assembly
    - Patient lookup (found, not found, store failure, concurrency)
    - Upload staging and best-effort cleanup
    - Email and SMS dispatch, including attachment cleanup and
      all-or-nothing SMS fan-out
    - SMTP and Twilio provider transports
    - HTTP status and body mapping for every endpoint
"""
