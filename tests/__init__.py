"""
ROOFWATCH Test Suite

Test Organization:
    tests/
    ├── __init__.py          # This file
    ├── integration/         # Full controller against the simulated roof
    ├── mocks/               # Hardware mocks (RPi.GPIO)
    └── unit/                # Unit tests (no hardware, no network)

Running Tests:
    # Run all tests
    pytest tests/

    # Run with coverage
    pytest tests/ --cov=roofwatch --cov=services --cov-report=html

Requirements:
    pip install -e ".[test]"
"""
