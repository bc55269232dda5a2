"""
ROOFWATCH Integration Tests

Run the whole roof controller against the simulated roof (mock GPIO
backend plus simulated motor relay). No hardware or network needed.

Running:
    pytest tests/integration/ -v
"""
