"""
Test suite for the module loader.

Usage:
    # Run all tests
    pytest tests/ -v

    # Run one component
    pytest tests/loader/test_load_coordinator.py -v
"""
