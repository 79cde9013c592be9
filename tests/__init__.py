"""
Test Suite
==========

Test Categories:
- unit: Unit tests for individual components
- integration: Bridge and HTTP API tests wiring several components together
"""
