"""
Test helper utilities for drivemon testing.

This module provides reusable utilities for:
- Generating synthetic sensor readings and trips
- Building enriched samples without running the processor
"""
