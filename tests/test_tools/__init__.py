"""
Test Tools Package
Tests for the tools module (scheduler, dose status, PRN, collisions, inventory)
"""

__all__ = [
    "test_scheduler",
    "test_dose_status",
    "test_prn_validator",
    "test_collision_detector",
    "test_inventory_forecaster",
]
