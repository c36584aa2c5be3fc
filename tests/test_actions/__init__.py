"""
Test Actions Package
Tests for adherence insights, missed-dose alerts and refill reminders
"""
