"""Attendance engine services.

Import services from their modules; the calculators depend on the state
machines here, so this package does not eagerly import its members.
"""
