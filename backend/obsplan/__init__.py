"""Observation sequence storage and smart calibration expansion."""
