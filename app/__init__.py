"""Session wiring, background calibration and the disparity loop."""
