"""Test package for the Timepiece widget.

Core tests drive the timing state machine headlessly with a fake clock and
explicit frame timestamps. The UI smoke tests use pygame's dummy video
driver so no real window is opened. Run ``pytest`` from the project root.
"""
