"""
ADS Logger

Captures value changes of TwinCAT PLC variables into rotating text logs.
"""

__version__ = "1.0.0"
