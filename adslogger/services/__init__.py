"""
ADS Logger Services

1. Decoding Service - type catalog and payload decoding
2. Filtering Service - variable table and change detection
3. Logging Service - pipeline, per-variable dispatch, rotating log files
4. Device Service - ADS session and notifications (pyads)
"""
