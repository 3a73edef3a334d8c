#!/usr/bin/env python3
"""RFP2MQTT - an RFPlayer to MQTT gateway."""

__version__ = "0.3.0"
VERSION = __version__
