"""
Medical Visa Slot Monitor

Watches the medical visa booking site for available examination slots,
filters them against user preferences and emails an alert when a
qualifying slot appears.
"""

__version__ = "0.1.0"
__author__ = "Medical Visa Slot Monitor Team"
