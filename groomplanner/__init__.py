"""
groomplanner - appointment scheduling and auxiliary-time reconciliation
for a dog-grooming business.
"""

__version__ = "0.1.0"
