"""
trainerslots - derive bookable training slots from trainer availability.
"""

__version__ = "0.1.0"
