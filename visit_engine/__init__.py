"""
Visit Engine - Clinical Visit Processing Microservice

Turns a recorded clinical encounter into a transcript, a structured
visit summary, medication safety warnings and follow-up tasks.
"""

__version__ = "1.0.0"
