"""Document field extraction for identity cards and vehicle plates.

Reads photographed national identity cards, engraved motor
fingerprints and chassis (VIN) plates, racing a remote recognizer
against local Tesseract, and returns scored, validated fields with a
safe fallback to manual entry.
"""

__version__ = "1.0.0"
