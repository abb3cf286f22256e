"""
Services for the PsycheValuator backend.
"""
