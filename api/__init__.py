"""
REST API for Letter Translator.
"""
