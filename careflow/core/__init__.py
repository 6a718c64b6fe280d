"""
Core architecture components of the scheduling service
"""
