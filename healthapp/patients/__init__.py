"""
Patient profiles and medical history.
"""
