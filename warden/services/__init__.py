"""
Warden - Services
=================
"""
