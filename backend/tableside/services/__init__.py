"""
Services: domain services, QR rendering and change notifications.
"""
