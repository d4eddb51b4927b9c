"""
Tableside: table/terminal session isolation, QR access, carts and orders.
"""
