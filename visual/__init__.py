"""
Visual comparison package.
Pixel-level diff of a design capture against a rendered page capture.
"""
