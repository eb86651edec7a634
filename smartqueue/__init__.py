"""
SmartQueue — campus canteen token and queue service
"""
__version__ = "1.0.0"
