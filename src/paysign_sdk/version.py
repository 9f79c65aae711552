"""Version information for PaySign Python SDK"""

__version__ = "0.1.0"
