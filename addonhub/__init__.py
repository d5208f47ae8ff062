"""AddonHub - addon catalog reconciliation"""

__version__ = "0.3.0"
