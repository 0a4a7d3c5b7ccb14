"""
workflow-pinner: action pinning and runtime provisioning for CI workflows.
"""

__version__ = "0.1.0"
