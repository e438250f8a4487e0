"""
Raw File Conversion Domain

Turns raw provider documents downloaded by crawlers into conv files:
- Filesystem probe and conv/lock file conventions
- Converters for self-contained and dependent providers
- Watch services converting files as soon as their download finished
- Status service gating the pipeline until everything is converted
"""

__all__ = ["converters", "watchers"]
