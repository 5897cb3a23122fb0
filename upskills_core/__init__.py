"""
Upskills core: collection-scoped registry of remote SKILL.md pointers with
conditional revalidation against their origin.
"""

__version__ = "0.1.0"
