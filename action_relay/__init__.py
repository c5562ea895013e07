"""Action Relay.

Turns machine-readable API descriptions and tool-protocol servers into a
catalog of executable tools, runs them against the real target systems and
keeps a tamper-evident audit trail of every action.
"""

__version__ = "0.1.0"
