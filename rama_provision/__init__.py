"""
Indicator-driven resource provisioning for QoS regions.

Each region is governed by a provision policy that turns performance
indicator readings into an adjusted non-reclaimed CPU size, bounded by the
resource constraints of the cycle.
"""

__version__ = "0.1.0"
