"""
Well-known names and limits shared by the provisioning components.
"""

# Indicator (metric) names
METRIC_CPU_SCHEDWAIT = "cpu.schedwait"
METRIC_CPU_CPI_CONTAINER = "cpu.cpi.container"
METRIC_MEM_BANDWIDTH_NUMA = "mem.bandwidth.numa"

# Largest knob change a single indicator may request in one cycle
MAX_RAMP_UP_STEP = 8.0
MAX_RAMP_DOWN_STEP = 2.0

# Normalized error is expressed in percent of target
ERROR_SCALE = 100.0

DEFAULT_CONTROL_INTERVAL_SECONDS = 1.0

POLICY_NAME_RAMA = "rama"
