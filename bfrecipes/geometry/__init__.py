from .delays import DelayInfo, compute_delay_info, count_times, reference_dut1_jd, tabulate_delays, time_axes  # noqa
from .transforms import ha_to_t, lookup_dut1, radec_to_hadec, td_to_wdw  # noqa
