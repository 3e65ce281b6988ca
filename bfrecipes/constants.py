# speed of light (m s^-1)
c = 2.99792458e8

# speed of light (m ns^-1)
CMPNS = 1e-9 * c

# rotation rate of the earth relative to the fixed stars (rad s^-1)
OMEGA_EARTH = 7.292115e-5

SECONDS_PER_DAY = 86400.0

# julian date of the unix epoch
UNIX_EPOCH_JD = 2440587.5

# all recipes are dual polarization
NPOL = 2

OBSID_TIME_FORMAT = "YYYYMMDDTHHmmss"
DEFAULT_BAR_FORMAT = "{l_bar}{bar:16}{r_bar}"
